"""Validation of rendered diagrams against an expected topology.

Used as the test oracle for the renderer and by ``kubetopo validate``.
"""

from kubetopo.validation.diagram import DiagramGraph, parse_diagram
from kubetopo.validation.validator import D2Validator, ValidationFailure, ValidationReport

__all__ = ["D2Validator", "DiagramGraph", "ValidationFailure", "ValidationReport", "parse_diagram"]
