"""Logging helpers for kubetopo."""

from kubetopo.observability.logging import get_logger, null_logger, setup_logging

__all__ = ["get_logger", "null_logger", "setup_logging"]
