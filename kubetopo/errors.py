"""Exception hierarchy for kubetopo.

Every error the pipeline raises on purpose derives from ``KubeTopoError`` so
the CLI can turn it into a single log line and a non-zero exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kubetopo.validation.validator import ValidationFailure


class KubeTopoError(Exception):
    """Base class for all kubetopo errors."""


class ClusterConnectionError(KubeTopoError):
    """Raised when no usable client can be built (kubeconfig, credentials)."""

    def __init__(self, source: str, cause: Exception) -> None:
        super().__init__(f"Cannot connect to cluster via {source}: {cause}")
        self.source = source
        self.cause = cause


class FetchError(KubeTopoError):
    """Raised when listing one resource kind fails. Aborts the whole fetch."""

    def __init__(self, kind: str, namespace: str, cause: Exception) -> None:
        scope = f"namespace '{namespace}'" if namespace else "cluster scope"
        super().__init__(f"Failed to list {kind} in {scope}: {cause}")
        self.kind = kind
        self.namespace = namespace
        self.cause = cause


class MalformedResourceError(KubeTopoError):
    """Raised for a resource record that cannot be turned into a model object."""

    def __init__(self, kind: str, reason: str, name: str = "") -> None:
        subject = f"{kind} '{name}'" if name else kind
        super().__init__(f"Malformed {subject}: {reason}")
        self.kind = kind
        self.name = name
        self.reason = reason


class RenderError(KubeTopoError):
    """Raised when the diagram sink rejects writes."""


class KrokiError(KubeTopoError):
    """Raised when the Kroki service cannot turn diagram text into an image."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DiagramValidationError(KubeTopoError):
    """Raised by ``ValidationReport.raise_for_failures`` when any check failed."""

    def __init__(self, failures: list[ValidationFailure]) -> None:
        checks = sorted({f.check for f in failures})
        super().__init__(f"{len(failures)} diagram validation failure(s): {', '.join(checks)}")
        self.failures = failures
