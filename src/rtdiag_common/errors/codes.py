"""Error code registry for diagnostics exceptions.

Codes are stable, kebab-case strings so they can be surfaced in logs and
structured output without leaking class names.

Examples
--------
>>> from rtdiag_common.errors.codes import ErrorCode
>>> code = ErrorCode.MANIFEST_UNAVAILABLE
>>> assert code == "manifest-unavailable"
"""

from __future__ import annotations

from enum import StrEnum

__all__ = ["ErrorCode"]


class ErrorCode(StrEnum):
    """Stable error codes for rtdiag exceptions.

    Error codes are organized by category:
    - Collaborators (registries, manifests)
    - Configuration & Runtime

    Attributes
    ----------
    MANIFEST_UNAVAILABLE
        An archive manifest could not be opened or parsed.
    REGISTRY_UNAVAILABLE
        A required registry collaborator is missing.
    CONFIGURATION_ERROR
        Settings failed validation.
    RUNTIME_ERROR
        Generic runtime failure.

    Examples
    --------
    >>> assert ErrorCode.RUNTIME_ERROR == "runtime-error"
    """

    # Collaborators
    MANIFEST_UNAVAILABLE = "manifest-unavailable"
    REGISTRY_UNAVAILABLE = "registry-unavailable"

    # Configuration & Runtime
    CONFIGURATION_ERROR = "configuration-error"
    RUNTIME_ERROR = "runtime-error"
