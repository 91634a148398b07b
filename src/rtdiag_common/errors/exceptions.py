"""Typed exception hierarchy for the diagnostics stack.

All rtdiag exceptions inherit from DiagnosticsError, which carries a stable
error code, a preferred log level and a context mapping for structured logs.

Examples
--------
>>> from rtdiag_common.errors import ManifestReadError, ErrorCode
>>> try:
...     raise ManifestReadError("No manifest", cause=OSError("missing"))
... except ManifestReadError as e:
...     assert e.code == ErrorCode.MANIFEST_UNAVAILABLE
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from rtdiag_common.errors.codes import ErrorCode

__all__ = [
    "DiagnosticsError",
    "ManifestReadError",
    "RegistryUnavailableError",
    "SettingsError",
]


class DiagnosticsError(Exception):
    """Base exception for all rtdiag errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode, optional
        Error code enum value. Defaults to ``ErrorCode.RUNTIME_ERROR``.
    log_level : int, optional
        Logging level used when the error is reported. Defaults to ``logging.ERROR``.
    cause : Exception | None, optional
        Underlying exception, chained as ``__cause__``. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional structured context. Defaults to None.

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    log_level : int
        Logging level for error logging.
    context : dict[str, object]
        Additional context dictionary for error details.

    Examples
    --------
    >>> error = DiagnosticsError("Operation failed")
    >>> str(error)
    'DiagnosticsError[runtime-error]: Operation failed'
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.RUNTIME_ERROR,
        log_level: int = logging.ERROR,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.log_level = log_level
        self.context = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        """Return formatted error string.

        Returns
        -------
        str
            Formatted error string (e.g., "ManifestReadError[manifest-unavailable]: ...").
        """
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class ManifestReadError(DiagnosticsError):
    """Raised when an archive manifest cannot be opened or read.

    This is a recoverable resolution gap: callers resolving source references
    log it at debug level and carry on without the value.

    Parameters
    ----------
    message : str
        Human-readable error message.
    cause : Exception | None, optional
        Underlying I/O or archive error. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context (typically the container path). Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.MANIFEST_UNAVAILABLE,
            log_level=logging.DEBUG,
            cause=cause,
            context=context,
        )


class RegistryUnavailableError(DiagnosticsError):
    """Raised when a required registry collaborator is missing.

    Parameters
    ----------
    message : str
        Human-readable error message.
    context : Mapping[str, object] | None, optional
        Additional context (typically the collaborator name). Defaults to None.
    """

    def __init__(self, message: str, *, context: Mapping[str, object] | None = None) -> None:
        super().__init__(message, code=ErrorCode.REGISTRY_UNAVAILABLE, context=context)


class SettingsError(DiagnosticsError):
    """Error raised when runtime settings validation fails.

    Parameters
    ----------
    message : str
        Human-readable error message describing the settings validation failure.
    errors : list[dict[str, object]] | None, optional
        Validation error dictionaries with field/issue details. Defaults to None.
    cause : Exception | None, optional
        Underlying exception that caused the validation failure. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context dictionary for error details. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, object]] | None = None,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        merged: dict[str, object] = dict(context) if context else {}
        if errors:
            merged["errors"] = errors
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            cause=cause,
            context=merged,
        )
        self.errors = list(errors) if errors else []
