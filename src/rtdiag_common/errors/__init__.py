"""Exception hierarchy and error codes for the diagnostics stack.

Examples
--------
>>> from rtdiag_common.errors import DiagnosticsError, ErrorCode
>>> try:
...     raise DiagnosticsError("Operation failed")
... except DiagnosticsError as e:
...     assert e.code == ErrorCode.RUNTIME_ERROR
"""

from __future__ import annotations

from rtdiag_common.errors.codes import ErrorCode
from rtdiag_common.errors.exceptions import (
    DiagnosticsError,
    ManifestReadError,
    RegistryUnavailableError,
    SettingsError,
)

__all__ = [
    "DiagnosticsError",
    "ErrorCode",
    "ManifestReadError",
    "RegistryUnavailableError",
    "SettingsError",
]
