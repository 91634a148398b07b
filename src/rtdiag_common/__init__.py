"""Shared logging, error and settings helpers for the rtdiag stack."""

from __future__ import annotations

from rtdiag_common import errors, logging, settings

__all__ = [
    "errors",
    "logging",
    "settings",
]
