"""Runtime settings with typed configuration and fail-fast validation.

This module provides DiagnosticsSettings (pydantic_settings.BaseSettings)
loaded from ``RTDIAG_*`` environment variables. Validation failures surface
as :class:`~rtdiag_common.errors.SettingsError`.

Examples
--------
>>> from rtdiag_common.settings import load_settings
>>> settings = load_settings(log_level="DEBUG")
>>> assert settings.build_id_key == "Implementation-Build"
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rtdiag_common.errors import SettingsError
from rtdiag_common.logging import get_logger

__all__ = [
    "DEFAULT_EVENT_CATEGORIES",
    "DiagnosticsSettings",
    "load_settings",
]

logger = get_logger(__name__)

DEFAULT_EVENT_CATEGORIES: tuple[str, ...] = (
    "objects.listed",
    "object.created",
    "object.deleted",
    "display.activated",
    "display.updated",
)


class DiagnosticsSettings(BaseSettings):
    """Configuration for report generation (``RTDIAG_*`` namespace)."""

    model_config = SettingsConfigDict(
        env_prefix="RTDIAG_",
        extra="forbid",
        case_sensitive=False,
    )

    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    build_id_key: str = Field(
        default="Implementation-Build",
        description="Archive manifest key holding the build identifier",
    )
    manifest_entry: str = Field(
        default="META-INF/MANIFEST.MF",
        description="Archive member holding the container manifest",
    )
    container_separator: str = Field(
        default="!",
        min_length=1,
        description="Separator between an archive path and a member inside it",
    )
    placeholder_tags: list[str] = Field(
        default_factory=lambda: ["HEAD", "master"],
        description="SCM tags that name a branch rather than a release tag",
    )
    path_list_suffixes: list[str] = Field(
        default_factory=lambda: [".dirs", ".path"],
        description="Key suffixes whose values are rendered as path lists",
    )
    event_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EVENT_CATEGORIES),
        description="Ordered whitelist of event categories to inspect",
    )
    applications: list[str] = Field(
        default_factory=list,
        description="Distribution names reported as installed application variants",
    )
    plugin_group_prefix: str | None = Field(
        default=None,
        description="Only entry-point groups under this prefix are summarized",
    )


def load_settings(**overrides: object) -> DiagnosticsSettings:
    """Load :class:`DiagnosticsSettings` with optional overrides.

    Parameters
    ----------
    **overrides : object
        Field values taking precedence over the environment.

    Returns
    -------
    DiagnosticsSettings
        Validated settings.

    Raises
    ------
    SettingsError
        If the environment or the overrides fail validation.
    """
    try:
        return DiagnosticsSettings(**overrides)  # type: ignore[arg-type]
    except Exception as exc:
        msg = f"Configuration validation failed: {exc}"
        logger.exception(
            "Settings validation failed",
            extra={"operation": "load_settings", "error_type": type(exc).__name__},
        )
        errors = getattr(exc, "errors", None)
        details = errors() if callable(errors) else None
        raise SettingsError(
            msg,
            errors=[dict(item) for item in details] if details else None,
            cause=exc,
            context={"validation_error": str(exc)},
        ) from exc
