"""Installed application variants reported at the top of the report."""

from __future__ import annotations

import platform
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, distribution
from typing import Protocol

from rtdiag_common.errors import RegistryUnavailableError
from rtdiag_common.logging import get_logger

__all__ = [
    "AppRegistry",
    "Application",
    "DistributionAppRegistry",
    "StaticAppRegistry",
    "interpreter_app",
]

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Application:
    """One installed application variant."""

    name: str
    title: str | None
    version: str | None
    group_id: str | None = None
    artifact_id: str | None = None
    manifest: Mapping[str, str] | None = None

    @property
    def info(self) -> str:
        """Return the ``"<title> <version>"`` banner line."""
        title = self.title if self.title is not None else self.name
        return f"{title} {self.version}" if self.version else title


class AppRegistry(Protocol):
    """Capability exposing the application variants of the process."""

    def primary_app(self) -> Application:
        """Return the application the process runs as."""
        ...

    def apps(self) -> Mapping[str, Application]:
        """Return every installed application variant by name."""
        ...


class StaticAppRegistry:
    """Application registry backed by an explicit list; the first entry is primary."""

    def __init__(self, apps: Iterable[Application]) -> None:
        self._apps = {app.name: app for app in apps}
        if not self._apps:
            message = "At least one application is required"
            raise RegistryUnavailableError(message, context={"collaborator": "apps"})

    def primary_app(self) -> Application:
        return next(iter(self._apps.values()))

    def apps(self) -> Mapping[str, Application]:
        return dict(self._apps)


def interpreter_app() -> Application:
    """Describe the running Python interpreter as an application."""
    build_number, build_date = platform.python_build()
    return Application(
        name="python",
        title=platform.python_implementation(),
        version=platform.python_version(),
        manifest={
            "Build": f"{build_number} ({build_date})",
            "Compiler": platform.python_compiler(),
        },
    )


class DistributionAppRegistry(StaticAppRegistry):
    """Application registry over named installed distributions.

    Each distribution found becomes an application whose manifest is its core
    metadata; multi-valued headers are joined with ``", "``. Names that are
    not installed are skipped. With nothing found the interpreter is the sole
    application.
    """

    def __init__(self, names: Sequence[str], *, group_id: str = "pypi") -> None:
        found = [app for app in (_describe(name, group_id) for name in names) if app is not None]
        super().__init__(found or [interpreter_app()])


def _describe(name: str, group_id: str) -> Application | None:
    try:
        dist = distribution(name)
    except PackageNotFoundError:
        LOGGER.warning(
            "Configured application is not installed",
            extra={"operation": "list_apps", "application": name},
        )
        return None
    manifest: dict[str, str] = {}
    for key, value in dist.metadata.items():
        manifest[key] = f"{manifest[key]}, {value}" if key in manifest else value
    return Application(
        name=name,
        title=dist.metadata.get("Name"),
        version=dist.version,
        group_id=group_id,
        artifact_id=dist.metadata.get("Name"),
        manifest=manifest,
    )
