"""Assemble the full system information report from its collaborators.

The report is built in one synchronous pass. Each collaborator is read once
and every registry snapshot is copied before iteration. Failures that
affect a single field (an unreadable archive manifest) degrade that field
only; nothing raised while rendering aborts the run except a missing
collaborator, which is a precondition violation.

Examples
--------
>>> from rtdiag.report import SystemInformation
>>> report = SystemInformation.from_settings().run()  # doctest: +SKIP
>>> print(report.text)  # doctest: +SKIP
"""

from __future__ import annotations

import os
import time
import uuid
from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from rtdiag.apps import AppRegistry, DistributionAppRegistry
from rtdiag.dependencies import (
    DependencyDescriptor,
    DependencySource,
    DistributionDependencySource,
    detect_clashes,
    sorted_descriptors,
)
from rtdiag.formatting import PATH_LIST_SUFFIXES, format_mapping
from rtdiag.plugins import EntryPointPluginRegistry, PluginRegistry, sorted_plugin_types
from rtdiag.plugins import summarize_plugins as render_plugin_summary
from rtdiag.process import LiveProcess, ProcessIntrospection
from rtdiag.source_refs import (
    BUILD_ID_KEY,
    PLACEHOLDER_TAGS,
    ManifestLookup,
    read_archive_manifest,
    resolve_source_ref,
)
from rtdiag_common.errors import RegistryUnavailableError
from rtdiag_common.logging import CorrelationContext, get_logger
from rtdiag_common.settings import load_settings

if TYPE_CHECKING:
    from rtdiag_common.settings import DiagnosticsSettings

__all__ = [
    "DEFAULT_SECTION_ORDER",
    "ProgressCallback",
    "ReportSection",
    "SystemInformation",
    "SystemReport",
]

LOGGER = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]

DEFAULT_SECTION_ORDER: tuple[str, ...] = (
    "banner",
    "applications",
    "dependencies",
    "plugins",
    "system_properties",
    "environment",
    "miscellany",
)

# Progress checkpoints per section; "dependencies" adds one per descriptor.
_SECTION_STEPS: Mapping[str, int] = {
    "banner": 1,
    "applications": 1,
    "dependencies": 2,
    "plugins": 2,
    "system_properties": 1,
    "environment": 1,
    "miscellany": 1,
}

_LIBRARY_FIELDS: tuple[tuple[str, str], ...] = (
    ("path", "location_path"),
    ("groupId", "group_id"),
    ("artifactId", "artifact_id"),
    ("version", "version"),
    ("project URL", "project_url"),
    ("inception year", "inception_year"),
    ("organization name", "organization_name"),
    ("organization URL", "organization_url"),
    ("scm", "scm_connection"),
)


@dataclass(frozen=True, slots=True)
class ReportSection:
    """One titled chunk of the report; ``body`` is the exact rendered text."""

    heading: str
    body: str


@dataclass(frozen=True, slots=True)
class SystemReport:
    """Ordered report sections plus the clash warnings found while building them."""

    sections: tuple[ReportSection, ...]
    warnings: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        """Return the full report text."""
        return "".join(section.body for section in self.sections)

    def section(self, heading: str) -> ReportSection | None:
        """Return the section named ``heading``, if it was rendered."""
        return next((s for s in self.sections if s.heading == heading), None)

    def to_dict(self) -> dict[str, object]:
        return {
            "sections": [{"heading": s.heading, "body": s.body} for s in self.sections],
            "warnings": list(self.warnings),
        }

    def __str__(self) -> str:
        return self.text


class _Progress:
    def __init__(self, callback: ProgressCallback | None, maximum: int) -> None:
        self._callback = callback
        self.current = 0
        self.maximum = maximum

    def step(self) -> None:
        self.current += 1
        if self._callback is None:
            return
        try:
            self._callback(self.current, self.maximum)
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug(
                "Progress callback failed",
                exc_info=exc,
                extra={"operation": "report", "status": "degraded", "step": self.current},
            )


class SystemInformation:
    """Build the system information report.

    Parameters
    ----------
    dependencies : DependencySource
        Source of dependency descriptors, in discovery order.
    plugins : PluginRegistry
        Live plugin registry.
    apps : AppRegistry
        Installed application variants.
    process : ProcessIntrospection
        Property, environment and miscellany dumps.
    manifest_lookup : ManifestLookup, optional
        Archive manifest reader used for source reference fallback.
    section_order : Sequence[str], optional
        Sections to render, in order. Defaults to every section.
    placeholder_tags : Iterable[str], optional
        SCM tags treated as absent.
    build_id_key : str, optional
        Manifest key holding the build identifier.
    container_separator : str, optional
        Separator between an archive path and its member.
    path_separator : str, optional
        Separator used to split path-list values.
    path_list_suffixes : Iterable[str], optional
        Key suffixes rendered as path lists.

    Raises
    ------
    RegistryUnavailableError
        If a required collaborator is missing.
    ValueError
        If ``section_order`` names an unknown section.
    """

    def __init__(
        self,
        dependencies: DependencySource,
        plugins: PluginRegistry,
        apps: AppRegistry,
        process: ProcessIntrospection,
        *,
        manifest_lookup: ManifestLookup = read_archive_manifest,
        section_order: Sequence[str] = DEFAULT_SECTION_ORDER,
        placeholder_tags: Iterable[str] = PLACEHOLDER_TAGS,
        build_id_key: str = BUILD_ID_KEY,
        container_separator: str = "!",
        path_separator: str = os.pathsep,
        path_list_suffixes: Iterable[str] = PATH_LIST_SUFFIXES,
    ) -> None:
        collaborators = {
            "dependencies": dependencies,
            "plugins": plugins,
            "apps": apps,
            "process": process,
        }
        for name, collaborator in collaborators.items():
            if collaborator is None:
                message = f"Required collaborator '{name}' is unavailable"
                raise RegistryUnavailableError(message, context={"collaborator": name})
        unknown = [name for name in section_order if name not in _SECTION_STEPS]
        if unknown:
            message = f"Unknown report sections: {', '.join(unknown)}"
            raise ValueError(message)
        self._dependencies = dependencies
        self._plugins = plugins
        self._apps = apps
        self._process = process
        self._manifest_lookup = manifest_lookup
        self._section_order = tuple(section_order)
        self._placeholder_tags = tuple(placeholder_tags)
        self._build_id_key = build_id_key
        self._container_separator = container_separator
        self._path_separator = path_separator
        self._path_list_suffixes = tuple(path_list_suffixes)

    @classmethod
    def from_settings(cls, settings: DiagnosticsSettings | None = None) -> SystemInformation:
        """Wire the live interpreter adapters according to ``settings``."""
        resolved = settings if settings is not None else load_settings()
        return cls(
            DistributionDependencySource(container_separator=resolved.container_separator),
            EntryPointPluginRegistry(prefix=resolved.plugin_group_prefix),
            DistributionAppRegistry(resolved.applications),
            LiveProcess(),
            manifest_lookup=partial(read_archive_manifest, entry=resolved.manifest_entry),
            placeholder_tags=resolved.placeholder_tags,
            build_id_key=resolved.build_id_key,
            container_separator=resolved.container_separator,
            path_list_suffixes=resolved.path_list_suffixes,
        )

    def run(self, progress: ProgressCallback | None = None) -> SystemReport:
        """Build the report.

        Parameters
        ----------
        progress : ProgressCallback | None, optional
            Called with ``(current, max)`` at each checkpoint. ``max`` is ten
            plus one per dependency descriptor for the default section order.

        Returns
        -------
        SystemReport
            The rendered sections and the clash warnings.
        """
        with CorrelationContext(uuid.uuid4().hex[:12]):
            start = time.monotonic()
            LOGGER.info(
                "Gathering system information",
                extra={"operation": "report", "status": "started"},
            )
            descriptors = list(self._dependencies.list_all_descriptors())
            maximum = 1 + sum(_SECTION_STEPS[name] for name in self._section_order)
            if "dependencies" in self._section_order:
                maximum += len(descriptors)
            tracker = _Progress(progress, maximum)
            tracker.step()

            sections: list[ReportSection] = []
            warnings: tuple[str, ...] = ()
            for name in self._section_order:
                if name == "dependencies":
                    body, warnings = self._dependency_section(descriptors, tracker)
                else:
                    body = self._render(name, tracker)
                sections.append(ReportSection(name, body))

            LOGGER.info(
                "System information gathered",
                extra={
                    "operation": "report",
                    "status": "success",
                    "duration_ms": round((time.monotonic() - start) * 1000, 3),
                    "dependency_count": len(descriptors),
                    "clash_count": len(warnings),
                },
            )
            return SystemReport(tuple(sections), warnings)

    def _format(self, entries: Mapping[object, object]) -> str:
        return format_mapping(
            entries,
            path_separator=self._path_separator,
            path_list_suffixes=self._path_list_suffixes,
        )

    def _render(self, name: str, tracker: _Progress) -> str:
        if name == "banner":
            body = f"{self._apps.primary_app().info}\n"
        elif name == "applications":
            body = self._application_section()
        elif name == "plugins":
            types = sorted_plugin_types(self._plugins)
            tracker.step()
            body = self.summarize_plugins(types)
        elif name == "system_properties":
            body = "\n-- System properties --\n" + self._format(self._process.system_properties())
        elif name == "environment":
            body = "\n-- Environment variables --\n" + self._format(
                self._process.environment_variables()
            )
        else:
            body = "\n-- Additional miscellany --\n" + self._format(self._process.miscellany())
        tracker.step()
        return body

    def _application_section(self) -> str:
        chunks: list[str] = []
        for name, app in dict(self._apps.apps()).items():
            chunks.append(
                f"\n-- Application: {name} --\n"
                f"Title = {app.title}\n"
                f"Version = {app.version}\n"
                f"groupId = {app.group_id}\n"
                f"artifactId = {app.artifact_id}\n"
            )
            if app.manifest is not None:
                chunks.append(self._format(app.manifest))
        return "".join(chunks)

    def _dependency_section(
        self,
        descriptors: Sequence[DependencyDescriptor],
        tracker: _Progress,
    ) -> tuple[str, tuple[str, ...]]:
        clashes = detect_clashes(descriptors)
        chunks = [f"[WARNING] {warning}\n" for warning in clashes.warnings]
        tracker.step()
        for descriptor in sorted_descriptors(descriptors):
            tracker.step()
            chunks.append(self.library_block(descriptor))
        tracker.step()
        return "".join(chunks), clashes.warnings

    def summarize_plugins(self, declared_types: Sequence[Hashable] | None = None) -> str:
        """Render the plugin section for the configured registry."""
        return render_plugin_summary(self._plugins, declared_types)

    def source_ref(self, descriptor: DependencyDescriptor) -> str | None:
        """Resolve the source reference of ``descriptor`` with this report's settings."""
        return resolve_source_ref(
            descriptor,
            self._manifest_lookup,
            placeholder_tags=self._placeholder_tags,
            build_id_key=self._build_id_key,
            container_separator=self._container_separator,
        )

    def library_block(self, descriptor: DependencyDescriptor) -> str:
        """Render one ``-- Library: <title> --`` block; absent fields are omitted."""
        lines = [f"\n-- Library: {descriptor.title} --\n"]
        for label, attribute in _LIBRARY_FIELDS:
            value = getattr(descriptor, attribute)
            if value is not None:
                lines.append(f"{label} = {value}\n")
        ref = self.source_ref(descriptor)
        if ref is not None:
            lines.append(f"source ref = {ref}\n")
        return "".join(lines)
