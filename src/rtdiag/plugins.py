"""Plugin registries and the per-type plugin summary."""

from __future__ import annotations

import itertools
from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from importlib.metadata import EntryPoint, distributions
from typing import Protocol

from rtdiag_common.logging import get_logger

__all__ = [
    "ClassPluginIndex",
    "EntryPointPluginRegistry",
    "PluginDescriptor",
    "PluginRegistry",
    "sorted_plugin_types",
    "summarize_plugins",
    "type_name",
]

LOGGER = get_logger(__name__)


def type_name(declared_type: object) -> str:
    """Return the fully qualified display name of a declared plugin type.

    Examples
    --------
    >>> type_name(ValueError)
    'builtins.ValueError'
    >>> type_name("myapp.readers")
    'myapp.readers'
    """
    if isinstance(declared_type, type):
        return f"{declared_type.__module__}.{declared_type.__qualname__}"
    return str(declared_type)


@dataclass(frozen=True, slots=True)
class PluginDescriptor:
    """One plugin registration.

    Attributes
    ----------
    declared_type : Hashable
        Capability the plugin registered under (a class or a group name).
    concrete_identity : str
        Name of the concrete implementation.
    label : str | None
        Optional display string; defaults to ``concrete_identity``.
    """

    declared_type: Hashable
    concrete_identity: str
    label: str | None = None

    def __str__(self) -> str:
        return self.label if self.label is not None else self.concrete_identity


class PluginRegistry(Protocol):
    """Capability exposing plugin registrations indexed by declared type."""

    def all_declared_types(self) -> set[Hashable]:
        """Return the distinct declared types present in the registry."""
        ...

    def descriptors_for_type(self, declared_type: Hashable) -> Sequence[PluginDescriptor]:
        """Return registrations matching ``declared_type``, narrower ones included."""
        ...


class ClassPluginIndex:
    """In-memory plugin registry whose declared types are Python classes.

    ``descriptors_for_type`` matches subclasses too, so narrower
    sub-registrations come back alongside exact ones, in registration order.
    """

    def __init__(self, descriptors: Iterable[PluginDescriptor] = ()) -> None:
        self._descriptors: list[PluginDescriptor] = []
        for descriptor in descriptors:
            self.add(descriptor)

    def add(self, descriptor: PluginDescriptor) -> None:
        if not isinstance(descriptor.declared_type, type):
            message = f"Declared type must be a class, got {descriptor.declared_type!r}"
            raise TypeError(message)
        self._descriptors.append(descriptor)

    def register(self, declared_type: type, plugin: type, label: str | None = None) -> None:
        """Register the concrete class ``plugin`` under ``declared_type``."""
        self.add(PluginDescriptor(declared_type, type_name(plugin), label))

    def all_declared_types(self) -> set[Hashable]:
        return {descriptor.declared_type for descriptor in list(self._descriptors)}

    def descriptors_for_type(self, declared_type: Hashable) -> Sequence[PluginDescriptor]:
        if not isinstance(declared_type, type):
            return []
        return [
            descriptor
            for descriptor in list(self._descriptors)
            if isinstance(descriptor.declared_type, type)
            and issubclass(descriptor.declared_type, declared_type)
        ]


class EntryPointPluginRegistry:
    """Plugin registry over installed entry points.

    Declared types are entry-point group names; a group nested under
    ``"<group>."`` is a narrower sub-registration of ``<group>``.

    Parameters
    ----------
    prefix : str | None, optional
        Only groups equal to or nested under this prefix are exposed.
    entries : Iterable[EntryPoint] | None, optional
        Explicit entry points; defaults to every installed entry point.
    path : list[str] | None, optional
        Search path for installed distributions; defaults to ``sys.path``.
    """

    def __init__(
        self,
        prefix: str | None = None,
        entries: Iterable[EntryPoint] | None = None,
        path: list[str] | None = None,
    ) -> None:
        self._prefix = prefix
        self._entries = tuple(entries) if entries is not None else None
        self._path = path

    def _iter_entries(self) -> tuple[EntryPoint, ...]:
        found = self._entries if self._entries is not None else self._installed()
        if self._prefix is None:
            return found
        return tuple(ep for ep in found if _within(ep.group, self._prefix))

    def _installed(self) -> tuple[EntryPoint, ...]:
        # entry_points() without arguments returns a group mapping before 3.12
        found = distributions() if self._path is None else distributions(path=self._path)
        return tuple(itertools.chain.from_iterable(dist.entry_points for dist in found))

    def all_declared_types(self) -> set[Hashable]:
        return {ep.group for ep in self._iter_entries()}

    def descriptors_for_type(self, declared_type: Hashable) -> Sequence[PluginDescriptor]:
        group = str(declared_type)
        return [
            PluginDescriptor(ep.group, ep.value, f"{ep.name} = {ep.value}")
            for ep in self._iter_entries()
            if _within(ep.group, group)
        ]


def _within(group: str, parent: str) -> bool:
    return group == parent or group.startswith(f"{parent}.")


def sorted_plugin_types(registry: PluginRegistry) -> list[Hashable]:
    """Return the registry's distinct declared types ordered by display name."""
    return sorted(registry.all_declared_types(), key=lambda t: (type_name(t), repr(t)))


def _summarize_type(registry: PluginRegistry, declared_type: Hashable) -> str:
    matches = [
        descriptor
        for descriptor in list(registry.descriptors_for_type(declared_type))
        if descriptor.declared_type == declared_type
    ]
    if not matches:
        return ""
    lines = [f"\n-- {len(matches)} {type_name(declared_type)} plugins --\n"]
    lines.extend(f"{descriptor}\n" for descriptor in matches)
    return "".join(lines)


def summarize_plugins(
    registry: PluginRegistry,
    declared_types: Sequence[Hashable] | None = None,
) -> str:
    """Render the plugin listing grouped by declared type.

    Types are ordered by fully qualified name. For each type only plugins
    whose own declared type is exactly that type are counted and listed, in
    registry order; narrower sub-registrations are left to their own
    section. Types with no exact match produce no output at all.

    Parameters
    ----------
    registry : PluginRegistry
        Registry to summarize.
    declared_types : Sequence[Hashable] | None, optional
        Pre-sorted types, as returned by :func:`sorted_plugin_types`.

    Returns
    -------
    str
        One ``-- <count> <type> plugins --`` block per non-empty type, each
        preceded by a blank line.
    """
    types = declared_types if declared_types is not None else sorted_plugin_types(registry)
    sections = [_summarize_type(registry, declared_type) for declared_type in types]
    LOGGER.debug(
        "Summarized plugin registry",
        extra={"operation": "summarize_plugins", "type_count": len(types)},
    )
    return "".join(sections)
