"""Runtime diagnostics: introspect live registries and render stable reports."""

from __future__ import annotations

from rtdiag.dependencies import DependencyDescriptor, detect_clashes
from rtdiag.formatting import format_mapping
from rtdiag.plugins import PluginDescriptor, summarize_plugins
from rtdiag.report import SystemInformation, SystemReport
from rtdiag.source_refs import resolve_source_ref
from rtdiag.subscribers import EventBus, inspect_subscribers

__all__ = [
    "DependencyDescriptor",
    "EventBus",
    "PluginDescriptor",
    "SystemInformation",
    "SystemReport",
    "detect_clashes",
    "format_mapping",
    "inspect_subscribers",
    "resolve_source_ref",
    "summarize_plugins",
]
