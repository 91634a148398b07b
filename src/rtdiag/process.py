"""Introspection of the running interpreter process."""

from __future__ import annotations

import importlib.util
import os
import platform
import shutil
import site
import sys
import sysconfig
from collections.abc import Mapping
from typing import Protocol

__all__ = ["LiveProcess", "ProcessIntrospection", "StaticProcess"]


class ProcessIntrospection(Protocol):
    """Capability exposing generic key/value dumps of the process."""

    def system_properties(self) -> Mapping[str, str | None]:
        """Return interpreter and platform properties."""
        ...

    def environment_variables(self) -> Mapping[str, str]:
        """Return the process environment."""
        ...

    def miscellany(self) -> Mapping[str, str | None]:
        """Return optional toolchain components, each an identifier or None."""
        ...


class LiveProcess:
    """Introspection of the current interpreter.

    Path-like properties use keys ending in ``.path`` or ``.dirs`` and are
    joined with ``os.pathsep`` so the report renders them as lists.
    """

    def system_properties(self) -> Mapping[str, str | None]:
        return {
            "os.name": platform.system(),
            "os.release": platform.release(),
            "os.arch": platform.machine(),
            "python.implementation": platform.python_implementation(),
            "python.version": platform.python_version(),
            "python.compiler": platform.python_compiler(),
            "sys.executable": sys.executable or None,
            "sys.prefix": sys.prefix,
            "sys.base_prefix": sys.base_prefix,
            "sys.platlibdir": getattr(sys, "platlibdir", None),
            "sys.byteorder": sys.byteorder,
            "sys.path": os.pathsep.join(sys.path),
            "site.packages.dirs": os.pathsep.join(_site_packages()),
            "file.encoding": sys.getfilesystemencoding(),
        }

    def environment_variables(self) -> Mapping[str, str]:
        return dict(os.environ)

    def miscellany(self) -> Mapping[str, str | None]:
        return {
            "C compiler": _c_compiler(),
            "pip installer": _module_origin("pip"),
        }


class StaticProcess:
    """Process introspection over fixed mappings."""

    def __init__(
        self,
        properties: Mapping[str, str | None] | None = None,
        environment: Mapping[str, str] | None = None,
        miscellany: Mapping[str, str | None] | None = None,
    ) -> None:
        self._properties = dict(properties or {})
        self._environment = dict(environment or {})
        self._miscellany = dict(miscellany or {})

    def system_properties(self) -> Mapping[str, str | None]:
        return dict(self._properties)

    def environment_variables(self) -> Mapping[str, str]:
        return dict(self._environment)

    def miscellany(self) -> Mapping[str, str | None]:
        return dict(self._miscellany)


def _site_packages() -> list[str]:
    getter = getattr(site, "getsitepackages", None)
    # virtualenv's legacy site.py lacks getsitepackages
    return list(getter()) if callable(getter) else []


def _c_compiler() -> str | None:
    configured = sysconfig.get_config_var("CC")
    if not configured:
        return None
    executable = str(configured).split()[0]
    return shutil.which(executable)


def _module_origin(name: str) -> str | None:
    spec = importlib.util.find_spec(name)
    if spec is None:
        return None
    return spec.origin
