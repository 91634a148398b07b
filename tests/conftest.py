"""Shared pytest fixtures for the diagnostics test suite."""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from rtdiag.apps import Application, StaticAppRegistry
from rtdiag.dependencies import DependencyDescriptor
from rtdiag.process import StaticProcess

ArchiveFactory = Callable[..., Path]


@pytest.fixture
def make_archive(tmp_path: Path) -> ArchiveFactory:
    """Return a factory writing a zip archive with an optional manifest."""

    def _make(name: str = "lib.jar", manifest: str | None = None) -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as archive:
            if manifest is not None:
                archive.writestr("META-INF/MANIFEST.MF", manifest)
            archive.writestr("placeholder.txt", "x")
        return path

    return _make


@pytest.fixture
def demo_apps() -> StaticAppRegistry:
    return StaticAppRegistry(
        [
            Application(
                name="demo",
                title="Demo",
                version="2.1.0",
                group_id="org.demo",
                artifact_id="demo-app",
                manifest={"Implementation-Build": "abc123"},
            )
        ]
    )


@pytest.fixture
def demo_process() -> StaticProcess:
    return StaticProcess(
        properties={"python.version": "3.12.1", "sys.path": "/a:/b"},
        environment={"HOME": "/home/demo"},
        miscellany={"C compiler": None, "pip installer": "/site/pip/__init__.py"},
    )


@pytest.fixture
def make_descriptor() -> Callable[..., DependencyDescriptor]:
    """Return a factory building descriptors under the ``org.demo`` group."""

    def _make(
        artifact_id: str,
        version: str | None = "1.0",
        *,
        group_id: str | None = "org.demo",
        **fields: str | None,
    ) -> DependencyDescriptor:
        return DependencyDescriptor(
            group_id=group_id, artifact_id=artifact_id, version=version, **fields
        )

    return _make


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """Undo root handler changes made by ``setup_logging`` during a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
