"""Dependency descriptors, their sources and version clash detection."""

from __future__ import annotations

import json
import zipfile
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from importlib.metadata import Distribution, distributions
from pathlib import Path
from typing import Protocol

from rtdiag_common.logging import get_logger

__all__ = [
    "ClashReport",
    "DependencyDescriptor",
    "DependencySource",
    "DistributionDependencySource",
    "StaticDependencySource",
    "detect_clashes",
    "sorted_descriptors",
]

LOGGER = get_logger(__name__)


def _absent_first(value: str | None) -> tuple[bool, str]:
    return (value is not None, value or "")


@dataclass(frozen=True, slots=True)
class DependencyDescriptor:
    """Metadata about one dependency found in the running process.

    Instances order naturally by ``group_id``, then ``artifact_id``, then
    ``version``; absent fields sort first.
    """

    group_id: str | None
    artifact_id: str | None
    version: str | None
    project_name: str | None = None
    project_url: str | None = None
    inception_year: str | None = None
    organization_name: str | None = None
    organization_url: str | None = None
    scm_connection: str | None = None
    scm_tag: str | None = None
    location_path: str | None = None

    @property
    def coordinate(self) -> str:
        """Return the ``group_id:artifact_id`` pair, independent of version."""
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def title(self) -> str:
        """Return the project name, falling back to the coordinate."""
        return self.project_name if self.project_name is not None else self.coordinate

    def sort_key(self) -> tuple[tuple[bool, str], tuple[bool, str], tuple[bool, str]]:
        return (
            _absent_first(self.group_id),
            _absent_first(self.artifact_id),
            _absent_first(self.version),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DependencyDescriptor):
            return NotImplemented
        return self.sort_key() < other.sort_key()


@dataclass(frozen=True, slots=True)
class ClashReport:
    """Outcome of clash detection over one discovery-ordered descriptor list.

    Attributes
    ----------
    kept : Mapping[str, DependencyDescriptor]
        First-discovered descriptor per coordinate.
    warnings : tuple[str, ...]
        One message per shadowed duplicate, in discovery order.
    """

    kept: Mapping[str, DependencyDescriptor]
    warnings: tuple[str, ...]


class DependencySource(Protocol):
    """Capability listing every dependency descriptor visible to the process."""

    def list_all_descriptors(self) -> Sequence[DependencyDescriptor]:
        """Return descriptors in discovery order."""
        ...


class StaticDependencySource:
    """Dependency source backed by an explicit descriptor list."""

    def __init__(self, descriptors: Iterable[DependencyDescriptor]) -> None:
        self._descriptors = tuple(descriptors)

    def list_all_descriptors(self) -> Sequence[DependencyDescriptor]:
        return self._descriptors


def detect_clashes(descriptors: Sequence[DependencyDescriptor]) -> ClashReport:
    """Group ``descriptors`` by coordinate and flag shadowed duplicates.

    Descriptors are visited in the order given, which must be discovery
    order. The first descriptor seen for a coordinate is kept; every later
    one produces a warning and never replaces it, whatever its version.

    Parameters
    ----------
    descriptors : Sequence[DependencyDescriptor]
        Descriptors in discovery order.

    Returns
    -------
    ClashReport
        Kept descriptors by coordinate and the clash warnings.

    Examples
    --------
    >>> first = DependencyDescriptor("org.demo", "core", "1.0")
    >>> later = DependencyDescriptor("org.demo", "core", "2.0")
    >>> detect_clashes([first, later]).warnings
    ('Version clash for org.demo:core: 2.0 shadows 1.0',)
    """
    kept: dict[str, DependencyDescriptor] = {}
    warnings: list[str] = []
    for descriptor in list(descriptors):
        coordinate = descriptor.coordinate
        prior = kept.get(coordinate)
        if prior is None:
            kept[coordinate] = descriptor
            continue
        warnings.append(
            f"Version clash for {coordinate}: {descriptor.version} shadows {prior.version}"
        )
    return ClashReport(kept=kept, warnings=tuple(warnings))


def sorted_descriptors(descriptors: Iterable[DependencyDescriptor]) -> list[DependencyDescriptor]:
    """Return a display-ordered copy of ``descriptors`` (natural ordering)."""
    return sorted(descriptors, key=DependencyDescriptor.sort_key)


class DistributionDependencySource:
    """Dependency source over installed Python distributions.

    Distributions are listed in ``sys.path`` discovery order, so a second
    install of the same project further down the path shows up as a
    shadowed duplicate. Python packaging has no group concept; every
    distribution shares ``group_id``.

    Parameters
    ----------
    group_id : str, optional
        Group reported for every distribution. Defaults to ``"pypi"``.
    path : list[str] | None, optional
        Search path override; defaults to ``sys.path``.
    container_separator : str, optional
        Separator placed between a zip archive and its member. Defaults to ``"!"``.
    """

    def __init__(
        self,
        *,
        group_id: str = "pypi",
        path: list[str] | None = None,
        container_separator: str = "!",
    ) -> None:
        self._group_id = group_id
        self._path = path
        self._separator = container_separator

    def list_all_descriptors(self) -> Sequence[DependencyDescriptor]:
        found = distributions() if self._path is None else distributions(path=self._path)
        descriptors = []
        for dist in found:
            descriptor = self.describe(dist)
            if descriptor is not None:
                descriptors.append(descriptor)
        return descriptors

    def describe(self, dist: Distribution) -> DependencyDescriptor | None:
        """Build a descriptor from one distribution's core metadata."""
        metadata = dist.metadata
        name = metadata.get("Name") if metadata is not None else None
        if not name:
            LOGGER.debug(
                "Skipping distribution without a name",
                extra={"operation": "list_descriptors", "location": self._location_of(dist)},
            )
            return None
        scm_connection, scm_tag = _vcs_info(dist)
        project_url = metadata.get("Home-page") or _first_project_url(
            metadata.get_all("Project-URL")
        )
        return DependencyDescriptor(
            group_id=self._group_id,
            artifact_id=name,
            version=metadata.get("Version"),
            project_name=name,
            project_url=project_url,
            organization_name=metadata.get("Author") or metadata.get("Maintainer"),
            scm_connection=scm_connection,
            scm_tag=scm_tag,
            location_path=self._location_of(dist),
        )

    def _location_of(self, dist: Distribution) -> str | None:
        origin = _metadata_origin(dist)
        if origin is None:
            return None
        root = getattr(origin, "root", None)
        archive = getattr(root, "filename", None)
        if archive:
            # zipfile.Path: archive on sys.path with the metadata directory inside it
            return f"{archive}{self._separator}/{getattr(origin, 'at', '')}"
        return str(origin)


def _metadata_origin(dist: Distribution) -> Path | zipfile.Path | None:
    """Return the metadata directory of ``dist``, or None when it is unknown.

    ``importlib.metadata`` only exposes it through the private
    ``PathDistribution._path`` attribute, a ``pathlib.Path`` or a ``zipfile.Path``
    for archives on ``sys.path``. Any other shape yields None.
    """
    origin = getattr(dist, "_path", None)
    if isinstance(origin, (Path, zipfile.Path)):
        return origin
    return None


def _first_project_url(entries: list[str] | None) -> str | None:
    for entry in entries or ():
        _, _, url = entry.partition(",")
        if url.strip():
            return url.strip()
    return None


def _vcs_info(dist: Distribution) -> tuple[str | None, str | None]:
    raw = dist.read_text("direct_url.json")
    if not raw:
        return None, None
    try:
        payload = json.loads(raw)
    except ValueError:
        LOGGER.debug(
            "Ignoring malformed direct_url.json",
            extra={"operation": "list_descriptors", "status": "skipped"},
        )
        return None, None
    vcs = payload.get("vcs_info") if isinstance(payload, dict) else None
    if not isinstance(vcs, dict):
        return None, None
    url = payload.get("url")
    connection = f"{vcs.get('vcs', 'vcs')}+{url}" if url else None
    tag = vcs.get("requested_revision")
    return connection, tag if isinstance(tag, str) else None
