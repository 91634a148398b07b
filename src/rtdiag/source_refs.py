"""Best-effort resolution of the source revision a dependency was built from."""

from __future__ import annotations

import zipfile
from collections.abc import Callable, Iterable, Mapping
from urllib.parse import unquote, urlparse

from rtdiag.dependencies import DependencyDescriptor
from rtdiag_common.errors import ManifestReadError
from rtdiag_common.logging import get_logger

__all__ = [
    "BUILD_ID_KEY",
    "MANIFEST_ENTRY",
    "PLACEHOLDER_TAGS",
    "ManifestLookup",
    "parse_manifest",
    "read_archive_manifest",
    "resolve_source_ref",
]

LOGGER = get_logger(__name__)

ManifestLookup = Callable[[str], Mapping[str, str]]

BUILD_ID_KEY = "Implementation-Build"
MANIFEST_ENTRY = "META-INF/MANIFEST.MF"
PLACEHOLDER_TAGS: tuple[str, ...] = ("HEAD", "master")

# zipfile raises RuntimeError for encrypted members and NotImplementedError
# for unsupported compression methods.
_ARCHIVE_ERRORS = (
    OSError,
    zipfile.BadZipFile,
    KeyError,
    ValueError,
    RuntimeError,
    NotImplementedError,
)
_LOOKUP_ERRORS = (ManifestReadError, *_ARCHIVE_ERRORS)


def resolve_source_ref(
    descriptor: DependencyDescriptor,
    manifest_lookup: ManifestLookup,
    *,
    placeholder_tags: Iterable[str] = PLACEHOLDER_TAGS,
    build_id_key: str = BUILD_ID_KEY,
    container_separator: str = "!",
) -> str | None:
    """Return the best available revision identifier for ``descriptor``.

    The SCM tag wins when it is a real tag, i.e. non-empty and not one of
    ``placeholder_tags`` (branch names such as ``HEAD``). Otherwise, when the
    descriptor was read out of an archive (``location_path`` contains
    ``container_separator``), the archive manifest is consulted for
    ``build_id_key``. Lookup failures are logged at debug level and yield
    no ref.

    Parameters
    ----------
    descriptor : DependencyDescriptor
        Descriptor to resolve.
    manifest_lookup : ManifestLookup
        Callable returning the manifest of the archive at a given path.
    placeholder_tags : Iterable[str], optional
        Tags treated as absent. Defaults to ``("HEAD", "master")``.
    build_id_key : str, optional
        Manifest key holding the build identifier.
    container_separator : str, optional
        Separator between the archive path and the member path.

    Returns
    -------
    str | None
        The tag or build identifier, or None when neither is available.
    """
    tag = descriptor.scm_tag
    if tag and tag not in set(placeholder_tags):
        return tag

    location = descriptor.location_path
    if not location or container_separator not in location:
        return None
    container = location[: location.index(container_separator)]
    try:
        manifest = manifest_lookup(container)
        value = manifest.get(build_id_key)
    except _LOOKUP_ERRORS as exc:
        LOGGER.debug(
            "Container manifest unavailable",
            exc_info=exc,
            extra={
                "operation": "resolve_source_ref",
                "status": "degraded",
                "container": container,
                "coordinate": descriptor.coordinate,
            },
        )
        return None
    return value or None


def parse_manifest(text: str) -> dict[str, str]:
    """Parse the main section of a ``MANIFEST.MF`` document.

    Lines read ``Key: Value``; a line starting with a single space continues
    the previous value. The main section ends at the first blank line.

    Examples
    --------
    >>> parse_manifest("Implementation-Build: 1a2b\\n 3c4d\\n\\nName: x\\n")
    {'Implementation-Build': '1a2b3c4d'}
    """
    attributes: dict[str, str] = {}
    last_key: str | None = None
    for line in text.splitlines():
        if not line.strip():
            break
        if line.startswith(" ") and last_key is not None:
            attributes[last_key] += line[1:]
            continue
        key, sep, value = line.partition(":")
        if not sep:
            message = f"Malformed manifest line: {line!r}"
            raise ValueError(message)
        last_key = key.strip()
        attributes[last_key] = value.strip()
    return attributes


def _archive_path(container_path: str) -> str:
    path = container_path
    if path.startswith("jar:"):
        path = path[len("jar:") :]
    if path.startswith("file:"):
        path = unquote(urlparse(path).path)
    return path


def read_archive_manifest(container_path: str, *, entry: str = MANIFEST_ENTRY) -> dict[str, str]:
    """Open the zip archive at ``container_path`` and parse its manifest.

    ``file:`` and ``jar:`` URL prefixes are accepted.

    Parameters
    ----------
    container_path : str
        Filesystem path or URL of the archive.
    entry : str, optional
        Archive member holding the manifest. Defaults to ``META-INF/MANIFEST.MF``.

    Returns
    -------
    dict[str, str]
        Main-section manifest attributes.

    Raises
    ------
    ManifestReadError
        If the archive cannot be opened or the manifest is missing or malformed.
    """
    path = _archive_path(container_path)
    try:
        with zipfile.ZipFile(path) as archive:
            raw = archive.read(entry)
        return parse_manifest(raw.decode("utf-8"))
    except _ARCHIVE_ERRORS as exc:
        msg = f"Cannot read manifest {entry} from {path}"
        raise ManifestReadError(msg, cause=exc, context={"container": path}) from exc
