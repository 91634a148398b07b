"""Render key/value mappings as stable, human-readable report text."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping

__all__ = ["NULL_PLACEHOLDER", "PATH_LIST_SUFFIXES", "format_mapping", "split_path_list"]

NULL_PLACEHOLDER = "(null)"
PATH_LIST_SUFFIXES: tuple[str, ...] = (".dirs", ".path")


def _key_order(key: object) -> tuple[bool, str]:
    # Absent keys sort before every present key.
    if key is None:
        return False, ""
    return True, str(key)


def split_path_list(value: str, separator: str = os.pathsep) -> list[str]:
    """Split ``value`` on ``separator`` dropping trailing empty segments.

    An empty value still yields a single empty segment.

    Examples
    --------
    >>> split_path_list("/a:/b:", ":")
    ['/a', '/b']
    >>> split_path_list("", ":")
    ['']
    """
    if not value:
        return [value]
    segments = value.split(separator)
    while segments and not segments[-1]:
        segments.pop()
    return segments


def format_mapping(
    entries: Mapping[object, object],
    *,
    path_separator: str = os.pathsep,
    path_list_suffixes: Iterable[str] = PATH_LIST_SUFFIXES,
) -> str:
    """Render ``entries`` as ``key = value`` lines sorted by key.

    Keys are ordered by their string form using code point comparison. An
    absent value renders as ``(null)``. Keys ending with a path-list suffix
    render their value split on ``path_separator`` as an indented block::

        sys.path = {
        \t/usr/lib/python3.12
        \t/usr/lib/python3.12/site-packages
        }

    Absent keys sort first and are skipped. Values are not escaped.

    Parameters
    ----------
    entries : Mapping[object, object]
        Mapping to render. It is copied before iteration.
    path_separator : str, optional
        Separator for path-list values. Defaults to ``os.pathsep``.
    path_list_suffixes : Iterable[str], optional
        Key suffixes that trigger path-list rendering.

    Returns
    -------
    str
        Rendered text, one newline-terminated line per entry.
    """
    snapshot = dict(entries)
    suffixes = tuple(path_list_suffixes)
    lines: list[str] = []
    for key in sorted(snapshot, key=_key_order):
        if key is None:
            continue
        value = snapshot[key]
        s_key = str(key)
        s_value = NULL_PLACEHOLDER if value is None else str(value)
        if suffixes and s_key.endswith(suffixes):
            lines.append(f"{s_key} = {{\n")
            lines.extend(f"\t{segment}\n" for segment in split_path_list(s_value, path_separator))
            lines.append("}\n")
        else:
            lines.append(f"{s_key} = {s_value}\n")
    return "".join(lines)
