"""Tests for key/value report formatting."""

from __future__ import annotations

import pytest

from rtdiag.formatting import NULL_PLACEHOLDER, format_mapping, split_path_list


class TestFormatMapping:
    """Tests for format_mapping."""

    def test_sorted_by_string_key(self) -> None:
        """Entries render one per line in code point order of their keys."""
        text = format_mapping({"b": "2", "a": "1", "B": "3"})
        assert text == "B = 3\na = 1\nb = 2\n"

    def test_non_string_keys_sort_by_string_form(self) -> None:
        """Keys are compared by str(), so 10 sorts before 9."""
        text = format_mapping({9: "nine", 10: "ten"})
        assert text.splitlines() == ["10 = ten", "9 = nine"]

    def test_absent_value_renders_placeholder(self) -> None:
        """A None value renders as (null)."""
        assert format_mapping({"C compiler": None}) == f"C compiler = {NULL_PLACEHOLDER}\n"

    def test_absent_key_is_skipped(self) -> None:
        """A None key sorts first and is not rendered."""
        assert format_mapping({None: "x", "a": "1"}) == "a = 1\n"

    def test_empty_mapping(self) -> None:
        assert format_mapping({}) == ""

    def test_values_are_verbatim(self) -> None:
        """No escaping is applied to values."""
        assert format_mapping({"k": "a = b\tc"}) == "k = a = b\tc\n"

    def test_dirs_key_renders_path_block(self) -> None:
        """A .dirs key splits its value on the path separator."""
        text = format_mapping({"plugin.ext.dirs": "/a:/b"}, path_separator=":")
        assert text == "plugin.ext.dirs = {\n\t/a\n\t/b\n}\n"

    def test_path_key_with_single_segment(self) -> None:
        """The block form applies even to a single segment."""
        text = format_mapping({"sys.path": "/only"}, path_separator=":")
        assert text == "sys.path = {\n\t/only\n}\n"

    def test_path_key_with_absent_value(self) -> None:
        text = format_mapping({"sys.path": None}, path_separator=":")
        assert text == "sys.path = {\n\t(null)\n}\n"

    def test_path_block_sorted_with_other_keys(self) -> None:
        text = format_mapping({"z": "1", "a.path": "/x;/y"}, path_separator=";")
        assert text == "a.path = {\n\t/x\n\t/y\n}\nz = 1\n"

    def test_custom_suffixes(self) -> None:
        """Only configured suffixes trigger the block form."""
        text = format_mapping(
            {"sys.path": "/a:/b", "include.list": "/c:/d"},
            path_separator=":",
            path_list_suffixes=(".list",),
        )
        assert text == "include.list = {\n\t/c\n\t/d\n}\nsys.path = /a:/b\n"

    def test_input_not_mutated(self) -> None:
        entries = {"b": "2", "a": None}
        format_mapping(entries)
        assert entries == {"b": "2", "a": None}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("/a:/b", ["/a", "/b"]),
        ("/a:/b:", ["/a", "/b"]),
        (":/a", ["", "/a"]),
        ("/a::/b", ["/a", "", "/b"]),
        ("", [""]),
        ("::", []),
    ],
)
def test_split_path_list(value: str, expected: list[str]) -> None:
    """Trailing empty segments are dropped; an empty value keeps one segment."""
    assert split_path_list(value, ":") == expected
