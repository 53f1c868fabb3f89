"""
Tests for the marker-based tool-call parser.

Run with:
$ pytest -q
"""

from archie.tools.tool_call_parser import (
    format_tool_call,
    parse_tool_call,
)


def test_parse_simple_call() -> None:
    """Name and parameters are recovered from text surrounding the region."""
    call = parse_tool_call("Sure.\n[TOOL: read_file]\npath: notes.txt\n[/TOOL]\nThanks")

    assert call is not None
    assert call.name == "read_file"
    assert call.params == {"path": "notes.txt"}


def test_markers_are_case_insensitive() -> None:
    """Lower-case markers are accepted."""
    call = parse_tool_call("[tool: list_files]\ndirectory: docs\npattern: *.md\n[/tool]")

    assert call is not None
    assert call.name == "list_files"
    assert call.params == {"directory": "docs", "pattern": "*.md"}


def test_no_marker_means_no_call() -> None:
    """Plain text is a final answer."""
    assert parse_tool_call("Hello! How can I help you today?") is None


def test_unclosed_region_means_no_call() -> None:
    """An opening marker without its closing marker is not a call."""
    assert parse_tool_call("[TOOL: read_file]\npath: a.txt\n") is None


def test_multiline_value_keeps_continuation_lines() -> None:
    """Indented lines belong to the value of the previous key."""
    text = (
        "[TOOL: create_file]\n"
        "name: poem.txt\n"
        "content: first line\n"
        "  second line\n"
        "\tthird line\n"
        "[/TOOL]"
    )
    call = parse_tool_call(text)

    assert call is not None
    assert call.params["name"] == "poem.txt"
    assert call.params["content"] == "first line\n  second line\n\tthird line"


def test_blank_values_are_dropped() -> None:
    """A key with an empty value is treated as not provided."""
    text = "[TOOL: download_file]\nurl: https://example.com/a.zip\nname:   \n[/TOOL]"
    call = parse_tool_call(text)

    assert call is not None
    assert call.params == {"url": "https://example.com/a.zip"}
    assert "name" not in call.params


def test_value_may_contain_separator() -> None:
    """Only the first colon of a key line separates key and value."""
    call = parse_tool_call("[TOOL: download_file]\nurl: http://host:8080/file\n[/TOOL]")

    assert call is not None
    assert call.params == {"url": "http://host:8080/file"}


def test_only_first_region_is_used() -> None:
    """Later regions are ignored."""
    text = "[TOOL: read_file]\npath: a\n[/TOOL]\n[TOOL: delete_file]\npath: a\n[/TOOL]"
    call = parse_tool_call(text)

    assert call is not None
    assert call.name == "read_file"


def test_column_zero_colon_line_starts_new_key() -> None:
    """An unindented ``word: text`` line inside a value becomes its own key."""
    text = "[TOOL: create_file]\nname: memo.txt\ncontent: Dear Bob\nNote: call me\n[/TOOL]"
    call = parse_tool_call(text)

    assert call is not None
    assert call.params == {"name": "memo.txt", "content": "Dear Bob", "Note": "call me"}


def test_leading_lines_without_key_are_ignored() -> None:
    """Continuation text before the first key has nowhere to go."""
    call = parse_tool_call("[TOOL: read_file]\nplease read\npath: a.txt\n[/TOOL]")

    assert call is not None
    assert call.params == {"path": "a.txt"}


def test_line_starting_with_separator_is_continuation() -> None:
    """A colon at position 0 does not make a key line."""
    call = parse_tool_call("[TOOL: create_file]\ncontent: a\n:b\n[/TOOL]")

    assert call is not None
    assert call.params == {"content": "a\n:b"}


def test_empty_region() -> None:
    """A call without parameters."""
    call = parse_tool_call("[TOOL: list_files][/TOOL]")

    assert call is not None
    assert call.name == "list_files"
    assert call.params == {}


def test_windows_line_endings() -> None:
    """CRLF output parses like LF output."""
    call = parse_tool_call("[TOOL: move_file]\r\nsource: a.txt\r\ndestination: b.txt\r\n[/TOOL]")

    assert call is not None
    assert call.params == {"source": "a.txt", "destination": "b.txt"}


def test_format_tool_call_is_parseable() -> None:
    """The examples rendered into the system prompt parse back to the same call."""
    text = format_tool_call("create_file", {"name": "my_file.txt", "content": "hello"})
    call = parse_tool_call(text)

    assert call is not None
    assert call.name == "create_file"
    assert call.params == {"name": "my_file.txt", "content": "hello"}
