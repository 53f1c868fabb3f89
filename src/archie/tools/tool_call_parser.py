"""
Parser for tool calls embedded in free-form model output.

The model asks for a tool by writing a marker region anywhere in its reply:

    [TOOL: tool_name]
    key1: value one
    key2: first line of a value
      continuation lines are appended to the previous key
    [/TOOL]

Tokenizing rules for the lines inside the region:

* A line whose first ``:`` is not at position 0 and which does not start with a space or tab is a
  *key line*.  The text before the ``:`` (trimmed) is the key, the rest is the start of the value.
* Every other line is a *continuation line* and is appended (with a newline) to the value of the
  most recent key.  Continuation lines before the first key are ignored.
* Values are trimmed; a key whose trimmed value is empty is dropped.
* A repeated key replaces the earlier value.

A value line that itself looks like ``word: text`` at column zero therefore starts a new key; the
model has to indent such lines to keep them inside a multi-line value.
"""

import re
from typing import (
    Dict,
    Iterator,
    List,
    NamedTuple,
    Optional,
)

from archie.core.schema import ToolCall

OPEN_MARKER = "[TOOL: {name}]"
CLOSE_MARKER = "[/TOOL]"

_REGION_RE = re.compile(r"\[TOOL:\s*(\w+)\]([\s\S]*?)\[/TOOL\]", re.IGNORECASE)
_SEPARATOR = ":"


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------
class _Token(NamedTuple):
    kind: str  # "key" or "cont"
    key: str
    text: str


def _is_key_line(line: str) -> bool:
    if line.startswith((" ", "\t")):
        return False
    return line.find(_SEPARATOR) > 0


def _tokenize(body: str) -> Iterator[_Token]:
    for line in body.split("\n"):
        if _is_key_line(line):
            key, _, rest = line.partition(_SEPARATOR)
            yield _Token("key", key.strip(), rest)
        else:
            yield _Token("cont", "", line)


def _fold(tokens: Iterator[_Token]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    key: Optional[str] = None
    parts: List[str] = []

    def flush() -> None:
        if key is None:
            return
        value = "\n".join(parts).strip()
        if value:
            params[key] = value

    for token in tokens:
        if token.kind == "key":
            flush()
            key, parts = token.key, [token.text]
        elif key is not None:
            parts.append(token.text)
    flush()
    return params


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------
def parse_tool_call(text: str) -> Optional[ToolCall]:
    """
    Extract the first marker region from *text*.

    Returns
    -------
    ToolCall | None
        The tool name and its non-blank raw parameters, or *None* when *text* contains no
        well-formed region (the whole text is then a final answer).
    """
    match = _REGION_RE.search(text)
    if match is None:
        return None
    name = match.group(1).strip()
    body = match.group(2).strip().replace("\r\n", "\n")
    return ToolCall(name=name, params=_fold(_tokenize(body)))


def format_tool_call(name: str, params: Dict[str, str] | None = None) -> str:
    """Render a call in the marker format (used for prompt examples)."""
    lines = [OPEN_MARKER.format(name=name)]
    lines.extend(f"{key}: {value}" for key, value in (params or {}).items())
    lines.append(CLOSE_MARKER)
    return "\n".join(lines)
