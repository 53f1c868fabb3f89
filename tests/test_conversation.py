"""
Tests for the conversation log and system prompt.

Run with:
$ pytest -q
"""

import pydantic
import pytest

from archie.agent.conversation import Conversation
from archie.agent.prompts import build_system_prompt
from archie.core.schema import Turn
from archie.tools import get_tool_descriptors
from archie.tools.sandbox import Workspace
from archie.tools.tool_call_parser import parse_tool_call


def test_to_messages_renders_every_turn() -> None:
    conv = Conversation()
    conv.add_user("list my files")
    conv.add_assistant("[TOOL: list_files]\n[/TOOL]")
    conv.add_tool_result("list_files", "[FILE] a.txt (0.1KB)")

    messages = conv.to_messages("SYSTEM")

    assert messages == [
        {"role": "system", "content": "SYSTEM"},
        {"role": "user", "content": "list my files"},
        {"role": "assistant", "content": "[TOOL: list_files]\n[/TOOL]"},
        {"role": "user", "content": "[Result of list_files]\n[FILE] a.txt (0.1KB)"},
    ]


def test_reset_empties_the_log() -> None:
    conv = Conversation()
    conv.add_user("hi")
    conv.add_assistant("hello")

    conv.reset()

    assert len(conv) == 0
    assert conv.to_messages("S") == [{"role": "system", "content": "S"}]


def test_turns_are_immutable() -> None:
    conv = Conversation()
    conv.add_user("hi")
    turn = conv.turns[0]

    with pytest.raises(pydantic.ValidationError):
        turn.content = "changed"  # type: ignore[misc]
    with pytest.raises(pydantic.ValidationError):
        Turn(role="system", content="not a turn role")  # type: ignore[arg-type]


def test_system_prompt_lists_tools_and_parses_examples(workspace: Workspace) -> None:
    """The prompt names every tool and its examples are valid calls."""
    tools = get_tool_descriptors()

    prompt = build_system_prompt(workspace, tools)

    assert str(workspace.root) in prompt
    assert "Not configured" in prompt
    for tool in tools:
        assert f"- {tool.name}(" in prompt
    example = prompt.split("- To create a file:\n", 1)[1]
    call = parse_tool_call(example)
    assert call is not None
    assert call.name == "create_file"
    assert call.params == {"name": "my_file.txt", "content": "This is the file content"}
