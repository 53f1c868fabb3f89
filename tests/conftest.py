"""Shared fixtures: a temporary workspace and a scripted model back-end."""

from pathlib import Path
from typing import (
    Callable,
    List,
    Optional,
    Sequence,
    Union,
)

import pytest

from archie.agent.conversation import ChatMessage
from archie.agent.planner_interface import BasePlanner
from archie.tools.sandbox import (
    PathSandbox,
    Workspace,
)


class ScriptedPlanner(BasePlanner):
    """Returns canned replies in order; an exception in the script is raised instead."""

    name = "scripted"

    def __init__(
        self,
        replies: Sequence[Union[str, Exception]],
        on_call: Optional[Callable[[int], None]] = None,
    ):
        super().__init__(model="script")
        self.replies = list(replies)
        self.calls: List[List[ChatMessage]] = []
        self.on_call = on_call

    async def _chat(self, messages: List[ChatMessage]) -> str:
        self.calls.append(messages)
        if self.on_call is not None:
            self.on_call(len(self.calls))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def tool_reply(tool_name: str, **params: str) -> str:
    """Model reply containing one tool call."""
    lines = ["Let me do that.", f"[TOOL: {tool_name}]"]
    lines.extend(f"{key}: {value}" for key, value in params.items())
    lines.append("[/TOOL]")
    return "\n".join(lines)


@pytest.fixture
def sandbox_root(tmp_path: Path) -> Path:
    """Empty sandbox directory inside pytest's tmp_path."""
    root = tmp_path / "sandbox"
    root.mkdir()
    return root


@pytest.fixture
def workspace(sandbox_root: Path) -> Workspace:
    """Workspace confined to *sandbox_root*, no extra directory."""
    return Workspace(sandbox=PathSandbox(sandbox_root), allowed_commands=["echo", "ls"])
