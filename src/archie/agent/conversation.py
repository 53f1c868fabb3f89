"""Append-only conversation log replayed to the model on every call."""

import logging
from typing import (
    Dict,
    Iterator,
    List,
    Tuple,
)

from archie.core.schema import Turn

logger = logging.getLogger(__name__)

ChatMessage = Dict[str, str]


class Conversation:
    """
    Ordered log of user, assistant and tool turns.

    Turns are only ever appended; :meth:`reset` is the one way to remove them and it empties the
    whole log.
    """

    def __init__(self) -> None:
        self._turns: List[Turn] = []

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    @property
    def turns(self) -> Tuple[Turn, ...]:
        """Snapshot of the log."""
        return tuple(self._turns)

    def append(self, turn: Turn) -> None:
        """Add *turn* at the end of the log."""
        self._turns.append(turn)

    def add_user(self, content: str) -> None:
        """Record user input."""
        self.append(Turn(role="user", content=content))

    def add_assistant(self, content: str) -> None:
        """Record raw model output."""
        self.append(Turn(role="assistant", content=content))

    def add_tool_result(self, tool_name: str, result: str) -> None:
        """Record the text a tool returned."""
        self.append(Turn(role="tool", content=result, tool_name=tool_name, tool_result=result))

    def reset(self) -> None:
        """Drop every turn."""
        logger.debug("Clearing %d turns", len(self._turns))
        self._turns.clear()

    def to_messages(self, system_prompt: str) -> List[ChatMessage]:
        """Render the system prompt plus every turn as role-tagged chat messages."""
        messages: List[ChatMessage] = [{"role": "system", "content": system_prompt}]
        for turn in self._turns:
            if turn.role == "tool":
                messages.append(
                    {"role": "user", "content": f"[Result of {turn.tool_name}]\n{turn.tool_result}"}
                )
            else:
                messages.append({"role": turn.role, "content": turn.content})
        return messages
