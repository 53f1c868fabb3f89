"""Main orchestration loop for Archie."""

from __future__ import annotations

import logging
from typing import (
    AsyncIterator,
    Mapping,
)

from archie.agent.cancellation import (
    CANCELLED_MESSAGE,
    CancellationToken,
    OperationCancelled,
)
from archie.agent.conversation import Conversation
from archie.agent.planner_interface import BasePlanner
from archie.agent.prompts import build_system_prompt
from archie.agent.tool_executor import execute_tool
from archie.core.schema import (
    AgentEvent,
    ErrorEvent,
    ResponseEvent,
    ThinkingEvent,
    ToolDescriptor,
    ToolEndEvent,
    ToolStartEvent,
)
from archie.tools import (
    TOOL_REGISTRY,
    get_tool_descriptors,
)
from archie.tools.sandbox import Workspace
from archie.tools.tool_call_parser import parse_tool_call

logger = logging.getLogger(__name__)


class AgentBusyError(RuntimeError):
    """Raised when a new request arrives while another one is still being processed."""


def _cancelled() -> ErrorEvent:
    return ErrorEvent(message=CANCELLED_MESSAGE, cancelled=True)


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------
class Agent:
    """
    Turns user requests into a sequence of tool calls and a final answer.

    Each call to :meth:`stream` adds the user input to the conversation and then alternates between
    asking the model and running the tool call found in its reply, until the model answers without
    a tool call.  Progress is reported only through the yielded events.

    Cancellation is cooperative: :meth:`cancel` sets the token of the request in flight, which the
    loop observes before each model call, right after it returns and before a tool runs.  A running
    tool is never interrupted.
    """

    def __init__(
        self,
        planner: BasePlanner,
        workspace: Workspace,
        registry: Mapping[str, ToolDescriptor] | None = None,
        max_iterations: int | None = None,
    ):
        if max_iterations is not None and max_iterations < 1:
            raise ValueError("max_iterations must be a positive integer or None")
        self.planner = planner
        self.workspace = workspace
        self.registry = TOOL_REGISTRY if registry is None else registry
        self.max_iterations = max_iterations
        self.conversation = Conversation()
        self._token: CancellationToken | None = None

    # ------------------------------------------------------------------ #
    # Control
    # ------------------------------------------------------------------ #
    @property
    def is_running(self) -> bool:
        """True while a request is being processed."""
        return self._token is not None

    def cancel(self) -> bool:
        """Cancel the request in flight; False if there is nothing to cancel."""
        if self._token is None:
            logger.debug("Nothing to cancel")
            return False
        self._token.cancel()
        return True

    def clear_history(self) -> None:
        """Forget every previous turn."""
        if self.is_running:
            raise AgentBusyError("Cannot clear the history while a request is running")
        self.conversation.reset()

    # ------------------------------------------------------------------ #
    # Processing
    # ------------------------------------------------------------------ #
    async def stream(self, user_input: str) -> AsyncIterator[AgentEvent]:
        """
        Process *user_input*, yielding events in chronological order.

        Raises
        ------
        AgentBusyError
            If another :meth:`stream` on this agent has not finished yet.
        """
        if self._token is not None:
            raise AgentBusyError("A request is already being processed")
        token = CancellationToken()
        self._token = token
        try:
            async for event in self._process(user_input, token):
                yield event
        finally:
            self._token = None

    async def invoke(self, user_input: str) -> str:
        """Process *user_input* and return only the final answer (or ``Error: ...``)."""
        output = ""
        async for event in self.stream(user_input):
            if isinstance(event, ResponseEvent):
                output = event.content
            elif isinstance(event, ErrorEvent):
                output = f"Error: {event.message}"
        return output

    async def _process(
        self, user_input: str, token: CancellationToken
    ) -> AsyncIterator[AgentEvent]:
        self.conversation.add_user(user_input)
        system_prompt = build_system_prompt(self.workspace, get_tool_descriptors(self.registry))

        iteration = 0
        while True:
            if token.cancelled:
                yield _cancelled()
                return
            if self.max_iterations is not None and iteration >= self.max_iterations:
                logger.warning("Stopping after %d iterations without a final answer", iteration)
                yield ErrorEvent(
                    message=f"Stopped after {iteration} iterations without a final answer"
                )
                return

            iteration += 1
            logger.debug("Iteration %d", iteration)
            yield ThinkingEvent(message="Processing..." if iteration == 1 else "Continuing...")

            try:
                reply = await self.planner.complete(
                    self.conversation.to_messages(system_prompt), token
                )
            except OperationCancelled:
                yield _cancelled()
                return
            except Exception as exc:  # pylint: disable=broad-except
                if token.cancelled:
                    yield _cancelled()
                else:
                    logger.error("Model call failed: %s", exc)
                    yield ErrorEvent(message=str(exc) or type(exc).__name__)
                return

            if token.cancelled:
                yield _cancelled()
                return

            call = parse_tool_call(reply)
            if call is None:
                self.conversation.add_assistant(reply)
                yield ResponseEvent(content=reply)
                return

            logger.info("Model requested tool '%s'", call.name)
            yield ToolStartEvent(tool=call.name, params=call.params)
            if token.cancelled:
                yield _cancelled()
                return

            result = await execute_tool(call.name, call.params, self.workspace, self.registry)
            self.conversation.add_assistant(reply)
            self.conversation.add_tool_result(call.name, result.text)
            yield ToolEndEvent(
                tool=call.name,
                result=result.text,
                success=result.success,
                duration_ms=result.duration_ms,
            )
