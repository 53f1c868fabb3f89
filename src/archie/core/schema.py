"""
Schema definitions for model <-> agent <-> tool messages.

These data models serve as the contract between the model back-end, the orchestration loop, the
tools and any presentation layer.  We keep them separate from runtime logic so they can be imported
anywhere without side-effects.
"""

from typing import (
    Annotated,
    Any,
    Callable,
    Coroutine,
    Dict,
    List,
    Literal,
    Mapping,
    Optional,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------
class Turn(BaseModel):
    """A single entry in the conversation log."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "tool"]
    content: str
    tool_name: Optional[str] = None
    tool_result: Optional[str] = None


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------
class ToolCall(BaseModel):
    """A call that the model wants the agent to execute."""

    name: str = Field(..., description="Registered tool name")
    params: Dict[str, str] = Field(default_factory=dict, description="Raw parameter strings")


class ParameterSpec(BaseModel):
    """Declared parameter of a tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "str"
    description: str = ""
    required: bool = True
    default: Any = None

    @property
    def is_required(self) -> bool:
        """True if the caller has to supply a value."""
        return self.required and self.default is None


ToolHandler = Callable[..., Coroutine[Any, Any, Any]]


class ToolDescriptor(BaseModel):
    """Name, description, parameter schema and handler of a registered tool."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str
    parameters: List[ParameterSpec] = Field(default_factory=list)
    handler: ToolHandler

    @property
    def schema_map(self) -> Mapping[str, ParameterSpec]:
        """Parameters keyed by name, in declaration order."""
        return {p.name: p for p in self.parameters}


class ToolResult(BaseModel):
    """Normalised outcome of a tool invocation."""

    text: str
    success: bool
    duration_ms: float = 0.0


# ---------------------------------------------------------------------------
# Agent events
# ---------------------------------------------------------------------------
class ThinkingEvent(BaseModel):
    """The model is being asked for its next step."""

    type: Literal["thinking"] = "thinking"
    message: str = ""


class ToolStartEvent(BaseModel):
    """A parsed tool call is about to run."""

    type: Literal["tool_start"] = "tool_start"
    tool: str
    params: Dict[str, str] = Field(default_factory=dict)


class ToolEndEvent(BaseModel):
    """A tool call finished (successfully or not)."""

    type: Literal["tool_end"] = "tool_end"
    tool: str
    result: str
    success: bool
    duration_ms: float


class ResponseEvent(BaseModel):
    """Final answer for the current user turn."""

    type: Literal["response"] = "response"
    content: str


class ErrorEvent(BaseModel):
    """The current user turn ended without an answer."""

    type: Literal["error"] = "error"
    message: str
    cancelled: bool = False


AgentEvent = Annotated[
    Union[ThinkingEvent, ToolStartEvent, ToolEndEvent, ResponseEvent, ErrorEvent],
    Field(discriminator="type"),
]
