"""Validates, coerces and dispatches tool calls; every outcome becomes a :class:`ToolResult`."""

import logging
import math
import time
from typing import (
    Any,
    Dict,
    Mapping,
)

from archie.core.schema import (
    ToolDescriptor,
    ToolResult,
)
from archie.tools import TOOL_REGISTRY
from archie.tools.sandbox import Workspace

logger = logging.getLogger(__name__)


class ToolExecutionError(RuntimeError):
    """Raised when a requested tool cannot run."""


class ToolValidationError(ToolExecutionError):
    """Raised when a required parameter is missing or blank."""

    def __init__(self, tool: str, param: str):
        super().__init__(f"Required parameter '{param}' missing or empty for tool '{tool}'")
        self.tool = tool
        self.param = param


# ---------------------------------------------------------------------------
# Validation & coercion
# ---------------------------------------------------------------------------
def validate_params(tool: ToolDescriptor, raw: Mapping[str, str]) -> None:
    """
    Check *raw* against the declared parameters of *tool*, in declaration order.

    Raises
    ------
    ToolValidationError
        For the first required parameter that is absent or blank.
    """
    for spec in tool.parameters:
        value = raw.get(spec.name)
        if spec.is_required and (value is None or not value.strip()):
            raise ToolValidationError(tool.name, spec.name)


def coerce_value(raw: str) -> Any:
    """
    Best-effort typing of a raw parameter string.

    ``"true"``/``"false"`` become booleans, strings that survive a number round-trip unchanged
    (``"42"``, ``"1.5"``, not ``"007"`` or ``"1e3"``) become ``int``/``float``, everything else
    stays a string.
    """
    if raw == "true":
        return True
    if raw == "false":
        return False
    number: int | float
    try:
        number = int(raw)
    except ValueError:
        try:
            number = float(raw)
        except ValueError:
            return raw
        if not math.isfinite(number):
            return raw
    return number if str(number) == raw else raw


def coerce_params(tool: ToolDescriptor, raw: Mapping[str, str]) -> Dict[str, Any]:
    """Return the keyword arguments for *tool*'s handler (declared defaults filled in)."""
    schema = tool.schema_map
    unknown = sorted(set(raw) - set(schema))
    if unknown:
        logger.debug("Ignoring undeclared parameters for '%s': %s", tool.name, unknown)

    kwargs: Dict[str, Any] = {}
    for name, spec in schema.items():
        if name in raw:
            kwargs[name] = coerce_value(raw[name])
        elif spec.default is not None:
            kwargs[name] = spec.default
    return kwargs


# ---------------------------------------------------------------------------
# Invocation
# ---------------------------------------------------------------------------
async def execute_tool(
    name: str,
    params: Mapping[str, str] | None,
    workspace: Workspace,
    registry: Mapping[str, ToolDescriptor] | None = None,
) -> ToolResult:
    """
    Look up *name*, validate and coerce *params*, then await the handler.

    Parameters
    ----------
    name:
        The registered tool name (exact match).
    params:
        Raw parameter strings as produced by the parser.  If *None*, an empty dict is assumed.
    workspace:
        Passed to the handler as its first argument.
    registry:
        Tool registry to use (defaults to :data:`archie.tools.TOOL_REGISTRY`).

    Returns
    -------
    ToolResult
        Never raises for tool-level problems: unknown tools, validation failures, sandbox
        violations and handler exceptions all come back with ``success=False``.
    """
    if params is None:
        params = {}
    tools = TOOL_REGISTRY if registry is None else registry

    try:
        tool = tools.get(name)
        if tool is None:
            raise ToolExecutionError(f"Tool '{name}' is not registered.")
        validate_params(tool, params)
        kwargs = coerce_params(tool, params)
    except ToolExecutionError as exc:
        logger.warning("Rejected call to '%s': %s", name, exc)
        return ToolResult(text=f"Error: {exc}", success=False)

    logger.debug("Executing tool '%s' with args=%s", name, kwargs)
    started = time.perf_counter()
    try:
        result = await tool.handler(workspace, **kwargs)
    except Exception as exc:  # pylint: disable=broad-except
        duration_ms = (time.perf_counter() - started) * 1000
        logger.warning(
            "Tool '%s' failed: %s", name, exc, exc_info=logger.isEnabledFor(logging.DEBUG)
        )
        return ToolResult(text=f"Error: {exc}", success=False, duration_ms=duration_ms)
    duration_ms = (time.perf_counter() - started) * 1000

    logger.info("Tool '%s' finished in %.1f ms", name, duration_ms)
    return ToolResult(text=str(result), success=True, duration_ms=duration_ms)
