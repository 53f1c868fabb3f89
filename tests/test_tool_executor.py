"""
Sanity tests for parameter validation, coercion and the tool executor.

Run with:
$ pytest -q
"""

import asyncio
from typing import (
    Any,
    Dict,
    List,
)

import pytest

from archie.agent.tool_executor import (
    ToolValidationError,
    coerce_params,
    coerce_value,
    execute_tool,
    validate_params,
)
from archie.core.schema import (
    ParameterSpec,
    ToolDescriptor,
    ToolResult,
)
from archie.tools import register_tool
from archie.tools.sandbox import Workspace

# Stub tools used only by these tests, kept out of the global registry.
REGISTRY: Dict[str, ToolDescriptor] = {}
CALLS: List[Dict[str, Any]] = []


@register_tool(
    "add",
    "Return the sum of two integers",
    [ParameterSpec(name="a", type="int"), ParameterSpec(name="b", type="int")],
    registry=REGISTRY,
)
async def _add(workspace: Workspace, a: int, b: int) -> int:
    CALLS.append({"a": a, "b": b})
    return a + b


@register_tool(
    "greet",
    "Greet someone",
    [
        ParameterSpec(name="name"),
        ParameterSpec(name="greeting", default="Hello"),
        ParameterSpec(name="suffix", required=False),
    ],
    registry=REGISTRY,
)
async def _greet(
    workspace: Workspace, name: str, greeting: str = "Hello", suffix: Any = None
) -> str:
    return f"{greeting}, {name}{suffix or ''}"


@register_tool("boom", "Always fails", registry=REGISTRY)
async def _boom(workspace: Workspace) -> str:
    raise RuntimeError("kaput")


def _run(workspace: Workspace, name: str, params: Dict[str, str]) -> ToolResult:
    CALLS.clear()
    return asyncio.run(execute_tool(name, params, workspace, REGISTRY))


def test_execute_tool_success(workspace: Workspace) -> None:
    """Executor should coerce the arguments and return the handler value as text."""
    result = _run(workspace, "add", {"a": "2", "b": "3"})

    assert result.success
    assert result.text == "5"
    assert result.duration_ms >= 0
    assert CALLS == [{"a": 2, "b": 3}]


def test_execute_tool_missing(workspace: Workspace) -> None:
    """Unknown tools produce a failed result rather than an exception."""
    result = _run(workspace, "not_a_tool", {})

    assert not result.success
    assert "not_a_tool" in result.text


def test_execute_tool_missing_required_param(workspace: Workspace) -> None:
    """A missing required parameter is reported by name and the handler never runs."""
    result = _run(workspace, "add", {"a": "2"})

    assert not result.success
    assert "'b'" in result.text
    assert not CALLS


def test_validation_reports_first_missing_param() -> None:
    """Validation stops at the first offender in declaration order."""
    with pytest.raises(ToolValidationError) as excinfo:
        validate_params(REGISTRY["add"], {})
    assert excinfo.value.param == "a"

    with pytest.raises(ToolValidationError) as excinfo:
        validate_params(REGISTRY["add"], {"a": "   ", "b": "1"})
    assert excinfo.value.param == "a"


def test_defaults_and_optional_params(workspace: Workspace) -> None:
    """Parameters with defaults or marked optional may be omitted."""
    result = _run(workspace, "greet", {"name": "World"})

    assert result.success
    assert result.text == "Hello, World"


def test_undeclared_params_are_ignored() -> None:
    """Only declared parameters reach the handler."""
    kwargs = coerce_params(REGISTRY["greet"], {"name": "Ana", "colour": "blue"})

    assert kwargs == {"name": "Ana", "greeting": "Hello"}


def test_handler_exception_becomes_failed_result(workspace: Workspace) -> None:
    """Errors raised by a handler are normalised into the result text."""
    result = _run(workspace, "boom", {})

    assert not result.success
    assert result.text == "Error: kaput"


def test_sandbox_violation_becomes_failed_result(workspace: Workspace) -> None:
    """Built-in file tools refuse paths that escape the sandbox."""
    result = asyncio.run(execute_tool("read_file", {"path": "../secret.txt"}, workspace))

    assert not result.success
    assert "Access denied" in result.text


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("true", True),
        ("false", False),
        ("42", 42),
        ("-3", -3),
        ("1.5", 1.5),
        ("007", "007"),
        ("1e3", "1e3"),
        ("nan", "nan"),
        ("True", "True"),
        ("notes.txt", "notes.txt"),
    ],
)
def test_coerce_value(raw: str, expected: Any) -> None:
    """Booleans and lossless numbers are typed, everything else stays text."""
    value = coerce_value(raw)

    assert value == expected
    assert type(value) is type(expected)


def test_duplicate_registration_is_rejected() -> None:
    """Tool names are unique per registry."""
    with pytest.raises(ValueError):
        register_tool("add", "Another add", registry=REGISTRY)
