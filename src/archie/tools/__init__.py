"""
Tool registry for Archie.

This module provides a decorator to register tools and a registry to look them up by name.
Every tool is an async function ``handler(workspace, **params) -> str`` together with an explicit
description and parameter schema, which are shown to the model verbatim in the system prompt.
"""

import logging
from typing import (
    Callable,
    Dict,
    List,
    Mapping,
    Sequence,
)

from archie.core.schema import (
    ParameterSpec,
    ToolDescriptor,
    ToolHandler,
)

TOOL_REGISTRY: Dict[str, ToolDescriptor] = {}
"""Global registry of tool descriptors."""


def register_tool(
    name: str,
    description: str,
    parameters: Sequence[ParameterSpec] = (),
    registry: Dict[str, ToolDescriptor] | None = None,
) -> Callable[[ToolHandler], ToolHandler]:
    """
    Register an async tool handler under *name*.

    The function is registered as a decorator, so it can be used like this:
        @register_tool("my_tool", "Does something", [ParameterSpec(name="path")])
        async def my_tool(workspace, path):
            return "done"

    Parameters
    ----------
    name: str
        The name of the tool.  This must be unique within *registry*.
    description: str
        Human readable description included in the system prompt.
    parameters: Sequence[ParameterSpec]
        Declared parameters, in the order the validator checks them.
    registry: dict, optional
        Target registry (defaults to :data:`TOOL_REGISTRY`).
    Returns
    -------
    Callable
        A decorator that registers the function.
    Raises
    ------
    ValueError
        If a tool with the same name is already registered.
    """
    target = TOOL_REGISTRY if registry is None else registry
    if name in target:
        raise ValueError(f"Tool '{name}' is already registered.")
    logger = logging.getLogger(__name__)
    logger.debug("Registering tool '%s'", name)

    def wrapper(fn: ToolHandler) -> ToolHandler:
        target[name] = ToolDescriptor(
            name=name, description=description, parameters=list(parameters), handler=fn
        )
        return fn

    return wrapper


def get_tool_descriptors(
    registry: Mapping[str, ToolDescriptor] | None = None,
) -> List[ToolDescriptor]:
    """Return registered descriptors in registration order."""
    return list((TOOL_REGISTRY if registry is None else registry).values())


# Built-in tools register themselves on import.
from archie.tools import (  # noqa: E402  pylint: disable=wrong-import-position,cyclic-import
    download_tools,
    extra_tools,
    file_tools,
    shell_tools,
)

__all__ = [
    "TOOL_REGISTRY",
    "get_tool_descriptors",
    "register_tool",
    "download_tools",
    "extra_tools",
    "file_tools",
    "shell_tools",
]
