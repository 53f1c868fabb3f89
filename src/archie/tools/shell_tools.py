"""
Allow-listed command tool.

Commands run without a shell: the line is split with :mod:`shlex` and executed directly, so
pipes, redirections and command chaining are unavailable.  Every argument that is not an option
(and the value of ``--option=value``) is treated as a path and must resolve inside the sandbox.
"""

import asyncio
import logging
import os
import shlex
from pathlib import PurePath
from typing import (
    Any,
    List,
)

from archie.core.schema import ParameterSpec
from archie.tools import register_tool
from archie.tools.sandbox import Workspace

logger = logging.getLogger(__name__)

SHELL_OPERATORS = frozenset(";|&><$`")


def _split_command(command: str) -> List[str]:
    try:
        tokens = shlex.split(command)
    except ValueError as exc:
        raise ValueError(f"Cannot parse command: {exc}") from exc
    if not tokens:
        raise ValueError("Empty command")
    return tokens


def _check_arguments(workspace: Workspace, cwd: PurePath, args: List[str]) -> None:
    """Reject shell syntax and any path argument (relative to *cwd*) that leaves the sandbox."""
    for arg in args:
        if SHELL_OPERATORS.intersection(arg):
            raise PermissionError(f"Shell operators are not allowed: {arg}")
        if arg.startswith("-"):
            _, sep, value = arg.partition("=")
            if sep and value:
                workspace.sandbox.resolve(cwd / value)
            continue
        workspace.sandbox.resolve(cwd / arg)


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "\n... [output truncated]"


async def _run(tokens: List[str], cwd: str, timeout: float) -> tuple[int, str, str]:
    proc = await asyncio.create_subprocess_exec(
        *tokens,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise TimeoutError(f"Command timed out after {timeout:g} seconds") from None
    return (
        proc.returncode if proc.returncode is not None else -1,
        stdout.decode(errors="replace"),
        stderr.decode(errors="replace"),
    )


@register_tool(
    "run_command",
    "Run a safe command inside the working directory. Only allow-listed programs are accepted; "
    "pipes, redirections and paths outside the working directory are refused.",
    [
        ParameterSpec(name="command", description="Command to run"),
        ParameterSpec(name="directory", description="Directory to run it in", default="."),
    ],
)
async def run_command(workspace: Workspace, command: Any, directory: Any = ".") -> str:
    """Run *command* in a sandbox directory with a timeout and an output cap."""
    tokens = _split_command(str(command))
    base = os.path.basename(tokens[0]).lower()
    if base not in workspace.allowed_commands:
        raise PermissionError(
            f"Command not allowed: {base}. Allowed: {', '.join(workspace.allowed_commands)}"
        )
    cwd = workspace.sandbox.resolve(directory)
    _check_arguments(workspace, PurePath(workspace.sandbox.relative(cwd)), tokens[1:])

    logger.info("Running command %s in %s", tokens, cwd)
    returncode, stdout, stderr = await _run(tokens, str(cwd), workspace.command_timeout)
    output = stdout or stderr
    if returncode != 0:
        raise RuntimeError(
            f"Command exited with code {returncode}: "
            f"{_truncate(output, workspace.max_command_output)}"
        )
    return _truncate(output, workspace.max_command_output) or "Command produced no output"
