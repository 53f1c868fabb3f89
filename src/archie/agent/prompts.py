"""System prompt: who the assistant is, which tools exist and how to call them."""

from typing import Sequence

from archie.core.schema import ToolDescriptor
from archie.tools.sandbox import Workspace
from archie.tools.tool_call_parser import format_tool_call

SYSTEM_PROMPT = """\
You are Archie, a helpful file assistant.

WORKING DIRECTORY: {base_dir}
EXTRA DIRECTORY (read-only): {extra_dir}

AVAILABLE TOOLS:
{tools}

INSTRUCTIONS:
1. To use a tool, reply with EXACTLY this format:
{call_format}

   Put each parameter on its own line as "name: value". For a value spanning several lines,
   indent every line after the first.

2. You may use several tools in sequence. After each result you can call another tool.

3. When ALL tasks are done, answer the user without using any tool.

4. If the user asks for several things, use the tools one at a time.

EXAMPLES:
- To list files:
{list_example}

- To create a file:
{create_example}

- To answer directly:
  Hello! I'm Archie, your file assistant. How can I help?"""


def _describe(tool: ToolDescriptor) -> str:
    params = []
    for spec in tool.parameters:
        if spec.is_required:
            params.append(f"{spec.name}: {spec.type}")
        elif spec.default is not None:
            params.append(f"{spec.name}: {spec.type} = {spec.default!r}")
        else:
            params.append(f"{spec.name}: {spec.type} (optional)")
    return f"- {tool.name}({', '.join(params)}): {tool.description}"


def build_system_prompt(workspace: Workspace, tools: Sequence[ToolDescriptor]) -> str:
    """Render :data:`SYSTEM_PROMPT` for *workspace* and *tools*."""
    return SYSTEM_PROMPT.format(
        base_dir=workspace.root,
        extra_dir=workspace.extra.root if workspace.extra else "Not configured",
        tools="\n".join(_describe(t) for t in tools),
        call_format=format_tool_call("tool_name", {"param1": "value1", "param2": "value2"}),
        list_example=format_tool_call("list_files", {"directory": ".", "pattern": "*"}),
        create_example=format_tool_call(
            "create_file", {"name": "my_file.txt", "content": "This is the file content"}
        ),
    )
