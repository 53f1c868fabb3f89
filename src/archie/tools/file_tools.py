"""File tools operating inside the sandbox root."""

import fnmatch
import json
import logging
from datetime import (
    datetime,
    timezone,
)
from typing import (
    Any,
    Dict,
    List,
)

from archie.core.schema import ParameterSpec
from archie.tools import register_tool
from archie.tools.sandbox import Workspace

logger = logging.getLogger(__name__)

MAX_SEARCH_FILES = 50
MAX_SEARCH_RESULTS = 20
MAX_MATCH_CHARS = 100


def _kb(size: int, digits: int = 1) -> str:
    return f"{size / 1024:.{digits}f}KB"


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "yes", "1"}


@register_tool(
    "list_files",
    "List files and folders in a directory. Use a glob pattern to filter.",
    [
        ParameterSpec(name="directory", description="Directory to list", default="."),
        ParameterSpec(name="pattern", description="Glob pattern (e.g. *.txt)", default="*"),
    ],
)
async def list_files(workspace: Workspace, directory: Any = ".", pattern: Any = "*") -> str:
    """List a sandbox directory."""
    target = workspace.sandbox.resolve(directory)
    pattern = str(pattern or "*")
    entries = sorted(target.iterdir(), key=lambda p: p.name.lower())
    if pattern != "*":
        entries = [e for e in entries if fnmatch.fnmatch(e.name, pattern)]
    if not entries:
        return "Directory is empty"

    lines = []
    for entry in entries:
        if entry.is_dir():
            lines.append(f"[DIR] {entry.name}")
        else:
            lines.append(f"[FILE] {entry.name} ({_kb(entry.stat().st_size)})")
    return "\n".join(lines)


@register_tool(
    "read_file",
    "Read the contents of a text file",
    [ParameterSpec(name="path", description="Path of the file to read")],
)
async def read_file(workspace: Workspace, path: Any) -> str:
    """Return the (possibly truncated) text of a file."""
    target = workspace.sandbox.resolve(path)
    content = target.read_text(encoding="utf-8")
    limit = workspace.max_read_chars
    if len(content) > limit:
        return content[:limit] + "\n... [content truncated]"
    return content


@register_tool(
    "search_files",
    "Search for text inside files. Returns the files and lines that contain it.",
    [
        ParameterSpec(name="text", description="Text to search for"),
        ParameterSpec(name="pattern", description="Glob pattern of files", default="**/*"),
    ],
)
async def search_files(workspace: Workspace, text: Any, pattern: Any = "**/*") -> str:
    """Case-insensitive line search over sandbox files."""
    needle = str(text).lower()
    sandbox = workspace.sandbox
    files = [
        p for p in sorted(sandbox.root.glob(str(pattern or "**/*")))
        if p.is_file() and sandbox.contains(p.resolve())
    ]

    results: List[Dict[str, Any]] = []
    for file in files[:MAX_SEARCH_FILES]:
        try:
            lines = file.read_text(encoding="utf-8").split("\n")
        except (UnicodeDecodeError, OSError):
            # binary or unreadable
            continue
        for number, line in enumerate(lines, start=1):
            if needle in line.lower():
                results.append(
                    {
                        "file": sandbox.relative(file.resolve()),
                        "line": number,
                        "content": line.strip()[:MAX_MATCH_CHARS],
                    }
                )

    if not results:
        return "No matches found"
    return json.dumps(results[:MAX_SEARCH_RESULTS], indent=2, ensure_ascii=False)


@register_tool(
    "move_file",
    "Move or rename a file or folder",
    [
        ParameterSpec(name="source", description="Current path"),
        ParameterSpec(name="destination", description="New path"),
    ],
)
async def move_file(workspace: Workspace, source: Any, destination: Any) -> str:
    """Rename *source* to *destination*, creating parent folders."""
    src = workspace.sandbox.resolve(source)
    dst = workspace.sandbox.resolve(destination)
    if not src.exists():
        raise FileNotFoundError(f"No such file or directory: {source}")
    dst.parent.mkdir(parents=True, exist_ok=True)
    src.rename(dst)
    return f"Moved: {source} -> {destination}"


@register_tool(
    "create_folder",
    "Create a new folder",
    [ParameterSpec(name="path", description="Path of the folder to create")],
)
async def create_folder(workspace: Workspace, path: Any) -> str:
    """Create a folder and any missing parents."""
    target = workspace.sandbox.resolve(path)
    target.mkdir(parents=True, exist_ok=True)
    return f"Folder created: {path}"


@register_tool(
    "create_file",
    "Create a new file with the given content",
    [
        ParameterSpec(name="name", description="File name (e.g. notes.txt, docs/readme.md)"),
        ParameterSpec(name="content", description="File content"),
    ],
)
async def create_file(workspace: Workspace, name: Any, content: Any) -> str:
    """Write *content* to *name*, creating parent folders."""
    target = workspace.sandbox.resolve(name)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(str(content), encoding="utf-8")
    return f"File created: {name} ({_kb(target.stat().st_size)})"


@register_tool(
    "delete_file",
    "Delete a file or an empty folder. USE WITH CARE.",
    [
        ParameterSpec(name="path", description="Path of the file to delete"),
        ParameterSpec(name="confirm", type="bool", description="Must be true to delete"),
    ],
)
async def delete_file(workspace: Workspace, path: Any, confirm: Any) -> str:
    """Delete a file or an empty folder once confirmed."""
    if not _as_bool(confirm):
        return "Deletion cancelled. Confirm with confirm: true"
    target = workspace.sandbox.resolve(path)
    if target == workspace.root:
        raise PermissionError("Refusing to delete the sandbox root")
    if target.is_dir():
        target.rmdir()  # empty folders only
    else:
        target.unlink()
    logger.info("Deleted %s", target)
    return f"Deleted: {path}"


@register_tool(
    "file_info",
    "Show detailed information about a file",
    [ParameterSpec(name="path", description="Path of the file")],
)
async def file_info(workspace: Workspace, path: Any) -> str:
    """Return stat information as JSON."""
    target = workspace.sandbox.resolve(path)
    stat = target.stat()
    created = getattr(stat, "st_birthtime", stat.st_ctime)
    info = {
        "name": target.name,
        "path": workspace.sandbox.relative(target),
        "type": "folder" if target.is_dir() else "file",
        "size": f"{stat.st_size / 1024:.2f} KB",
        "created": datetime.fromtimestamp(created, tz=timezone.utc).isoformat(),
        "modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
        "permissions": oct(stat.st_mode)[2:],
    }
    return json.dumps(info, indent=2)
