"""
Path confinement for tool handlers.

Every handler that touches the filesystem resolves its path arguments through a
:class:`PathSandbox` first.  Resolution follows the host filesystem (``.``/``..`` and symlinks are
resolved) before the containment check, so traversal sequences cannot slip past a prefix test.
"""

import logging
import os
from dataclasses import (
    dataclass,
    field,
)
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Any,
    List,
    Optional,
)

if TYPE_CHECKING:
    import httpx

    from archie.config import Settings

logger = logging.getLogger(__name__)


class SandboxViolation(PermissionError):
    """Raised when a path resolves outside its sandbox root."""


class PathSandbox:
    """Resolves relative paths against *root* and rejects anything that escapes it."""

    def __init__(self, root: str | os.PathLike[str]):
        self.root = Path(root).expanduser().resolve()

    def __repr__(self) -> str:
        return f"PathSandbox({str(self.root)!r})"

    def contains(self, path: str | os.PathLike[str]) -> bool:
        """True if the already resolved *path* is the root or lies below it."""
        candidate = Path(path)
        return candidate == self.root or self.root in candidate.parents

    def resolve(self, path: Any) -> Path:
        """
        Return the absolute resolved form of *path*.

        Blank input means the root itself.  Non-string values (the invoker coerces numeric-looking
        parameters) are converted with ``str``.

        Raises
        ------
        SandboxViolation
            If the resolved path is outside the root.
        """
        raw = "" if path is None else str(path)
        normalized = raw.strip() or "."
        resolved = (self.root / normalized).resolve()
        if not self.contains(resolved):
            logger.warning("Blocked path outside sandbox: %r -> %s", raw, resolved)
            raise SandboxViolation(f"Access denied: {raw} is outside the allowed directory")
        return resolved

    def relative(self, path: Path) -> str:
        """Render *path* relative to the root for tool output."""
        rel = path.relative_to(self.root).as_posix()
        return rel or "."


@dataclass
class Workspace:
    """Everything a tool handler may touch, passed to each handler call."""

    sandbox: PathSandbox
    extra: Optional[PathSandbox] = None
    allowed_commands: List[str] = field(default_factory=list)
    command_timeout: float = 30.0
    max_command_output: int = 3000
    max_read_chars: int = 5000
    download_timeout: float = 60.0
    max_download_bytes: int = 50 * 1024 * 1024
    http_transport: Optional["httpx.AsyncBaseTransport"] = None

    @property
    def root(self) -> Path:
        """Absolute sandbox root."""
        return self.sandbox.root

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Workspace":
        """Build a workspace from the application settings."""
        return cls(
            sandbox=PathSandbox(settings.ARCHIE_BASE_DIR),
            extra=PathSandbox(settings.EXTRA_READ_DIR) if settings.EXTRA_READ_DIR else None,
            allowed_commands=list(settings.ALLOWED_COMMANDS),
            command_timeout=settings.COMMAND_TIMEOUT,
            max_command_output=settings.MAX_COMMAND_OUTPUT,
            max_read_chars=settings.MAX_READ_CHARS,
            download_timeout=settings.DOWNLOAD_TIMEOUT,
            max_download_bytes=settings.MAX_DOWNLOAD_BYTES,
        )
