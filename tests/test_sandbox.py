"""
Tests for path confinement.

Run with:
$ pytest -q
"""

import os
from pathlib import Path

import pytest

from archie.tools.sandbox import (
    PathSandbox,
    SandboxViolation,
)


def test_relative_path_inside_root(sandbox_root: Path) -> None:
    """Relative paths resolve below the root."""
    sandbox = PathSandbox(sandbox_root)

    assert sandbox.resolve("docs/a.txt") == sandbox.root / "docs" / "a.txt"


@pytest.mark.parametrize("raw", [None, "", "   ", "."])
def test_blank_means_root(sandbox_root: Path, raw: object) -> None:
    """Missing or blank paths address the root itself."""
    sandbox = PathSandbox(sandbox_root)

    assert sandbox.resolve(raw) == sandbox.root


@pytest.mark.parametrize("raw", ["..", "../x.txt", "sub/../../x.txt", "/etc/passwd"])
def test_escaping_paths_are_rejected(sandbox_root: Path, raw: str) -> None:
    """Traversal and absolute paths outside the root raise."""
    sandbox = PathSandbox(sandbox_root)

    with pytest.raises(SandboxViolation) as excinfo:
        sandbox.resolve(raw)
    assert "Access denied" in str(excinfo.value)
    assert isinstance(excinfo.value, PermissionError)


def test_traversal_that_stays_inside_is_allowed(sandbox_root: Path) -> None:
    """``..`` is fine as long as the result is still within the root."""
    sandbox = PathSandbox(sandbox_root)

    assert sandbox.resolve("a/b/../c.txt") == sandbox.root / "a" / "c.txt"


def test_absolute_path_inside_root(sandbox_root: Path) -> None:
    """An absolute path is accepted when it points inside the root."""
    sandbox = PathSandbox(sandbox_root)
    target = sandbox.root / "notes.txt"

    assert sandbox.resolve(str(target)) == target


def test_sibling_with_shared_prefix_is_rejected(tmp_path: Path) -> None:
    """``/tmp/box2`` is not inside ``/tmp/box`` even though the strings share a prefix."""
    (tmp_path / "box").mkdir()
    (tmp_path / "box2").mkdir()
    sandbox = PathSandbox(tmp_path / "box")

    with pytest.raises(SandboxViolation):
        sandbox.resolve("../box2/secret.txt")
    assert not sandbox.contains((tmp_path / "box2").resolve())


def test_symlink_escape_is_rejected(tmp_path: Path, sandbox_root: Path) -> None:
    """Links are followed before the containment check."""
    outside = tmp_path / "outside"
    outside.mkdir()
    link = sandbox_root / "link"
    try:
        os.symlink(outside, link, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported here")
    sandbox = PathSandbox(sandbox_root)

    with pytest.raises(SandboxViolation):
        sandbox.resolve("link/file.txt")


def test_numeric_input_is_stringified(sandbox_root: Path) -> None:
    """Coerced numeric parameters still resolve as names."""
    sandbox = PathSandbox(sandbox_root)

    assert sandbox.resolve(2024) == sandbox.root / "2024"


def test_contains_and_relative(sandbox_root: Path) -> None:
    sandbox = PathSandbox(sandbox_root)
    inner = sandbox.root / "a" / "b.txt"

    assert sandbox.contains(sandbox.root)
    assert sandbox.contains(inner)
    assert not sandbox.contains(sandbox.root.parent)
    assert sandbox.relative(inner) == "a/b.txt"
    assert sandbox.relative(sandbox.root) == "."
