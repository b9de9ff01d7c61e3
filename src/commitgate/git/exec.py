"""Subprocess runner for git plumbing commands."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

GIT_EXECUTABLE = shutil.which("git") or "git"


@dataclass(frozen=True)
class GitResult:
    """Captured output of one git invocation."""

    args: tuple[str, ...]
    cwd: Path
    returncode: int
    stdout: str
    stderr: str


class GitCommandError(RuntimeError):
    """Raised when git exits non-zero; the hook host reports it as a push failure."""

    def __init__(self, result: GitResult):
        detail = (result.stderr or result.stdout).strip()
        super().__init__(f"git {' '.join(result.args)} failed ({result.returncode}): {detail}")
        self.result = result


def run_git(args: list[str], *, cwd: Path, check: bool = True) -> GitResult:
    """Run ``git <args>`` in ``cwd`` and capture text output.

    The inherited environment is kept: inside a pre-receive hook git exports
    the quarantine object directory that makes pushed objects readable.
    """
    completed = subprocess.run(
        [GIT_EXECUTABLE, *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )
    result = GitResult(
        args=tuple(args),
        cwd=cwd,
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )
    if check and result.returncode != 0:
        raise GitCommandError(result)
    return result
