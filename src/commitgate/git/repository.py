"""Read pushed commits from a git repository for policy evaluation."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from commitgate.git.exec import run_git
from commitgate.types import ZERO_ID, Commit, Identity, RefChange, RefChangeType

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%P", "%an", "%ae", "%cn", "%ce", "%B"]) + _RECORD_SEP


class GitRepository:
    """Repository handle backed by the ``git`` CLI.

    Works in bare repositories, which is where server-side hooks run.
    """

    def __init__(self, path: Path | None = None):
        self.path = (path or Path.cwd()).resolve()

    def commits(self, ref_change: RefChange) -> list[Commit]:
        """New commits introduced by ``ref_change``, oldest first."""
        if ref_change.type == RefChangeType.DELETE or ref_change.to_id == ZERO_ID:
            return []

        if ref_change.type == RefChangeType.ADD or ref_change.from_id == ZERO_ID:
            # Everything not already reachable from another ref is new.
            revs = [ref_change.to_id, "--not", f"--exclude={ref_change.ref_id}", "--all"]
        else:
            revs = [f"{ref_change.from_id}..{ref_change.to_id}"]

        out = run_git(
            ["log", "--reverse", "--no-color", f"--format={_LOG_FORMAT}", *revs, "--"],
            cwd=self.path,
        ).stdout
        return parse_log(out)


def parse_log(output: str) -> list[Commit]:
    """Parse ``git log`` output produced with the adapter's record format."""
    commits = []
    for record in output.split(_RECORD_SEP):
        record = record.lstrip("\n")
        if not record:
            continue
        sha, parents, author_name, author_email, committer_name, committer_email, message = record.split(
            _FIELD_SEP, 6
        )
        commits.append(
            Commit(
                id=sha,
                message=message,
                author=Identity(author_name, author_email),
                committer=Identity(committer_name, committer_email),
                parents=tuple(parents.split()),
            )
        )
    return commits


def parse_pre_receive(lines: Iterable[str]) -> list[RefChange]:
    """Parse ``<old> <new> <ref>`` lines as git feeds them to pre-receive.

    Raises:
        ValueError: If a non-empty line does not have exactly three fields
    """
    ref_changes = []
    for number, line in enumerate(lines, 1):
        line = line.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) != 3:
            raise ValueError(f"malformed pre-receive line {number}: {line!r}")
        old, new, ref = parts
        ref_changes.append(RefChange.from_ids(old, new, ref))
    return ref_changes
