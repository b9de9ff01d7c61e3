"""Pytest configuration and fixtures for commitgate tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from commitgate.types import Commit, Identity, RefChange


def pytest_sessionfinish(session, exitstatus):
    """Check that coverage data was collected if --cov was requested.

    This prevents silent "no data collected" scenarios that produce 0% coverage
    without failing the test run.
    """
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)

    if not cov_enabled:
        return

    coverage_files = list(Path.cwd().glob(".coverage*"))

    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'commitgate' (the package) not 'src/commitgate' (filesystem path).",
            returncode=1
        )


class InMemoryRepository:
    """Repository stub serving canned commits per ref and recording lookups."""

    def __init__(self) -> None:
        self.commits_by_ref: dict[str, list[Commit]] = {}
        self.calls: list[RefChange] = []

    def add(self, ref_id: str, *commits: Commit) -> InMemoryRepository:
        self.commits_by_ref.setdefault(ref_id, []).extend(commits)
        return self

    def commits(self, ref_change: RefChange) -> list[Commit]:
        self.calls.append(ref_change)
        return list(self.commits_by_ref.get(ref_change.ref_id, []))


def make_commit(
    sha: str = "a" * 40,
    message: str = "ABC-1: change\n",
    author: Identity = Identity("Jane Dev", "jane@example.com"),
    committer: Identity | None = None,
    parents: tuple[str, ...] = ("b" * 40,),
) -> Commit:
    return Commit(
        id=sha,
        message=message,
        author=author,
        committer=committer or author,
        parents=parents,
    )


@pytest.fixture
def memory_repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def commit_factory():
    return make_commit


@pytest.fixture
def pusher() -> Identity:
    return Identity("Jane Dev", "jane@example.com")
