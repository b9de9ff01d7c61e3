"""Types for commitgate push evaluation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Protocol

ZERO_ID = "0" * 40


class RefChangeType(str, Enum):
    """Kind of ref update carried by a push."""

    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class RefChange:
    """A single ref update: move, create, or delete a named ref."""

    ref_id: str
    from_id: str = ZERO_ID
    to_id: str = ZERO_ID
    type: RefChangeType = RefChangeType.UPDATE

    @classmethod
    def from_ids(cls, from_id: str, to_id: str, ref_id: str) -> RefChange:
        """Build a ref change from a pre-receive style ``<old> <new> <ref>`` triple."""
        if from_id == ZERO_ID:
            change_type = RefChangeType.ADD
        elif to_id == ZERO_ID:
            change_type = RefChangeType.DELETE
        else:
            change_type = RefChangeType.UPDATE
        return cls(ref_id=ref_id, from_id=from_id, to_id=to_id, type=change_type)

    @property
    def branch_name(self) -> str | None:
        """Short branch name for ``refs/heads/*`` refs, otherwise None."""
        prefix = "refs/heads/"
        if self.ref_id.startswith(prefix):
            return self.ref_id[len(prefix):]
        return None


@dataclass(frozen=True)
class Identity:
    """Name and email of a commit author, committer, or pushing user."""

    name: str
    email: str


@dataclass(frozen=True)
class Commit:
    """Commit metadata needed by policy rules."""

    id: str
    message: str
    author: Identity
    committer: Identity
    parents: tuple[str, ...] = ()

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def short_id(self) -> str:
        return self.id[:11]


class ViolationType(str, Enum):
    """Rule family that produced a violation."""

    COMMIT_REGEX = "COMMIT_REGEX"
    AUTHOR_EMAIL = "AUTHOR_EMAIL"
    AUTHOR_NAME = "AUTHOR_NAME"
    COMMITTER_EMAIL = "COMMITTER_EMAIL"
    COMMITTER_EMAIL_REGEX = "COMMITTER_EMAIL_REGEX"
    BRANCH_NAME = "BRANCH_NAME"
    CONFIGURATION = "CONFIGURATION"
    OTHER = "OTHER"


@dataclass(frozen=True)
class PolicyViolation:
    """One rule failure, optionally attached to the ref it was found on."""

    message: str
    type: ViolationType = ViolationType.OTHER
    ref_id: str | None = None

    def with_ref(self, ref_id: str) -> PolicyViolation:
        return replace(self, ref_id=ref_id)


@dataclass(frozen=True)
class PushDecision:
    """Outcome of evaluating a whole push."""

    allowed: bool
    message: str | None = None
    violations: tuple[PolicyViolation, ...] = field(default_factory=tuple)


class Repository(Protocol):
    """Read-only commit access for a push; supplied by the host adapter."""

    def commits(self, ref_change: RefChange) -> Sequence[Commit]:
        """New commits introduced by ``ref_change``, oldest first."""
        ...
