"""Policy rules evaluated against a single ref change.

Each rule is self-contained: it reads only the options it owns from
``PolicyConfig`` and emits nothing when those options are unset. Rules that
need a regular expression raise ``PolicyConfigError`` for an invalid one;
``RuleEvaluator`` turns that into a configuration violation.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from commitgate.config import PolicyConfig
from commitgate.types import Commit, Identity, PolicyViolation, RefChange, RefChangeType, Repository, ViolationType


class Rule(ABC):
    """One independent policy check."""

    name: str = "rule"

    @abstractmethod
    def check(
        self,
        repository: Repository,
        config: PolicyConfig,
        ref_change: RefChange,
        *,
        pusher: Identity | None = None,
    ) -> list[PolicyViolation]:
        """Return the violations found for ``ref_change`` (possibly empty)."""


def select_commits(repository: Repository, config: PolicyConfig, ref_change: RefChange) -> list[Commit]:
    """New commits of ``ref_change`` that commit rules should inspect."""
    exclude_by = config.pattern("exclude_by_regex")
    selected = []
    for commit in repository.commits(ref_change):
        if config.exclude_merge_commits and commit.is_merge:
            continue
        if exclude_by is not None and exclude_by.search(commit.message):
            continue
        selected.append(commit)
    return selected


class CommitRule(Rule):
    """Base for rules that inspect every selected commit of a ref change."""

    violation_type: ViolationType = ViolationType.OTHER

    def check(
        self,
        repository: Repository,
        config: PolicyConfig,
        ref_change: RefChange,
        *,
        pusher: Identity | None = None,
    ) -> list[PolicyViolation]:
        if not self.enabled(config, pusher):
            return []
        violations = []
        for commit in select_commits(repository, config, ref_change):
            text = self.check_commit(commit, config, pusher)
            if text is not None:
                message = config.message_for(self.violation_type, text)
                violations.append(PolicyViolation(f"{commit.short_id}: {message}", self.violation_type))
        return violations

    @abstractmethod
    def enabled(self, config: PolicyConfig, pusher: Identity | None) -> bool:
        """Whether the rule's options are set (and its inputs available)."""

    @abstractmethod
    def check_commit(self, commit: Commit, config: PolicyConfig, pusher: Identity | None) -> str | None:
        """Default violation text for ``commit``, or None when it passes."""


class BranchNameRule(Rule):
    """New branches must be named after ``branchNameRegex``."""

    name = "branch-name"

    def check(
        self,
        repository: Repository,
        config: PolicyConfig,
        ref_change: RefChange,
        *,
        pusher: Identity | None = None,
    ) -> list[PolicyViolation]:
        pattern = config.pattern("branch_name_regex")
        branch = ref_change.branch_name
        if pattern is None or branch is None or ref_change.type != RefChangeType.ADD:
            return []
        if pattern.fullmatch(branch):
            return []
        text = config.message_for(
            ViolationType.BRANCH_NAME,
            f"branch name '{branch}' doesn't match regex: {pattern.pattern}",
        )
        return [PolicyViolation(text, ViolationType.BRANCH_NAME)]


class CommitterEmailRegexRule(Rule):
    """The pushing user's email must match ``committerEmailRegex``."""

    name = "committer-email-regex"

    def check(
        self,
        repository: Repository,
        config: PolicyConfig,
        ref_change: RefChange,
        *,
        pusher: Identity | None = None,
    ) -> list[PolicyViolation]:
        pattern = config.pattern("committer_email_regex")
        if pattern is None or not _has_email(pusher):
            return []
        if pattern.fullmatch(pusher.email):
            return []
        text = config.message_for(
            ViolationType.COMMITTER_EMAIL_REGEX,
            f"committer email regex '{pattern.pattern}' does not match user email '{pusher.email}'",
        )
        return [PolicyViolation(text, ViolationType.COMMITTER_EMAIL_REGEX)]


class AuthorEmailRule(CommitRule):
    """Commit author email must be the pusher's email."""

    name = "author-email"
    violation_type = ViolationType.AUTHOR_EMAIL

    def enabled(self, config: PolicyConfig, pusher: Identity | None) -> bool:
        return config.require_matching_author_email and _has_email(pusher)

    def check_commit(self, commit: Commit, config: PolicyConfig, pusher: Identity | None) -> str | None:
        if _same_email(commit.author.email, pusher.email):
            return None
        return f"expected author email '{pusher.email}' but found '{commit.author.email}'"


class AuthorNameRule(CommitRule):
    """Commit author name must be the pusher's display name."""

    name = "author-name"
    violation_type = ViolationType.AUTHOR_NAME

    def enabled(self, config: PolicyConfig, pusher: Identity | None) -> bool:
        return config.require_matching_author_name and pusher is not None and bool(pusher.name.strip())

    def check_commit(self, commit: Commit, config: PolicyConfig, pusher: Identity | None) -> str | None:
        if commit.author.name.strip().casefold() == pusher.name.strip().casefold():
            return None
        return f"expected author name '{pusher.name}' but found '{commit.author.name}'"


class CommitterEmailRule(CommitRule):
    """Commit committer email must be the pusher's email."""

    name = "committer-email"
    violation_type = ViolationType.COMMITTER_EMAIL

    def enabled(self, config: PolicyConfig, pusher: Identity | None) -> bool:
        return config.require_matching_committer_email and _has_email(pusher)

    def check_commit(self, commit: Commit, config: PolicyConfig, pusher: Identity | None) -> str | None:
        if _same_email(commit.committer.email, pusher.email):
            return None
        return f"expected committer email '{pusher.email}' but found '{commit.committer.email}'"


class CommitMessageRule(CommitRule):
    """Commit messages must match ``commitMessageRegex`` in full."""

    name = "commit-message"
    violation_type = ViolationType.COMMIT_REGEX

    def enabled(self, config: PolicyConfig, pusher: Identity | None) -> bool:
        # Compiled here so a bad pattern is reported even without commits.
        return config.pattern("commit_message_regex", re.DOTALL) is not None

    def check_commit(self, commit: Commit, config: PolicyConfig, pusher: Identity | None) -> str | None:
        pattern = config.pattern("commit_message_regex", re.DOTALL)
        if pattern.fullmatch(commit.message.rstrip("\n")):
            return None
        return f"commit message doesn't match regex: {pattern.pattern}"


def _has_email(pusher: Identity | None) -> bool:
    return pusher is not None and bool(pusher.email.strip())


def _same_email(left: str, right: str) -> bool:
    return left.strip().casefold() == right.strip().casefold()


DEFAULT_RULES: tuple[Rule, ...] = (
    BranchNameRule(),
    CommitterEmailRegexRule(),
    AuthorEmailRule(),
    AuthorNameRule(),
    CommitterEmailRule(),
    CommitMessageRule(),
)
