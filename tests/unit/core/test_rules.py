"""Unit tests for individual policy rules."""

from __future__ import annotations

import pytest

from commitgate.config import PolicyConfig, PolicyConfigError
from commitgate.rules import (
    AuthorEmailRule,
    AuthorNameRule,
    BranchNameRule,
    CommitMessageRule,
    CommitterEmailRegexRule,
    CommitterEmailRule,
    select_commits,
)
from commitgate.types import ZERO_ID, Identity, RefChange, RefChangeType, ViolationType

MASTER = RefChange("refs/heads/master", "1" * 40, "2" * 40, RefChangeType.UPDATE)


def _new_branch(name: str) -> RefChange:
    return RefChange(f"refs/heads/{name}", ZERO_ID, "2" * 40, RefChangeType.ADD)


def test_rules_emit_nothing_without_options(memory_repo, commit_factory, pusher) -> None:
    memory_repo.add(MASTER.ref_id, commit_factory(message="whatever", author=Identity("x", "x@y")))
    config = PolicyConfig()
    for rule in (
        BranchNameRule(),
        CommitterEmailRegexRule(),
        AuthorEmailRule(),
        AuthorNameRule(),
        CommitterEmailRule(),
        CommitMessageRule(),
    ):
        assert rule.check(memory_repo, config, MASTER, pusher=pusher) == []
    assert memory_repo.calls == []


def test_commit_message_must_match_in_full(memory_repo, commit_factory) -> None:
    memory_repo.add(
        MASTER.ref_id,
        commit_factory(sha="a" * 40, message="ABC-1: fix parser\n"),
        commit_factory(sha="b" * 40, message="fix parser ABC-1\n"),
    )
    config = PolicyConfig(commit_message_regex=r"[A-Z]+-\d+: .+")

    violations = CommitMessageRule().check(memory_repo, config, MASTER)

    assert [v.message for v in violations] == [
        "bbbbbbbbbbb: commit message doesn't match regex: [A-Z]+-\\d+: .+",
    ]
    assert violations[0].type == ViolationType.COMMIT_REGEX


def test_commit_message_regex_spans_lines(memory_repo, commit_factory) -> None:
    memory_repo.add(MASTER.ref_id, commit_factory(message="ABC-1: subject\n\nlonger body\n"))
    config = PolicyConfig(commit_message_regex=r"ABC-\d+: .*")
    assert CommitMessageRule().check(memory_repo, config, MASTER) == []


def test_commit_message_custom_text_keeps_commit_prefix(memory_repo, commit_factory) -> None:
    memory_repo.add(MASTER.ref_id, commit_factory(sha="c" * 40, message="nope"))
    config = PolicyConfig(
        commit_message_regex="ABC-.*",
        error_messages=((ViolationType.COMMIT_REGEX, "reference a ticket"),),
    )
    violations = CommitMessageRule().check(memory_repo, config, MASTER)
    assert [v.message for v in violations] == ["ccccccccccc: reference a ticket"]


def test_invalid_commit_message_regex_raises_config_error(memory_repo) -> None:
    config = PolicyConfig(commit_message_regex="([unclosed")
    with pytest.raises(PolicyConfigError, match="commitMessageRegex"):
        CommitMessageRule().check(memory_repo, config, MASTER)


def test_author_email_compared_case_insensitively(memory_repo, commit_factory, pusher) -> None:
    memory_repo.add(
        MASTER.ref_id,
        commit_factory(sha="a" * 40, author=Identity("Jane Dev", "JANE@example.com")),
        commit_factory(sha="b" * 40, author=Identity("Jane Dev", "other@example.com")),
    )
    config = PolicyConfig(require_matching_author_email=True)

    violations = AuthorEmailRule().check(memory_repo, config, MASTER, pusher=pusher)

    assert [v.message for v in violations] == [
        "bbbbbbbbbbb: expected author email 'jane@example.com' but found 'other@example.com'",
    ]


def test_identity_rules_need_a_pusher(memory_repo, commit_factory) -> None:
    memory_repo.add(MASTER.ref_id, commit_factory(author=Identity("x", "x@y")))
    config = PolicyConfig(require_matching_author_email=True, require_matching_author_name=True)
    assert AuthorEmailRule().check(memory_repo, config, MASTER) == []
    assert AuthorNameRule().check(memory_repo, config, MASTER) == []


def test_email_only_pusher_skips_author_name(memory_repo, commit_factory) -> None:
    memory_repo.add(MASTER.ref_id, commit_factory(author=Identity("Jane Dev", "jane@example.com")))
    config = PolicyConfig(require_matching_author_name=True, require_matching_author_email=True)
    email_only = Identity("", "jane@example.com")

    assert AuthorNameRule().check(memory_repo, config, MASTER, pusher=email_only) == []
    assert AuthorEmailRule().check(memory_repo, config, MASTER, pusher=email_only) == []


def test_name_only_pusher_skips_email_rules(memory_repo, commit_factory) -> None:
    memory_repo.add(MASTER.ref_id, commit_factory(author=Identity("Jane Dev", "jane@example.com")))
    config = PolicyConfig(
        committer_email_regex=r".*@example\.com",
        require_matching_author_email=True,
        require_matching_author_name=True,
        require_matching_committer_email=True,
    )
    name_only = Identity("Jane Dev", "  ")

    assert CommitterEmailRegexRule().check(memory_repo, config, MASTER, pusher=name_only) == []
    assert AuthorEmailRule().check(memory_repo, config, MASTER, pusher=name_only) == []
    assert CommitterEmailRule().check(memory_repo, config, MASTER, pusher=name_only) == []
    assert AuthorNameRule().check(memory_repo, config, MASTER, pusher=name_only) == []


def test_author_name_mismatch(memory_repo, commit_factory, pusher) -> None:
    memory_repo.add(
        MASTER.ref_id,
        commit_factory(sha="a" * 40, author=Identity(" jane dev ", "jane@example.com")),
        commit_factory(sha="b" * 40, author=Identity("John Doe", "jane@example.com")),
    )
    config = PolicyConfig(require_matching_author_name=True)

    violations = AuthorNameRule().check(memory_repo, config, MASTER, pusher=pusher)

    assert [v.message for v in violations] == [
        "bbbbbbbbbbb: expected author name 'Jane Dev' but found 'John Doe'",
    ]


def test_committer_email_mismatch(memory_repo, commit_factory, pusher) -> None:
    memory_repo.add(
        MASTER.ref_id,
        commit_factory(sha="a" * 40, committer=Identity("Bot", "bot@example.com")),
    )
    config = PolicyConfig(require_matching_committer_email=True)

    violations = CommitterEmailRule().check(memory_repo, config, MASTER, pusher=pusher)

    assert len(violations) == 1
    assert violations[0].type == ViolationType.COMMITTER_EMAIL


def test_committer_email_regex_checks_pusher(memory_repo, pusher) -> None:
    rule = CommitterEmailRegexRule()
    assert rule.check(memory_repo, PolicyConfig(committer_email_regex=r".*@example\.com"), MASTER, pusher=pusher) == []

    violations = rule.check(memory_repo, PolicyConfig(committer_email_regex=r".*@corp\.com"), MASTER, pusher=pusher)
    assert [v.message for v in violations] == [
        "committer email regex '.*@corp\\.com' does not match user email 'jane@example.com'",
    ]


def test_branch_name_checked_only_for_new_branches(memory_repo) -> None:
    config = PolicyConfig(branch_name_regex=r"(feature|bugfix)/[a-z0-9-]+")
    rule = BranchNameRule()

    assert rule.check(memory_repo, config, _new_branch("feature/login-form")) == []
    assert rule.check(memory_repo, config, MASTER) == []
    assert rule.check(memory_repo, config, RefChange("refs/tags/v1", ZERO_ID, "2" * 40, RefChangeType.ADD)) == []

    violations = rule.check(memory_repo, config, _new_branch("Login"))
    assert [v.message for v in violations] == [
        "branch name 'Login' doesn't match regex: (feature|bugfix)/[a-z0-9-]+",
    ]
    assert violations[0].type == ViolationType.BRANCH_NAME


def test_select_commits_excludes_merges_and_matching_messages(memory_repo, commit_factory) -> None:
    regular = commit_factory(sha="a" * 40, message="ABC-1: work")
    merge = commit_factory(sha="b" * 40, message="Merge branch 'x'", parents=("1" * 40, "2" * 40))
    wip = commit_factory(sha="c" * 40, message="WIP [skip-policy]")
    memory_repo.add(MASTER.ref_id, regular, merge, wip)

    assert select_commits(memory_repo, PolicyConfig(), MASTER) == [regular, merge, wip]
    assert select_commits(memory_repo, PolicyConfig(exclude_merge_commits=True), MASTER) == [regular, wip]
    config = PolicyConfig(exclude_merge_commits=True, exclude_by_regex=r"\[skip-policy\]")
    assert select_commits(memory_repo, config, MASTER) == [regular]
