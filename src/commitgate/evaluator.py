"""Run the ordered rule list against one ref change."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from commitgate.config import PolicyConfig, PolicyConfigError
from commitgate.rules import DEFAULT_RULES, Rule
from commitgate.types import Commit, Identity, PolicyViolation, RefChange, Repository, ViolationType

logger = logging.getLogger(__name__)


class _CommitCache:
    """Repository view that reads each ref change's commits once."""

    def __init__(self, repository: Repository):
        self.repository = repository
        self._commits: dict[RefChange, Sequence[Commit]] = {}

    def commits(self, ref_change: RefChange) -> Sequence[Commit]:
        if ref_change not in self._commits:
            self._commits[ref_change] = self.repository.commits(ref_change)
        return self._commits[ref_change]


class RuleEvaluator:
    """Concatenate rule results in rule order, then commit order."""

    def __init__(self, rules: Sequence[Rule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def evaluate(
        self,
        repository: Repository,
        config: PolicyConfig,
        ref_change: RefChange,
        *,
        pusher: Identity | None = None,
    ) -> list[PolicyViolation]:
        """Return every violation ``ref_change`` produces under ``config``.

        Unparseable options and invalid regular expressions become
        CONFIGURATION violations, reported once per distinct message and
        ahead of rule results. Repository errors propagate.
        """
        violations = [_configuration_violation(message) for message in dict.fromkeys(config.option_errors)]

        try:
            if self._excluded(config, ref_change, pusher):
                return violations
        except PolicyConfigError as exc:
            violations.append(_configuration_violation(str(exc)))

        commits = _CommitCache(repository)
        for rule in self.rules:
            try:
                found = rule.check(commits, config, ref_change, pusher=pusher)
            except PolicyConfigError as exc:
                found = [_configuration_violation(str(exc))]
            logger.debug("rule %s on %s: %d violation(s)", rule.name, ref_change.ref_id, len(found))
            for violation in found:
                if violation.type == ViolationType.CONFIGURATION and violation in violations:
                    continue
                violations.append(violation)

        return violations

    def _excluded(self, config: PolicyConfig, ref_change: RefChange, pusher: Identity | None) -> bool:
        if pusher is not None and pusher.name in config.exclude_users:
            logger.debug("pusher %s is excluded from policy checks", pusher.name)
            return True
        pattern = config.pattern("exclude_branch_regex")
        branch = ref_change.branch_name
        if pattern is not None and branch is not None and pattern.fullmatch(branch):
            logger.debug("branch %s is excluded from policy checks", branch)
            return True
        return False


def _configuration_violation(detail: str) -> PolicyViolation:
    return PolicyViolation(f"invalid policy configuration: {detail}", ViolationType.CONFIGURATION)
