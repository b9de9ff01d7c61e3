"""Push decision: classify, evaluate, render, accept or reject."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TextIO

from commitgate.classifier import should_check
from commitgate.config import PolicyConfig
from commitgate.evaluator import RuleEvaluator
from commitgate.render import render
from commitgate.types import Identity, PolicyViolation, PushDecision, RefChange, Repository

logger = logging.getLogger(__name__)


def evaluate_push(
    ref_changes: Sequence[RefChange],
    config: PolicyConfig,
    repository: Repository,
    *,
    pusher: Identity | None = None,
    evaluator: RuleEvaluator | None = None,
) -> PushDecision:
    """Evaluate every ref change of a push and decide accept/reject.

    Ref changes are processed in the order given; the rendered message groups
    violations by ref in that same order. Nothing is written anywhere.
    """
    evaluator = evaluator or RuleEvaluator()
    collected: list[tuple[str, list[PolicyViolation]]] = []

    for ref_change in ref_changes:
        if not should_check(ref_change):
            logger.debug("skipping %s (%s)", ref_change.ref_id, ref_change.type.value)
            continue
        violations = evaluator.evaluate(repository, config, ref_change, pusher=pusher)
        if violations:
            collected.append((ref_change.ref_id, [v.with_ref(ref_change.ref_id) for v in violations]))

    if not collected:
        logger.info("push accepted (%d ref change(s))", len(ref_changes))
        return PushDecision(allowed=True)

    attached = tuple(v for _, violations in collected for v in violations)
    logger.info("push rejected with %d violation(s)", len(attached))
    message = render(config.error_message_header, collected, config.error_message_footer)
    return PushDecision(allowed=False, message=message, violations=attached)


def on_receive(
    ref_changes: Sequence[RefChange],
    config: PolicyConfig,
    repository: Repository,
    err: TextIO,
    *,
    pusher: Identity | None = None,
    evaluator: RuleEvaluator | None = None,
) -> bool:
    """Decide the push and write the rejection text to ``err`` when rejecting."""
    decision = evaluate_push(ref_changes, config, repository, pusher=pusher, evaluator=evaluator)
    if not decision.allowed:
        err.write(decision.message)
        err.flush()
    return decision.allowed


class PushGate:
    """Hook object bound to one evaluator, for hosts that register instances."""

    def __init__(self, evaluator: RuleEvaluator | None = None):
        self.evaluator = evaluator or RuleEvaluator()

    def on_receive(
        self,
        ref_changes: Sequence[RefChange],
        config: PolicyConfig,
        repository: Repository,
        err: TextIO,
        *,
        pusher: Identity | None = None,
    ) -> bool:
        return on_receive(ref_changes, config, repository, err, pusher=pusher, evaluator=self.evaluator)
