"""Decide which ref changes of a push are subject to policy checks."""

from __future__ import annotations

from collections.abc import Iterable

from commitgate.types import ZERO_ID, RefChange, RefChangeType

# Git notes are metadata written by tooling, not authored history.
EXCLUDED_NAMESPACES: tuple[str, ...] = ("refs/notes/",)


def should_check(ref_change: RefChange, excluded_namespaces: Iterable[str] = EXCLUDED_NAMESPACES) -> bool:
    """Return False for deletions, zero targets, and excluded ref namespaces."""
    if ref_change.type == RefChangeType.DELETE:
        return False
    if ref_change.to_id == ZERO_ID:
        return False
    return not any(ref_change.ref_id.startswith(namespace) for namespace in excluded_namespaces)
