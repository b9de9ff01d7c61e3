"""Render aggregated violations into the rejection message."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from commitgate.types import PolicyViolation

DEFAULT_HEADER = "\n".join([
    "  _______________________________________",
    " /                                       \\",
    "|    Push rejected by commit policy.      |",
    "|    Fix the commits listed below and     |",
    "|    push again.                          |",
    " \\_______________________________________/",
])


def is_blank(value: str | None) -> bool:
    """True for None or a string that is empty after trimming whitespace."""
    return value is None or not value.strip()


def render(
    header: str | None,
    violations_by_ref: Iterable[tuple[str, Sequence[PolicyViolation]]],
    footer: str | None,
) -> str:
    """Render the rejection text.

    ``violations_by_ref`` is consumed in order; each violation becomes a
    ``<ref>: <message>`` line followed by a blank line.
    """
    lines = [DEFAULT_HEADER if is_blank(header) else header, ""]

    for ref_id, violations in violations_by_ref:
        for violation in violations:
            lines.append(f"{ref_id}: {violation.message}")
            lines.append("")

    if not is_blank(footer):
        lines.append(footer)
        lines.append("")

    return "\n".join(lines) + "\n"
