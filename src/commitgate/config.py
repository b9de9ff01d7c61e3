"""Policy configuration record and loaders.

Hosts store push-policy settings as flat key/value options
(``commitMessageRegex``, ``errorMessageHeader``, ...). ``PolicyConfig``
turns such a mapping into an immutable record with every recognized option
enumerated and defaulted, so rule code never looks up raw keys.

Option files may be YAML, TOML, or JSON and are validated against the
packaged ``policy_config`` schema before they are parsed.
"""

from __future__ import annotations

import json
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from commitgate.schemas.validator import validate_data
from commitgate.types import ViolationType

ERROR_MESSAGE_PREFIX = "errorMessage."

# Host option key -> PolicyConfig field name.
OPTION_KEYS: dict[str, str] = {
    "errorMessageHeader": "error_message_header",
    "errorMessageFooter": "error_message_footer",
    "commitMessageRegex": "commit_message_regex",
    "committerEmailRegex": "committer_email_regex",
    "branchNameRegex": "branch_name_regex",
    "requireMatchingAuthorEmail": "require_matching_author_email",
    "requireMatchingAuthorName": "require_matching_author_name",
    "requireMatchingCommitterEmail": "require_matching_committer_email",
    "excludeMergeCommits": "exclude_merge_commits",
    "excludeByRegex": "exclude_by_regex",
    "excludeBranchRegex": "exclude_branch_regex",
    "excludeUsers": "exclude_users",
}

_BOOL_FIELDS = {
    "require_matching_author_email",
    "require_matching_author_name",
    "require_matching_committer_email",
    "exclude_merge_commits",
}

_PATTERN_FIELDS = {
    "commit_message_regex",
    "committer_email_regex",
    "branch_name_regex",
    "exclude_by_regex",
    "exclude_branch_regex",
}


class PolicyConfigError(ValueError):
    """Raised when a policy option cannot be parsed or compiled."""


@dataclass(frozen=True)
class PolicyConfig:
    """Immutable push-policy options, populated once per evaluation.

    ``error_messages`` holds ``(ViolationType, text)`` pairs sorted by type.
    ``option_errors`` lists host options that could not be parsed; the
    evaluator reports each as a configuration violation.
    """

    error_message_header: str | None = None
    error_message_footer: str | None = None
    commit_message_regex: str | None = None
    committer_email_regex: str | None = None
    branch_name_regex: str | None = None
    require_matching_author_email: bool = False
    require_matching_author_name: bool = False
    require_matching_committer_email: bool = False
    exclude_merge_commits: bool = False
    exclude_by_regex: str | None = None
    exclude_branch_regex: str | None = None
    exclude_users: tuple[str, ...] = ()
    error_messages: tuple[tuple[ViolationType, str], ...] = ()
    option_errors: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> PolicyConfig:
        """Build a config from host-style option keys.

        Unknown keys are ignored; hosts keep unrelated settings alongside.
        Values that cannot be parsed leave the option at its default and are
        recorded in ``option_errors`` instead of raising.
        """
        values: dict[str, Any] = {}
        error_messages: dict[ViolationType, str] = {}
        option_errors: list[str] = []

        for key, raw in options.items():
            try:
                if key.startswith(ERROR_MESSAGE_PREFIX):
                    violation_type = _parse_message_type(key)
                    if raw is not None and str(raw).strip():
                        error_messages[violation_type] = str(raw)
                    continue

                name = OPTION_KEYS.get(key)
                if name is None or raw is None:
                    continue

                if name in _BOOL_FIELDS:
                    values[name] = _parse_bool(key, raw)
                elif name in _PATTERN_FIELDS:
                    text = str(raw)
                    values[name] = text if text.strip() else None
                elif name == "exclude_users":
                    values[name] = _parse_users(key, raw)
                else:
                    values[name] = str(raw)
            except PolicyConfigError as exc:
                option_errors.append(str(exc))

        return cls(
            **values,
            error_messages=tuple(sorted(error_messages.items(), key=lambda item: item[0].value)),
            option_errors=tuple(option_errors),
        )

    def pattern(self, name: str, flags: int = 0) -> re.Pattern[str] | None:
        """Compile the regex option stored in field ``name``.

        Returns None when the option is unset. An invalid expression raises
        PolicyConfigError naming the host option key.
        """
        if name not in _PATTERN_FIELDS:
            raise KeyError(f"'{name}' is not a pattern option")
        text = getattr(self, name)
        if text is None:
            return None
        try:
            return re.compile(text, flags)
        except re.error as exc:
            raise PolicyConfigError(f"invalid regular expression for {option_key(name)} '{text}': {exc}") from exc

    def message_for(self, violation_type: ViolationType, default: str) -> str:
        """Configured message text for a rule, or ``default``."""
        for configured_type, text in self.error_messages:
            if configured_type == violation_type:
                return text
        return default

    def to_options(self) -> dict[str, Any]:
        """Render back to host option keys (unset options omitted)."""
        options: dict[str, Any] = {}
        for key, name in OPTION_KEYS.items():
            value = getattr(self, name)
            if value is None or value == () or value is False:
                continue
            options[key] = ", ".join(value) if name == "exclude_users" else value
        for violation_type, text in self.error_messages:
            options[f"{ERROR_MESSAGE_PREFIX}{violation_type.value}"] = text
        return options


def option_key(name: str) -> str:
    """Host option key for a PolicyConfig field name."""
    for key, field_name in OPTION_KEYS.items():
        if field_name == name:
            return key
    known = ", ".join(f.name for f in fields(PolicyConfig))
    raise KeyError(f"unknown policy field '{name}' (known: {known})")


def _parse_message_type(key: str) -> ViolationType:
    try:
        return ViolationType(key[len(ERROR_MESSAGE_PREFIX):])
    except ValueError as exc:
        raise PolicyConfigError(f"unknown error message type in option '{key}'") from exc


def _parse_bool(key: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in ("true", "yes", "1", "on"):
        return True
    if text in ("false", "no", "0", "off", ""):
        return False
    raise PolicyConfigError(f"option '{key}' expects a boolean, got {raw!r}")


def _parse_users(key: str, raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw]
    else:
        raise PolicyConfigError(f"option '{key}' expects a comma-separated string or list, got {raw!r}")
    return tuple(item.strip() for item in items if item.strip())


def load_policy_config(path: Path) -> PolicyConfig:
    """Load policy options from a YAML, TOML, or JSON file.

    Args:
        path: Option file; format is chosen by suffix
            (``.yaml``/``.yml``, ``.toml``, ``.json``)

    Returns:
        Parsed PolicyConfig

    Raises:
        PolicyConfigError: If the file is missing or malformed, fails
            schema validation or holds options that cannot be parsed
    """
    if not path.exists():
        raise PolicyConfigError(f"policy config not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        elif suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        elif suffix == ".json":
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        else:
            raise PolicyConfigError(f"unsupported policy config format '{suffix}' for {path}")
    except yaml.YAMLError as e:
        raise PolicyConfigError(f"Malformed YAML config at {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise PolicyConfigError(f"Malformed TOML config at {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PolicyConfigError(f"Malformed JSON config at {path}: {e}") from e

    if data is None:
        data = {}

    ok, errors = validate_data(data, "policy_config", strict=False)
    if not ok:
        raise PolicyConfigError(
            f"Invalid policy config in {path}:\n" + "\n".join(f"  - {msg}" for msg in errors)
        )

    config = PolicyConfig.from_mapping(data)
    if config.option_errors:
        raise PolicyConfigError(
            f"Invalid policy config in {path}:\n" + "\n".join(f"  - {msg}" for msg in config.option_errors)
        )
    return config
