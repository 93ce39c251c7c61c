"""Bucket lifecycle rules for cache object expiration.

Each stored key gets one expiration rule whose filter prefix is the key
itself. Rules created here carry an ``ID`` with a fixed prefix so they can be
told apart from rules other tools put on the same bucket.
"""

from __future__ import annotations

from datetime import UTC, datetime
import hashlib
from typing import Any

RULE_ID_PREFIX = "artifact-cache-expire-"


def rule_id_for(key: str) -> str:
    """Derive a stable lifecycle rule ID for a key.

    S3 limits rule IDs to 255 characters, so the key is hashed.
    """
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
    return f"{RULE_ID_PREFIX}{digest}"


def build_expiration_rule(key: str, expires_at: datetime) -> dict[str, Any]:
    """Build a lifecycle rule deleting objects under ``key`` at ``expires_at``."""
    return {
        "ID": rule_id_for(key),
        "Filter": {"Prefix": key},
        "Status": "Enabled",
        "Expiration": {"Date": expires_at},
    }


def is_owned_rule(rule: dict[str, Any]) -> bool:
    """Check whether a rule was created by this cache."""
    return str(rule.get("ID", "")).startswith(RULE_ID_PREFIX)


def rule_expiration_date(rule: dict[str, Any]) -> datetime | None:
    """Return the rule's absolute expiration date as an aware datetime, if any."""
    date = rule.get("Expiration", {}).get("Date")
    if date is None:
        return None
    if isinstance(date, str):
        date = datetime.fromisoformat(date.replace("Z", "+00:00"))
    if date.tzinfo is None:
        date = date.replace(tzinfo=UTC)
    return date


def merge_rules(
    existing: list[dict[str, Any]],
    rule: dict[str, Any],
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Merge a new expiration rule into a bucket's current rules.

    Rules from other owners are kept unchanged. A rule with the same ID is
    replaced, and owned rules whose expiration date has passed are dropped
    (their objects are gone, and S3 caps a bucket at 1000 rules).

    Args:
        existing: Rules currently configured on the bucket.
        rule: The rule to add or overwrite.
        now: Reference instant for pruning (defaults to current UTC time).

    Returns:
        The new rule list, with ``rule`` last.
    """
    reference = now or datetime.now(UTC)
    merged: list[dict[str, Any]] = []

    for current in existing:
        if current.get("ID") == rule["ID"]:
            continue
        if is_owned_rule(current):
            expires = rule_expiration_date(current)
            if expires is not None and expires <= reference:
                continue
        merged.append(current)

    merged.append(rule)
    return merged
