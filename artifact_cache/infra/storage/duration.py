"""Retention duration parsing.

TTL strings use the compact duration notation common to CI tooling: a signed
sequence of decimal numbers, each with an optional fraction and a unit suffix,
such as ``"300ms"``, ``"1.5h"`` or ``"2h45m"``. Valid units are ``ns``,
``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
import re

from artifact_cache.infra.storage.exceptions import StorageConfigurationError

# Microseconds per unit; sub-microsecond precision is truncated by timedelta
_UNIT_MICROSECONDS: dict[str, Decimal] = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),  # U+00B5 micro sign
    "μs": Decimal(1),  # U+03BC greek small letter mu
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}

_COMPONENT = re.compile(r"([0-9]*(?:\.[0-9]*)?)(ns|us|µs|μs|ms|s|m|h)?")


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as ``"24h"`` or ``"1h30m"``.

    Args:
        value: Duration string. ``"0"`` is accepted without a unit.

    Returns:
        The parsed duration.

    Raises:
        StorageConfigurationError: If the string is not a valid duration.
    """
    original = value
    if not value:
        raise _invalid(original, "empty duration")

    sign = 1
    if value[0] in "+-":
        sign = -1 if value[0] == "-" else 1
        value = value[1:]

    if value == "0":
        return timedelta(0)
    if not value:
        raise _invalid(original, "missing number")

    total = Decimal(0)
    pos = 0
    while pos < len(value):
        match = _COMPONENT.match(value, pos)
        assert match is not None  # every group is optional
        number, unit = match.group(1), match.group(2)
        if number in ("", "."):
            raise _invalid(original, "missing number")
        if unit is None:
            if match.end() == len(value):
                raise _invalid(original, "missing unit")
            raise _invalid(original, f"unknown unit at {value[match.end():]!r}")
        try:
            total += Decimal(number) * _UNIT_MICROSECONDS[unit]
        except InvalidOperation as exc:
            raise _invalid(original, f"bad number {number!r}") from exc
        pos = match.end()

    try:
        return timedelta(microseconds=int(sign * total))
    except OverflowError as exc:
        raise _invalid(original, "duration out of range") from exc


def compute_expiration(
    ttl: str,
    now: datetime | None = None,
) -> datetime | None:
    """Turn a TTL string into an absolute expiration instant.

    Args:
        ttl: Duration string; empty means no expiration policy.
        now: Reference instant (defaults to the current UTC time).

    Returns:
        ``now + ttl`` as an aware UTC datetime, or None when ttl is empty.

    Raises:
        StorageConfigurationError: If ttl is unparsable or not positive.
    """
    if not ttl:
        return None

    duration = parse_duration(ttl)
    if duration <= timedelta(0):
        raise StorageConfigurationError(
            f"TTL must be a positive duration, got {ttl!r}",
            metadata={"ttl": ttl},
        )

    reference = now or datetime.now(UTC)
    try:
        return reference + duration
    except OverflowError as exc:
        raise StorageConfigurationError(
            f"TTL {ttl!r} puts the expiration date out of range",
            metadata={"ttl": ttl},
        ) from exc


def _invalid(value: str, reason: str) -> StorageConfigurationError:
    return StorageConfigurationError(
        f"Invalid TTL duration {value!r}: {reason}",
        metadata={"ttl": value, "reason": reason},
    )
