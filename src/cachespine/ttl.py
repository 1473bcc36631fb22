"""TTL resolution.

Callers express expiry three ways: not at all (use the configured default),
as a relative duration (seconds or ``timedelta``), or as an absolute instant
(``datetime``). ``resolve_ttl`` turns any of them into whole seconds from now,
the unit every backend understands.

Two sentinels matter:

- ``NEVER`` (``0``): the entry does not expire. An explicit ``0`` is preserved
  as ``0`` and is never treated as "already expired".
- ``EXPIRED`` (``-1``): the requested expiry is now or in the past (a negative
  duration, or a ``datetime`` that is not in the future). ``CacheStore.set``
  deletes the key instead of writing it; backends never receive it.

Fractional seconds round up, so ``0.2`` means one second, not "never".
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Union

NEVER = 0
EXPIRED = -1

TTL = Union[int, float, timedelta, datetime, None]


def _seconds(duration: float) -> int:
    if isinstance(duration, float) and not math.isfinite(duration):
        raise ValueError(f"TTL must be a finite number of seconds, got {duration!r}")
    if duration < 0:
        return EXPIRED
    if duration == 0:
        return NEVER
    return math.ceil(duration)


def resolve_ttl(ttl: TTL, default: TTL = NEVER, *, now: datetime | None = None) -> int:
    """Resolve *ttl* (or *default* when *ttl* is None) to seconds from now.

    Args:
        ttl: ``None``, seconds, ``timedelta`` or an absolute ``datetime``.
        default: Used when *ttl* is ``None``; any of the same forms.
        now: Reference instant for absolute expiries (defaults to UTC now).

    Returns:
        Positive seconds, ``NEVER`` (0) or ``EXPIRED`` (-1).

    Raises:
        TypeError: For unsupported TTL types (including ``bool``).
        ValueError: For ``nan`` or infinite float durations.
    """
    if ttl is None:
        if default is None:
            return NEVER
        return resolve_ttl(default, NEVER, now=now)

    if isinstance(ttl, bool):
        raise TypeError("TTL must be a number, timedelta or datetime, not bool")

    if isinstance(ttl, datetime):
        now = now or datetime.now(timezone.utc)
        if ttl.tzinfo is None:
            ttl = ttl.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        remaining = (ttl - now).total_seconds()
        # An absolute instant that has arrived expires now; it never means "forever".
        if remaining <= 0:
            return EXPIRED
        return math.ceil(remaining)

    if isinstance(ttl, timedelta):
        return _seconds(ttl.total_seconds())

    if isinstance(ttl, (int, float)):
        return _seconds(ttl)

    raise TypeError(f"Unsupported TTL type: {type(ttl).__name__}")
