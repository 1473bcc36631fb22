"""Physical key derivation.

A physical key is the configured prefix followed by the logical name. No
escaping is applied: callers that share a prefix must pick names that do not
collide after concatenation (``"a:" + "b"`` and ``"a" + ":b"`` are the same
key under different prefixes).
"""

from __future__ import annotations

from dataclasses import dataclass


def derive_key(prefix: str, name: str) -> str:
    """Return the storage key for *name* under *prefix*.

    An empty *name* is accepted and yields the bare prefix.
    """
    return f"{prefix}{name}"


@dataclass(frozen=True, slots=True)
class KeyCodec:
    """A prefix bound once, applied to every logical name."""

    prefix: str = ""

    def derive(self, name: str) -> str:
        return derive_key(self.prefix, name)
