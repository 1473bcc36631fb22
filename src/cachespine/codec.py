"""
Value packing for cache storage.

Backends store opaque bytes. ``pack`` turns a Python value into bytes that
remember what kind of value it was, and ``unpack`` turns them back.

Wire layout:
    ::

        int (not bool)          b"42", b"-7"        bare decimal
        str                     b"s:" + utf-8
        bytes / bytearray       b"b:" + raw bytes
        None, bool, float,
        list, dict              b"j:" + JSON

Integers stay bare so that servers with native counters (memcached
``incr``, Redis ``INCRBY``) can add to them in place, and so that a counter
written by the server reads back as an ``int``.

Examples:
    >>> pack({"id": 1})
    b'j:{"id":1}'
    >>> unpack(pack("42"))
    '42'
    >>> unpack(b"42")
    42

Guardrails:
    ❌ DON'T: Store tuples or sets and expect them back (JSON gives lists)
    ❌ DON'T: Use non-string dict keys (rejected, JSON would stringify them)
    ✅ DO: Stick to None/bool/int/float/str/bytes/list/dict

Tags:
    serialization, codec, json, cachespine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import json
import re
from typing import Any

from cachespine.errors import CodecError

STRING_MARKER = b"s:"
BYTES_MARKER = b"b:"
JSON_MARKER = b"j:"

_INTEGER = re.compile(rb"-?[0-9]+")


def _check_dict_keys(value: Any, seen: set[int] | None = None) -> None:
    """Reject dict keys JSON would silently turn into strings."""
    if not isinstance(value, (dict, list, tuple)):
        return
    seen = set() if seen is None else seen
    # Cycles are left for json.dumps to report.
    if id(value) in seen:
        return
    seen.add(id(value))

    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise CodecError(
                    f"Cannot pack dict with non-string key {key!r}"
                ).with_context(key_type=type(key).__name__)
            _check_dict_keys(item, seen)
    else:
        for item in value:
            _check_dict_keys(item, seen)


def pack(value: Any) -> bytes:
    """Serialize *value* to its stored form.

    Raises:
        CodecError: If the value cannot be encoded.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return str(int(value)).encode("ascii")
    if isinstance(value, str):
        return STRING_MARKER + value.encode("utf-8")
    if isinstance(value, (bytes, bytearray)):
        return BYTES_MARKER + bytes(value)

    _check_dict_keys(value)
    try:
        payload = json.dumps(value, separators=(",", ":"), allow_nan=True)
    except (TypeError, ValueError) as exc:
        raise CodecError(
            f"Cannot pack value of type {type(value).__name__}", cause=exc
        ) from exc
    return JSON_MARKER + payload.encode("utf-8")


def unpack(stored: bytes | str) -> Any:
    """Inverse of :func:`pack`.

    Raises:
        CodecError: If *stored* is not a recognised packed representation.
    """
    if isinstance(stored, str):
        stored = stored.encode("utf-8")

    if _INTEGER.fullmatch(stored):
        return int(stored)

    marker, payload = stored[:2], stored[2:]
    try:
        if marker == STRING_MARKER:
            return payload.decode("utf-8")
        if marker == BYTES_MARKER:
            return payload
        if marker == JSON_MARKER:
            return json.loads(payload)
    except (UnicodeDecodeError, ValueError) as exc:
        raise CodecError("Stored value is corrupt", cause=exc) from exc

    raise CodecError(f"Unrecognised stored value marker {marker!r}")


def is_packed_integer(stored: bytes | None) -> bool:
    """True if *stored* is a bare integer, i.e. usable as a counter."""
    return stored is not None and _INTEGER.fullmatch(stored) is not None
