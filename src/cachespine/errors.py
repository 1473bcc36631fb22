"""
Structured error types for cachespine.

Every failure the cache layer can raise is a ``CacheError`` subclass carrying
a category, a retryable flag, a structured context (backend, key, operation)
and the chained underlying exception. Absence of a key is never an error:
``get``/``pull`` return the caller's default instead.

Manifesto:
    - **Typed hierarchy:** One class per failure domain (config, network, codec)
    - **Explicit retry semantics:** Each error knows if retrying could help
    - **Rich context:** Errors carry the physical key and backend for logging
    - **Error chaining:** Client-library exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        CacheError                            │
        │           (category, retryable, context, cause)              │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigurationError   CacheConnectionError   CodecError      │
        │  (CONFIG)             (NETWORK)              (CODEC)         │
        │                                                              │
        │  CacheValueError                                             │
        │  (VALUE)                                                     │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = CacheConnectionError("memcached unreachable")
    >>> error.retryable
    True
    >>> error.with_context(backend="memcached", key="user:1").context.key
    'user:1'

Guardrails:
    ❌ DON'T: Coerce a CodecError into the caller's default value
    ✅ DO: Let corrupt data surface as a failure of ``get``/``pull``

    ❌ DON'T: Retry inside the cache layer
    ✅ DO: Leave retry policy to the caller or the backend client

Tags:
    error-handling, exception-hierarchy, cache, cachespine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"        # Missing client library, invalid options
    NETWORK = "NETWORK"      # Server unreachable, socket timeout
    CODEC = "CODEC"          # Corrupt or unencodable stored value
    VALUE = "VALUE"          # Operation not applicable to the stored value
    INTERNAL = "INTERNAL"    # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to a cache error.

    Attributes:
        backend: Backend name (``memory``, ``redis``, ``memcached``)
        operation: Store or backend operation that failed
        key: Physical key involved, if any
        host: Server address, if any
        metadata: Additional key-value pairs
    """

    backend: str | None = None
    operation: str | None = None
    key: str | None = None
    host: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["backend", "operation", "key", "host"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CacheError(Exception):
    """
    Base exception for all cachespine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    callers can make retry decisions without inspecting messages.

    Examples:
        >>> error = CacheError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["retryable"]
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CacheError:
        """
        Add context to this error (fluent API).

        Usage:
            raise CodecError("bad marker").with_context(key="app:user:1")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }

        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict

        if self.cause is not None:
            result["cause"] = str(self.cause)

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class ConfigurationError(CacheError):
    """
    A required backend capability is unavailable at construction time.

    Raised immediately (missing client library, invalid options). Never
    retryable: the deployment must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class CacheConnectionError(CacheError):
    """
    Backend unreachable.

    Surfaced on the first operation that needs connectivity. Marked
    retryable for the caller's benefit; this layer itself never retries or
    reconnects.
    """

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class CodecError(CacheError):
    """Stored data is corrupt or a value cannot be encoded."""

    default_category = ErrorCategory.CODEC
    default_retryable = False


class CacheValueError(CacheError):
    """A counter operation hit a stored value that is not an integer."""

    default_category = ErrorCategory.VALUE
    default_retryable = False


def is_retryable(error: Exception) -> bool:
    """Return True if *error* is a CacheError flagged as retryable."""
    if isinstance(error, CacheError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "CacheError",
    "ConfigurationError",
    "CacheConnectionError",
    "CodecError",
    "CacheValueError",
    "is_retryable",
]
