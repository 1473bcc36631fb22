"""Cache options shared by the store and every backend.

``CacheOptions`` is the flat configuration mapping a cache is built from:
server address(es), port(s), default TTL, connection timeout, persistent
connection flag and key prefix. It is frozen: options are fixed when the
store is constructed.

Features:
    - **Environment-driven:** ``CACHE_HOST``, ``CACHE_PORT``, ``CACHE_PREFIX`` ...
    - **.env file support:** Automatic loading via pydantic-settings
    - **Cluster hosts:** ``host="10.0.0.1,10.0.0.2"`` with parallel ``port`` list

Examples:
    >>> from cachespine.settings import CacheOptions
    >>> opts = CacheOptions(host="10.0.0.1,10.0.0.2", port="11211", prefix="app:")
    >>> opts.servers(default_port=11211)
    [('10.0.0.1', 11211), ('10.0.0.2', 11211)]

Tags:
    settings, configuration, pydantic, environment, cachespine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _join_csv(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ",".join(str(item).strip() for item in value)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class CacheOptions(BaseSettings):
    """Immutable cache configuration.

    Fields
    ──────
    host         : One or more server addresses, comma separated
    port         : Parallel list of ports; empty means the backend default
    expire       : Default TTL in seconds (0 = never expires)
    timeout      : Connection timeout in seconds (0 = client default)
    persistent   : Keep connections open / pooled between operations
    prefix       : Prepended to every logical name
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ── Servers ──────────────────────────────────────────────────
    host: str = Field(default="127.0.0.1")
    port: str = Field(default="", description="Comma separated; empty = backend default")

    # ── Behaviour ────────────────────────────────────────────────
    expire: int = Field(default=0, ge=0, description="Default TTL in seconds, 0 = never")
    timeout: float = Field(default=0, ge=0, description="Connect timeout, 0 = client default")
    persistent: bool = Field(default=True)
    prefix: str = Field(default="")

    @field_validator("host", "port", mode="before")
    @classmethod
    def _accept_lists(cls, value: Any) -> Any:
        return _join_csv(value)

    @field_validator("port")
    @classmethod
    def _ports_are_numeric(cls, value: str) -> str:
        for part in value.split(","):
            part = part.strip()
            if not part:
                continue
            if not part.isdigit() or not 0 < int(part) < 65536:
                raise ValueError(f"port must be an integer in 1-65535, got {part!r}")
        return value

    @property
    def hosts(self) -> list[str]:
        """Configured host addresses, blanks removed."""
        return [h.strip() for h in self.host.split(",") if h.strip()]

    def servers(self, default_port: int) -> list[tuple[str, int]]:
        """Pair every host with its port.

        When fewer ports than hosts are given the first port is reused for
        the remaining hosts. An empty first port means *default_port*.
        """
        ports = [p.strip() for p in self.port.split(",")]
        if not ports[0]:
            ports[0] = str(default_port)

        servers = []
        for i, host in enumerate(self.hosts):
            port = ports[i] if i < len(ports) and ports[i] else ports[0]
            servers.append((host, int(port)))
        return servers

    @property
    def connect_timeout(self) -> float | None:
        """Timeout to hand to a client library (None = library default)."""
        return self.timeout if self.timeout > 0 else None
