"""
Configuration objects for quorumlock.

NodeConfig describes one storage node and is validated by pydantic.
LockManagerConfig holds the tuning knobs of the acquisition algorithm.

Example:
    >>> nodes = [
    ...     NodeConfig(host="redis-a", port=6379),
    ...     NodeConfig.from_url("redis://:s3cret@redis-b:6380/1"),
    ...     NodeConfig(host="redis-c", timeout=0.05),
    ... ]
    >>> config = LockManagerConfig(retry_delay_ms=100, retry_count=5)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from quorumlock.drift import DEFAULT_CLOCK_DRIFT_FACTOR

DEFAULT_PORT = 6379
DEFAULT_NODE_TIMEOUT = 0.1
DEFAULT_RETRY_DELAY_MS = 200
DEFAULT_RETRY_COUNT = 3


class NodeConfig(BaseModel):
    """
    Connection parameters for one lock node.

    Attributes:
        host: Hostname or IP address
        port: TCP port (default 6379)
        timeout: Seconds allowed for connecting and for each lock operation.
            Keep this small compared to lock TTLs so an unreachable node
            costs little of the validity window.
        password: Optional password (or ACL secret)
        username: Optional ACL username
        db: Database index
        ssl: Connect over TLS
        options: Extra keyword arguments for the Redis client, such as
            ``health_check_interval`` taken from a URL query string
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    timeout: float = Field(default=DEFAULT_NODE_TIMEOUT, gt=0)
    password: SecretStr | None = None
    username: str | None = None
    db: int = Field(default=0, ge=0)
    ssl: bool = False
    options: dict[str, Any] = Field(default_factory=dict)

    @property
    def address(self) -> str:
        """Return "host:port" for logs and diagnostics."""
        return f"{self.host}:{self.port}"

    @classmethod
    def from_url(cls, url: str, **overrides: Any) -> NodeConfig:
        """
        Build a node configuration from a redis:// or rediss:// URL.

        The URL is parsed by redis-py, so it accepts the same syntax as
        ``redis.asyncio.from_url``, including query parameters.
        ``socket_timeout`` (or ``timeout``) sets the node timeout and every
        other recognized parameter is kept in ``options`` and handed to the
        Redis client.

        Args:
            url: URL of the form
                ``redis://[user[:password]@]host[:port][/db][?option=value...]``
            **overrides: Field values that take precedence over the URL
                (typically ``timeout``)

        Raises:
            ValueError: If the scheme is not supported, the URL points at a
                unix socket or it has no host
            RedisNotAvailableError: If the redis package is not installed
        """
        try:
            from redis.connection import parse_url
        except ImportError as e:
            from quorumlock.nodes.redis import RedisNotAvailableError

            raise RedisNotAvailableError() from e

        parsed = parse_url(url)
        if url.startswith("unix://"):
            raise ValueError(f"Unix socket URLs cannot be used as lock nodes: {url!r}.")
        if not parsed.get("host"):
            raise ValueError(f"Node URL has no host: {url!r}.")

        parsed.pop("connection_class", None)
        values: dict[str, Any] = {
            "host": parsed.pop("host"),
            "port": parsed.pop("port", DEFAULT_PORT),
            "db": parsed.pop("db", 0),
            "ssl": url.startswith("rediss://"),
        }
        for field_name in ("username", "password"):
            if field_name in parsed:
                values[field_name] = parsed.pop(field_name)
        for timeout_key in ("timeout", "socket_timeout"):
            if timeout_key in parsed:
                values["timeout"] = parsed.pop(timeout_key)
        if parsed:
            values["options"] = parsed

        values.update(overrides)
        return cls(**values)

    def __str__(self) -> str:
        return self.address


@dataclass
class LockManagerConfig:
    """
    Tuning knobs for QuorumLockManager.

    Attributes:
        retry_delay_ms: Upper bound of the random pause between attempts.
            Each pause is drawn from [retry_delay_ms / 2, retry_delay_ms].
        retry_count: Total number of attempts per acquire call
        clock_drift_factor: Fraction of the TTL reserved for clock drift
        enable_tracing: Enable OpenTelemetry tracing if available
    """

    retry_delay_ms: float = DEFAULT_RETRY_DELAY_MS
    retry_count: int = DEFAULT_RETRY_COUNT
    clock_drift_factor: float = DEFAULT_CLOCK_DRIFT_FACTOR
    enable_tracing: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.retry_delay_ms < 0:
            raise ValueError(f"retry_delay_ms must be >= 0, got {self.retry_delay_ms}.")

        if self.retry_count < 1:
            raise ValueError(
                f"retry_count must be >= 1, got {self.retry_count}. Use 1 for a single attempt."
            )

        if not 0.0 <= self.clock_drift_factor < 1.0:
            raise ValueError(
                f"clock_drift_factor must be in [0.0, 1.0), got {self.clock_drift_factor}."
            )


__all__ = [
    "DEFAULT_NODE_TIMEOUT",
    "DEFAULT_PORT",
    "DEFAULT_RETRY_COUNT",
    "DEFAULT_RETRY_DELAY_MS",
    "LockManagerConfig",
    "NodeConfig",
]
