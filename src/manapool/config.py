"""
Client configuration.

ClientConfig is built once at startup and shared read-only by every call.
Missing credentials fall back to environment variables via from_env().
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

__version__ = "0.2.0"

DEFAULT_BASE_URL = "https://manapool.com/api/v1/"
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_RATE_LIMIT = 10.0  # requests per second
DEFAULT_RATE_BURST = 1
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF_S = 1.0
DEFAULT_USER_AGENT = f"manapool-python/{__version__}"

ACCESS_TOKEN_HEADER = "X-ManaPool-Access-Token"
EMAIL_HEADER = "X-ManaPool-Email"

# Env vars holding credentials; never log their values
REDACTED_ENV_VARS = frozenset({"MANAPOOL_ACCESS_TOKEN", "MANAPOOL_EMAIL"})

_ENV_FIELDS: dict[str, tuple[str, type]] = {
    "MANAPOOL_BASE_URL": ("base_url", str),
    "MANAPOOL_TIMEOUT_S": ("timeout_s", float),
    "MANAPOOL_RATE_LIMIT": ("rate_limit", float),
    "MANAPOOL_RATE_BURST": ("rate_burst", int),
    "MANAPOOL_MAX_RETRIES": ("max_retries", int),
    "MANAPOOL_INITIAL_BACKOFF_S": ("initial_backoff_s", float),
}


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable configuration for ManapoolClient.

    Attributes:
        access_token: API access token (X-ManaPool-Access-Token).
        email: Account email (X-ManaPool-Email).
        base_url: API base URL; always normalized to end with "/".
        timeout_s: Total timeout per HTTP attempt.
        rate_limit: Sustained requests per second.
        rate_burst: Token bucket size.
        max_retries: Retries after the first attempt.
        initial_backoff_s: Delay before the first retry; doubles each retry.
        user_agent: User-Agent header value.
    """

    access_token: str = field(repr=False)
    email: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    rate_limit: float = DEFAULT_RATE_LIMIT
    rate_burst: int = DEFAULT_RATE_BURST
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_backoff_s: float = DEFAULT_INITIAL_BACKOFF_S
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url cannot be empty")
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {self.timeout_s}")
        if not self.rate_limit > 0:
            raise ValueError(f"rate_limit must be > 0, got {self.rate_limit}")
        if self.rate_burst < 1:
            raise ValueError(f"rate_burst must be >= 1, got {self.rate_burst}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_backoff_s < 0:
            raise ValueError(f"initial_backoff_s must be >= 0, got {self.initial_backoff_s}")
        if not self.user_agent:
            raise ValueError("user_agent cannot be empty")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ClientConfig:
        """
        Build config from MANAPOOL_* environment variables.

        Explicit keyword overrides win over the environment.

        Raises:
            ValueError: If credentials are missing or a value does not parse.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for var, (name, cast) in _ENV_FIELDS.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            try:
                values[name] = cast(raw)
            except ValueError:
                raise ValueError(f"{var} must be a valid {cast.__name__}, got {raw!r}") from None

        values["access_token"] = env.get("MANAPOOL_ACCESS_TOKEN", "")
        values["email"] = env.get("MANAPOOL_EMAIL", "")
        values.update(overrides)

        if not values["access_token"]:
            raise ValueError("MANAPOOL_ACCESS_TOKEN required")
        if not values["email"]:
            raise ValueError("MANAPOOL_EMAIL required")

        return cls(**values)
