"""Runtime settings for crossdep, read from the environment and CLI flags."""

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from . import __version__

logger = logging.getLogger(__name__)

ENV_PREFIX = "CROSSDEP_"
DEFAULT_DEPOT_URL = "http://localhost:6200/depot"


def _env_int(env: Mapping[str, str], name: str, default: int, minimum: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Connection and execution settings."""

    depot_url: str = DEFAULT_DEPOT_URL
    timeout: int = 30
    retries: int = 2
    max_workers: int = 1
    ca_bundle: Optional[str] = None
    user_agent: str = f"crossdep/{__version__}"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``CROSSDEP_*`` environment variables."""
        env = os.environ if env is None else env
        settings = cls(
            depot_url=env.get(ENV_PREFIX + "DEPOT_URL") or DEFAULT_DEPOT_URL,
            timeout=_env_int(env, "TIMEOUT", 30, 1),
            retries=_env_int(env, "RETRIES", 2, 0),
            max_workers=_env_int(env, "MAX_WORKERS", 1, 1),
            ca_bundle=env.get(ENV_PREFIX + "CA_BUNDLE") or None,
        )
        logger.debug(f"Loaded settings from environment: {settings}")
        return settings

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        return replace(self, **values)
