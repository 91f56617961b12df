"""
Provider configuration.

Values come from the environment (a .env file is loaded by the app factory).
Every setting has a default so the core works without any environment.
"""

import os
from dataclasses import dataclass


# Site
DEFAULT_BASE_URL = "https://darkmahou.io"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

# Episode bounds
MIN_EPISODE_NUMBER = 1
MAX_EPISODE_NUMBER = 9999
MAX_BATCH_EPISODES = 999
MAX_YEAR = 2000
COMMON_RESOLUTIONS = (480, 720, 1080)

# Cache & page resolution
CACHE_TTL_SECONDS = 5 * 60
MAX_CACHE_SIZE = 100
EARLY_EXIT_SCORE = 95
MAX_FUZZY_CANDIDATES = 5
MIN_TITLE_LENGTH = 2


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ProviderConfig:
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: int = 20
    cache_ttl: int = CACHE_TTL_SECONDS
    cache_max_size: int = MAX_CACHE_SIZE
    early_exit_score: int = EARLY_EXIT_SCORE
    max_fuzzy_candidates: int = MAX_FUZZY_CANDIDATES
    min_title_length: int = MIN_TITLE_LENGTH

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        return cls(
            base_url=os.environ.get("DARKMAHOU_BASE_URL", DEFAULT_BASE_URL).strip().rstrip("/") or DEFAULT_BASE_URL,
            user_agent=os.environ.get("DARKMAHOU_USER_AGENT", DEFAULT_USER_AGENT),
            request_timeout=_env_int("DARKMAHOU_REQUEST_TIMEOUT", 20),
            cache_ttl=_env_int("DARKMAHOU_CACHE_TTL", CACHE_TTL_SECONDS),
            cache_max_size=_env_int("DARKMAHOU_CACHE_MAX_SIZE", MAX_CACHE_SIZE),
            early_exit_score=_env_int("DARKMAHOU_EARLY_EXIT_SCORE", EARLY_EXIT_SCORE),
            max_fuzzy_candidates=_env_int("DARKMAHOU_MAX_FUZZY_CANDIDATES", MAX_FUZZY_CANDIDATES),
            min_title_length=_env_int("DARKMAHOU_MIN_TITLE_LENGTH", MIN_TITLE_LENGTH),
        )


DEFAULT_CONFIG = ProviderConfig()
