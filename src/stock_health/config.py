"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


@dataclass(frozen=True)
class Settings:
    """
    Immutable process settings.

    Built once at startup and passed into the engines, cache and service
    constructors instead of being read ad hoc from module globals.
    """

    default_mode: str = "formula"
    cache_ttl: float = 300.0
    cache_max_size: int = 1000
    cache_sweep_interval: float = 60.0
    annotation_timeout: float = 10.0
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None
    quote_cache_dir: str = ".cache/quotes"
    quote_cache_ttl: int = 300
    batch_max_symbols: int = 25
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            default_mode=os.environ.get("DEFAULT_ANALYSIS_MODE", "formula").lower().strip(),
            cache_ttl=_env_float("ANALYSIS_CACHE_TTL", 300.0),
            cache_max_size=_env_int("ANALYSIS_CACHE_MAX_SIZE", 1000),
            cache_sweep_interval=_env_float("ANALYSIS_CACHE_SWEEP_INTERVAL", 60.0),
            annotation_timeout=_env_float("ANNOTATION_TIMEOUT", 10.0),
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
            openai_base_url=os.environ.get("OPENAI_BASE_URL") or None,
            quote_cache_dir=os.environ.get("QUOTE_CACHE_DIR", ".cache/quotes"),
            quote_cache_ttl=_env_int("QUOTE_CACHE_TTL", 300),
            batch_max_symbols=_env_int("BATCH_MAX_SYMBOLS", 25),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
