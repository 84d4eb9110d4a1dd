"""
Application settings.

Collects the environment getters from config.env into one typed, cached Settings
object used by the API server and the entrypoint.
"""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass

from gravity_pulse.config import env


@dataclass(frozen=True)
class Settings:
    """Typed view of the process configuration."""

    rpc_url: str
    explorer_url: str
    explorer_style: str
    explorer_timeout_sec: float
    rpc_timeout_sec: float
    token_discovery: str
    token_probe_concurrency: int
    database_url: str
    cache_ttl_sec: int
    chain_name: str
    api_host: str
    api_port: int
    log_level: str
    log_format: str

    @property
    def rpc_configured(self) -> bool:
        return bool(self.rpc_url)


def load_settings() -> Settings:
    """Build Settings from the current environment (and .env)."""
    env.load_pulse_env()
    return Settings(
        rpc_url=env.get_rpc_url(),
        explorer_url=env.get_explorer_url(),
        explorer_style=env.get_explorer_style(),
        explorer_timeout_sec=env.get_explorer_timeout_sec(),
        rpc_timeout_sec=env.get_rpc_timeout_sec(),
        token_discovery=env.get_token_discovery(),
        token_probe_concurrency=max(1, int(os.getenv("TOKEN_PROBE_CONCURRENCY", "8").strip() or "8")),
        database_url=env.get_database_url(),
        cache_ttl_sec=env.get_cache_ttl_sec(),
        chain_name=env.get_chain_name(),
        api_host=os.getenv("API_HOST", "0.0.0.0").strip() or "0.0.0.0",
        api_port=int(os.getenv("PORT") or os.getenv("API_PORT") or "8080"),
        log_level=env.get_log_level().lower(),
        log_format=env.get_log_format(),
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the process-wide settings, loaded once.

    Tests that change the environment call get_settings.cache_clear().
    """
    return load_settings()
