"""
Environment variable loading for GravityPulse.

- CHAIN_RPC_URL: EVM JSON-RPC endpoint (optional; balance defaults to 0 without it)
- CHAINSCAN_API_URL: explorer base URL (default: chainscan-galileo)
- EXPLORER_API_STYLE: etherscan | v1 (default: etherscan)
- TOKEN_DISCOVERY: auto | explorer | probe | off (default: auto)
- DATABASE_URL / WALLET_CACHE_DB_PATH: cache store
- CACHE_TTL_SEC: snapshot time-to-live (default: 60)
- LOG_LEVEL / LOG_FORMAT: structlog level and renderer (json | console)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is gravity_pulse/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_CHAINSCAN_API_URL = "https://chainscan-galileo.0g.ai"
DEFAULT_CHAIN_NAME = "Gravity Network Testnet"
DEFAULT_SQLITE_PATH = "gravity_pulse.db"
DEFAULT_CACHE_TTL_SEC = 60
DEFAULT_EXPLORER_TIMEOUT_SEC = 7.0
DEFAULT_RPC_TIMEOUT_SEC = 10.0

EXPLORER_STYLES = ("etherscan", "v1")
TOKEN_DISCOVERY_MODES = ("auto", "explorer", "probe", "off")
LOG_FORMATS = ("json", "console")


def load_pulse_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def _get_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_rpc_url() -> str:
    """Return CHAIN_RPC_URL (legacy: CHAINS_RPC_URL), or empty string when unconfigured."""
    load_pulse_env()
    return _get_str("CHAIN_RPC_URL") or _get_str("CHAINS_RPC_URL")


def get_explorer_url() -> str:
    """Return the explorer base URL without trailing slash."""
    load_pulse_env()
    url = _get_str("CHAINSCAN_API_URL") or _get_str("CHAINS_CAN_API_URL") or DEFAULT_CHAINSCAN_API_URL
    return url.rstrip("/")


def get_explorer_style() -> str:
    """Return EXPLORER_API_STYLE: etherscan | v1. Unknown values fall back to etherscan."""
    load_pulse_env()
    style = _get_str("EXPLORER_API_STYLE", "etherscan").lower()
    return style if style in EXPLORER_STYLES else "etherscan"


def get_token_discovery() -> str:
    """Return TOKEN_DISCOVERY mode; 'auto' picks by explorer style."""
    load_pulse_env()
    mode = _get_str("TOKEN_DISCOVERY", "auto").lower()
    return mode if mode in TOKEN_DISCOVERY_MODES else "auto"


def get_database_url() -> str:
    """
    Return DATABASE_URL when set (e.g. PostgreSQL), else a SQLite URL
    from WALLET_CACHE_DB_PATH or the default file.
    """
    load_pulse_env()
    url = _get_str("DATABASE_URL")
    if url:
        return url
    path = _get_str("WALLET_CACHE_DB_PATH", DEFAULT_SQLITE_PATH)
    return f"sqlite:///{path}"


def get_cache_ttl_sec() -> int:
    """Return CACHE_TTL_SEC as whole seconds (minimum 0)."""
    load_pulse_env()
    return max(0, int(_get_float("CACHE_TTL_SEC", DEFAULT_CACHE_TTL_SEC)))


def get_chain_name() -> str:
    load_pulse_env()
    return _get_str("CHAIN_NAME", DEFAULT_CHAIN_NAME)


def get_explorer_timeout_sec() -> float:
    load_pulse_env()
    return _get_float("EXPLORER_TIMEOUT_SEC", DEFAULT_EXPLORER_TIMEOUT_SEC)


def get_rpc_timeout_sec() -> float:
    load_pulse_env()
    return _get_float("RPC_TIMEOUT_SEC", DEFAULT_RPC_TIMEOUT_SEC)


def get_log_level() -> str:
    """Return LOG_LEVEL upper-cased (default INFO)."""
    load_pulse_env()
    return _get_str("LOG_LEVEL", "INFO").upper()


def get_log_format() -> str:
    """Return LOG_FORMAT: json | console (default json)."""
    load_pulse_env()
    fmt = _get_str("LOG_FORMAT", "json").lower()
    return fmt if fmt in LOG_FORMATS else "json"


def mask_url(url: str) -> str:
    """Mask API keys in a URL before logging it."""
    if "apikey=" in url.lower():
        idx = url.lower().index("apikey=")
        return url[: idx + len("apikey=")] + "***"
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
