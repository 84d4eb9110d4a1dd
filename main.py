"""
Main entrypoint: GravityPulse FastAPI server.

Env: CHAIN_RPC_URL, CHAINSCAN_API_URL, EXPLORER_API_STYLE, DATABASE_URL or
WALLET_CACHE_DB_PATH, CACHE_TTL_SEC, API_HOST, PORT / API_PORT, LOG_LEVEL.

Equivalent: uvicorn gravity_pulse.api_server.app:app --host 0.0.0.0 --port 8080
"""

import uvicorn

# Configure structured logging before other imports that may log
from gravity_pulse.pulse_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings and run the API server in the main thread."""
    from gravity_pulse.api_server.app import app
    from gravity_pulse.config import get_settings

    settings = get_settings()
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        explorer=settings.explorer_url,
        explorer_style=settings.explorer_style,
        rpc_configured=settings.rpc_configured,
        cache_ttl_sec=settings.cache_ttl_sec,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
