"""
FastAPI server - read-through wallet API over the snapshot cache.

Exposes GET /wallet/{address} (+ /overview, /txs, /tokens), GET /leaderboard,
POST /admin/clear-cache and GET /health. Every route is served both at the root
and under /api. Handlers only shape JSON; the cache/fetch flow lives in
WalletService. Config via env (see gravity_pulse.config.env).
"""

from __future__ import annotations

import functools
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from gravity_pulse import __version__
from gravity_pulse.analytics.wallet_fetcher import WalletFetcher
from gravity_pulse.api_server.wallet_service import WalletService
from gravity_pulse.chain.explorer import ExplorerClient
from gravity_pulse.chain.models import MAX_STORED_TRANSACTIONS, TX_PREVIEW_LIMIT
from gravity_pulse.chain.rpc import RpcClient
from gravity_pulse.config import Settings, get_settings
from gravity_pulse.core.exceptions import InvalidAddressError, StoreUnavailableError
from gravity_pulse.database.wallet_cache import (
    DEFAULT_LEADERBOARD_LIMIT,
    MAX_LEADERBOARD_LIMIT,
    WalletCache,
    get_wallet_cache,
)
from gravity_pulse.pulse_logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Service wiring
# -----------------------------------------------------------------------------


def build_wallet_service(settings: Settings) -> WalletService:
    """Construct RPC/explorer clients, the cache and the service from settings."""
    rpc: RpcClient | None = None
    if settings.rpc_configured:
        try:
            rpc = RpcClient(settings.rpc_url, timeout_sec=settings.rpc_timeout_sec)
        except Exception as e:
            logger.warning("rpc_client_unavailable", error=str(e))
    else:
        logger.warning("rpc_not_configured", message="native balance will default to 0")

    explorer = ExplorerClient(
        settings.explorer_url,
        style=settings.explorer_style,
        timeout_sec=settings.explorer_timeout_sec,
    )
    fetcher = WalletFetcher(
        rpc,
        explorer,
        token_discovery=settings.token_discovery,
        probe_concurrency=settings.token_probe_concurrency,
        chain_name=settings.chain_name,
    )

    def cache_factory() -> WalletCache | None:
        return get_wallet_cache(settings.database_url, ttl_seconds=settings.cache_ttl_sec)

    cache = cache_factory()
    if cache is None:
        logger.warning("wallet_cache_disabled", message="running stateless until the store is reachable")
    return WalletService(
        cache,
        fetcher,
        ttl_seconds=settings.cache_ttl_sec,
        cache_factory=cache_factory,
    )


@functools.lru_cache(maxsize=1)
def get_wallet_service() -> WalletService:
    """Dependency: process-wide WalletService (overridden in tests)."""
    return build_wallet_service(get_settings())


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class ClearCacheRequest(BaseModel):
    """POST /admin/clear-cache body."""

    address: Any = Field(None, description="Wallet address (0x + 40 hex)")


class ClearCacheResponse(BaseModel):
    ok: bool = Field(..., description="True when the purge completed")


class TxsResponse(BaseModel):
    txs: list[dict[str, Any]] = Field(default_factory=list, description="Most-recent-first transactions")


class TokensResponse(BaseModel):
    tokens: list[dict[str, Any]] = Field(default_factory=list, description="Token holdings")


class LeaderboardEntry(BaseModel):
    address: str
    nativeBalance: float
    totalTransactions: int


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardEntry] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup; close the explorer HTTP client on shutdown if the service was built."""
    logger.info("api_server_started", version=__version__)
    yield
    if get_wallet_service.cache_info().currsize:
        explorer = get_wallet_service().fetcher.explorer
        if explorer is not None:
            explorer.close()
    logger.info("api_server_stopped")


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

router = APIRouter()


def _internal_error(event: str, address: str, e: Exception) -> HTTPException:
    logger.exception(event, wallet_id=address, error=str(e))
    return HTTPException(status_code=500, detail="Internal server error")


@router.get("/health")
def health(service: WalletService = Depends(get_wallet_service)) -> dict[str, Any]:
    """Liveness probe with chain id/name when available."""
    return service.health()


@router.get("/wallet/{address}")
@router.get("/wallet/{address}/overview")
def get_wallet(address: str, service: WalletService = Depends(get_wallet_service)) -> JSONResponse:
    """
    Full wallet snapshot plus `cached`.

    Serves the stored snapshot while younger than the TTL; otherwise fetches from
    RPC/explorer, stores the result and serves it with cached=false.
    """
    try:
        snapshot, cached = service.get_overview(address)
    except InvalidAddressError:
        raise
    except Exception as e:
        raise _internal_error("wallet_fetch_error", address, e) from e
    return JSONResponse(content=snapshot.to_response(cached))


@router.get("/wallet/{address}/txs", response_model=TxsResponse)
def get_wallet_txs(
    address: str,
    limit: int = Query(TX_PREVIEW_LIMIT, ge=1, le=MAX_STORED_TRANSACTIONS),
    service: WalletService = Depends(get_wallet_service),
) -> TxsResponse:
    """Most recent transactions (cached-first, else fetch and cache)."""
    try:
        txs = service.get_transactions(address, limit=limit)
    except InvalidAddressError:
        raise
    except Exception as e:
        raise _internal_error("wallet_txs_error", address, e) from e
    return TxsResponse(txs=txs)


@router.get("/wallet/{address}/tokens", response_model=TokensResponse)
def get_wallet_tokens(address: str, service: WalletService = Depends(get_wallet_service)) -> TokensResponse:
    """Token holdings (cached-first, else fetch and cache)."""
    try:
        tokens = service.get_tokens(address)
    except InvalidAddressError:
        raise
    except Exception as e:
        raise _internal_error("wallet_tokens_error", address, e) from e
    return TokensResponse(tokens=[t.to_dict() for t in tokens])


@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    limit: int = Query(DEFAULT_LEADERBOARD_LIMIT, ge=1, le=MAX_LEADERBOARD_LIMIT),
    service: WalletService = Depends(get_wallet_service),
) -> LeaderboardResponse:
    """Cached wallets ordered by native balance, descending."""
    try:
        rows = service.leaderboard(limit)
    except StoreUnavailableError:
        raise
    except Exception as e:
        raise _internal_error("leaderboard_error", "", e) from e
    return LeaderboardResponse(leaderboard=[LeaderboardEntry(**r) for r in rows])


@router.post("/admin/clear-cache", response_model=ClearCacheResponse)
def clear_cache(body: ClearCacheRequest, service: WalletService = Depends(get_wallet_service)) -> ClearCacheResponse:
    """Purge one wallet's cached snapshot. 400 on invalid address, 500 on store failure."""
    service.clear_cache(body.address)
    return ClearCacheResponse(ok=True)


# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------

app = FastAPI(
    title="GravityPulse API",
    description="Read-through cache for wallet balance, tokens, transactions and achievements.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router, tags=["Wallet"])
app.include_router(router, prefix="/api", tags=["Wallet"])


@app.exception_handler(InvalidAddressError)
def invalid_address_handler(request: Any, exc: InvalidAddressError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid address"})


@app.exception_handler(StoreUnavailableError)
def store_unavailable_handler(request: Any, exc: StoreUnavailableError) -> JSONResponse:
    logger.error("store_unavailable", error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Cache store unavailable"})


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Any, exc: StarletteHTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException, including unknown routes."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Any, exc: RequestValidationError) -> JSONResponse:
    """Malformed body or out-of-range query parameter."""
    logger.info("request_invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Invalid request"})
