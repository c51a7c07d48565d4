"""FastAPI application factory."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from walletbridge import __version__
from walletbridge.api.contracts import ErrorResponse
from walletbridge.config import Settings, get_settings
from walletbridge.errors import ProviderNotFound, RpcUnavailable, WalletError
from walletbridge.families.factory import HandlerMap, create_chain_handlers

logger = logging.getLogger(__name__)

# Everything else is a client-side problem (400)
_STATUS_CODES = {
    ProviderNotFound: 404,
    RpcUnavailable: 503,
}


def status_code_for(error: WalletError) -> int:
    for error_type, status in _STATUS_CODES.items():
        if isinstance(error, error_type):
            return status
    return 400


async def wallet_error_handler(request: Request, exc: WalletError) -> JSONResponse:
    """Render a WalletError as ``{"success": false, "error", "message", "hint"}``."""
    status = status_code_for(exc)
    logger.info(f"{request.method} {request.url.path} -> {status} {exc.code}: {exc.message}")
    body = ErrorResponse(**exc.to_dict())
    return JSONResponse(status_code=status, content=body.model_dump())


def create_app(
    settings: Optional[Settings] = None,
    handlers: Optional[HandlerMap] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings override
        handlers: Chain handler map override (tests inject fake RPC clients)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="walletbridge API",
        description="Chain metadata and transfer preflight for the wallet layer",
        version=__version__,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.handlers = handlers or create_chain_handlers(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WalletError, wallet_error_handler)

    # Register routes
    from walletbridge.api.routes import chains, health, solana, transfers, wallets

    app.include_router(health.router, tags=["Health"])
    app.include_router(chains.router, prefix="/api/v1")
    app.include_router(wallets.router, prefix="/api/v1")
    app.include_router(transfers.router, prefix="/api/v1")
    app.include_router(solana.router, prefix="/api/v1")

    return app
