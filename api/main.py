"""FastAPI application entry point."""

import logging
from typing import Annotated

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from api.routes import baccarat, blackjack, ledger, pulse, roulette
from api.schemas import CreateSessionRequest, SessionResponse
from api.serializers import player_to_response
from api.session import build_table, get_registry
from config import config
from core.players import TableSetupError

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[f"{config.rate_limit.requests_per_minute}/minute"],
)


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


app = FastAPI(
    title="Casino Table",
    description="Shared-device blackjack, baccarat, roulette and pulse tables with a debt ledger",
    version="0.1.0",
)

# Add rate limiter to app state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/api/session")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def create_session(request: Request, body: CreateSessionRequest) -> SessionResponse:
    """Seat a roster at a new table and return its signed session ID."""
    registry = get_registry()
    registry.cleanup_expired()
    try:
        table = build_table(body.game, body.players, body.dealer_index)
    except TableSetupError as e:
        logger.warning("Rejected %s table: %s", body.game, e)
        raise HTTPException(status_code=400, detail=str(e))

    token = registry.create(body.game, table)
    return SessionResponse(
        session_id=token,
        game=body.game,
        players=[player_to_response(p) for p in table.roster],
    )


@app.delete("/api/session")
async def close_session(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> dict[str, str]:
    """Drop a table. Its debts stay in the ledger."""
    get_registry().delete(session_id)
    return {"status": "closed"}


# Include routers
app.include_router(blackjack.router, prefix="/api/blackjack", tags=["blackjack"])
app.include_router(baccarat.router, prefix="/api/baccarat", tags=["baccarat"])
app.include_router(roulette.router, prefix="/api/roulette", tags=["roulette"])
app.include_router(pulse.router, prefix="/api/pulse", tags=["pulse"])
app.include_router(ledger.router, prefix="/api/ledger", tags=["ledger"])


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=config.host, port=config.port)
