"""
Crystal API - lite client proof service for Accumulate accounts.

Provides REST endpoints for:
- Building account proofs (POST /api/query)
- Health checks (GET /health)
- Service description (GET /)
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError

from . import __version__
from .accumulate import AccountResolver, AccumulateClient, AccumulateRPCConfig
from .config import Settings, get_settings
from .models import HealthResponse, QueryRequest, QueryResponse, ServiceInfoResponse
from .proof import build_query_response

# Configure logging
logging.basicConfig(format="%(message)s")
logging.getLogger("crystal_api").setLevel(logging.INFO)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()

QUERY_PATH = "/api/query"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


def get_resolver(request: Request) -> AccountResolver:
    """Account resolver owned by the running app."""
    return request.app.state.resolver


def create_resolver(settings: Settings) -> AccountResolver:
    """Build the Accumulate-backed resolver from settings."""
    return AccountResolver(
        AccumulateClient(
            AccumulateRPCConfig(
                url=settings.accumulate_rpc_url,
                timeout=settings.accumulate_rpc_timeout,
            )
        )
    )


def create_app(
    settings: Optional[Settings] = None,
    resolver: Optional[AccountResolver] = None,
) -> FastAPI:
    """
    Build the API application.

    Routes are registered on the returned app only; nothing is shared
    between apps built by separate calls.
    """
    settings = settings or get_settings()
    resolver = resolver or create_resolver(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        logger.info(
            "API started",
            version=__version__,
            host=settings.host,
            port=settings.port,
            accumulate_rpc=settings.accumulate_rpc_url,
        )

        yield

        await app.state.resolver.close()
        logger.info("API stopped")

    app = FastAPI(
        title="Crystal Lite Client API",
        description="Account proofs for Accumulate without running a full node",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.resolver = resolver

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # CORSMiddleware only answers requests that carry an Origin header;
    # wildcard deployments send the headers on every response
    cors_headers = CORS_HEADERS if "*" in settings.allowed_origins else {}

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next) -> Response:
        if request.method == "OPTIONS" and request.url.path == QUERY_PATH:
            return Response(status_code=200, headers=cors_headers)
        response = await call_next(request)
        response.headers.update(cors_headers)
        return response

    # ========================================================================
    # Error Handling
    # ========================================================================

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
        # Runs outside the middleware stack, so CORS headers are set here
        logger.error("Unhandled error", path=request.url.path, error=str(exc))
        return PlainTextResponse("Internal server error", status_code=500, headers=cors_headers)

    # ========================================================================
    # Service Info
    # ========================================================================

    @app.get("/", response_model=ServiceInfoResponse)
    async def service_info() -> ServiceInfoResponse:
        """Describe the service and its endpoints."""
        return ServiceInfoResponse(
            message="Crystal Lite Client API",
            endpoints="/api/query, /health",
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Report liveness. Does not contact the Accumulate node."""
        return HealthResponse(
            status="healthy",
            service=settings.service_name,
            version=__version__,
        )

    # ========================================================================
    # Account Proofs
    # ========================================================================

    @app.post(QUERY_PATH, response_model=QueryResponse)
    async def query_account(
        request: Request,
        resolver: AccountResolver = Depends(get_resolver),
    ) -> QueryResponse | Response:
        """
        Build an account proof.

        The body is parsed as JSON whatever its Content-Type. Account data
        from the Accumulate node is best effort; the proof is returned
        whether or not the lookup succeeds.
        """
        try:
            payload = QueryRequest.model_validate_json(await request.body())
        except ValidationError as e:
            logger.info("Invalid request body", path=request.url.path, errors=e.error_count())
            return PlainTextResponse("Invalid request body", status_code=400)

        account = payload.account
        if not account:
            return PlainTextResponse("Account URL is required", status_code=400)

        logger.info("Querying account", account=account)
        start = time.perf_counter()

        resolved = await resolver.resolve(account)
        query_time_ms = int((time.perf_counter() - start) * 1000)

        response = build_query_response(account, resolved, query_time_ms)

        logger.info(
            "Proof built",
            account=account,
            bpt_hash=response.proof.bpt_hash,
            resolved=resolved is not None,
            query_time_ms=query_time_ms,
        )

        return response

    return app


app = create_app()


# ============================================================================
# Entry Point
# ============================================================================


def run(host: Optional[str] = None, port: Optional[int] = None, reload: Optional[bool] = None) -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "crystal_api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=settings.debug if reload is None else reload,
    )


if __name__ == "__main__":
    run()
