"""Storefront FastAPI application.

Web server that processes ordering commands synchronously via HTTP. Every
request runs inside the ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.api import cart_router, customer_router, order_router, review_router
from ordering.api.errors import register_exception_handlers
from ordering.auth import StaticTokenVerifier, set_verifier
from ordering.catalogue import load_catalogue, set_catalogue
from ordering.config import Settings
from ordering.domain import ordering
from ordering.utils.logging import add_context, clear_context, configure_logging, get_logger

logger = get_logger(__name__)


def create_app(settings: Settings) -> FastAPI:
    """Build the application.

    Logging, the token verifier and the product catalogue are configured
    from ``settings`` here, once per process. The ordering domain must
    already be initialized.
    """
    configure_logging(settings)
    set_verifier(StaticTokenVerifier(settings.auth_tokens))

    catalogue = load_catalogue(settings.catalogue_file)
    set_catalogue(catalogue)
    if len(catalogue) == 0:
        logger.warning("catalogue_empty", catalogue_file=settings.catalogue_file)

    app = FastAPI(
        title="Storefront API",
        description="Carts, guest checkout, order lifecycle, reviews, order and customer analytics",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the ordering domain context and bind request details to the log context."""
        clear_context()
        add_context(
            request_id=request.headers.get("x-request-id") or uuid.uuid4().hex,
            path=request.url.path,
            method=request.method,
        )
        try:
            with ordering.domain_context():
                return await call_next(request)
        finally:
            clear_context()

    register_exception_handlers(app)

    app.include_router(cart_router, prefix=settings.api_prefix)
    app.include_router(order_router, prefix=settings.api_prefix)
    app.include_router(review_router, prefix=settings.api_prefix)
    app.include_router(customer_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "environment": settings.environment,
                "domains": {"ordering": {"name": ordering.name}},
            }
        )

    logger.info("app_created", environment=settings.environment, api_prefix=settings.api_prefix)
    return app


# ---------------------------------------------------------------------------
# Process entrypoint
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the domain.toml overlay.
ordering.init()

app = create_app(Settings.from_env())
