"""FastAPI application factory."""

import os

from fastapi import FastAPI, Request, Response

from orderlink.observability.correlation import (
    CORRELATION_ID_HEADER,
    accept_or_generate,
    reset_correlation_id,
    set_correlation_id,
)

from .routers import public
from .routes import customer_auth, debug, magic_links, short_links, webhooks_whatsapp


def create_app(app_env: str | None = None) -> FastAPI:
    """Create the FastAPI app.

    Args:
        app_env: Explicit environment override. If None, reads APP_ENV
                 (default "development"). Debug routes are not mounted
                 in "production".
    """
    if app_env is None:
        app_env = os.environ.get("APP_ENV", "development")
    app_env = app_env.strip().lower()

    app = FastAPI(
        title="OrderLink",
        docs_url=None,
        redoc_url=None,
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = accept_or_generate(request.headers.get(CORRELATION_ID_HEADER))
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    app.include_router(public.router)
    app.include_router(webhooks_whatsapp.router)
    app.include_router(magic_links.router)
    app.include_router(short_links.router)
    app.include_router(customer_auth.router)

    if app_env != "production":
        app.include_router(debug.router)

    return app
