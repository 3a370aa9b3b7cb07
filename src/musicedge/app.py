"""musicedge - FastAPI application.

One catch-all endpoint in front of the Meting API and the kuwo audio hosts.
"""

import logging
from contextlib import asynccontextmanager

import httpx
import logfire
from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .headers import sanitize_headers
from .protocol import ProxyRejection
from .router import route_request

# Suppress harmless OTel context warnings from streamed responses
logging.getLogger("opentelemetry.context").setLevel(logging.CRITICAL)

# Initialize Logfire; without a token it only logs locally
logfire.configure(send_to_logfire="if-token-present", distributed_tracing=True)
logfire.instrument_httpx()

# Methods the catch-all route accepts; anything else is refused by the router layer
ROUTED_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logfire.info("musicedge is starting up...")
    yield
    logfire.info("musicedge is shutting down...")


async def handle_rejection(request: Request, exc: ProxyRejection) -> Response:
    """Turn a rejection into a short plain-text answer browsers can still read."""
    logfire.warning(
        "Rejected {method} request: {status_code} {reason}",
        method=request.method,
        status_code=exc.status_code,
        reason=exc.message,
    )
    return PlainTextResponse(
        exc.message,
        status_code=exc.status_code,
        headers=sanitize_headers(None),
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> Response:
    """Give methods the route never sees the same 405 as the ones it refuses."""
    if exc.status_code == 405:
        return await handle_rejection(request, ProxyRejection(405, "Method not allowed"))
    return await http_exception_handler(request, exc)


def create_app(transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Build the proxy application.

    Args:
        transport: httpx transport for upstream calls. None means the real
            network; tests pass an httpx.MockTransport.
    """
    app = FastAPI(
        title="musicedge",
        description="Edge proxy for music metadata and kuwo audio.",
        lifespan=lifespan,
        # Every path is proxy surface - no docs routes
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_exception_handler(ProxyRejection, handle_rejection)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)

    @app.api_route("/{path:path}", methods=ROUTED_METHODS)
    async def handle_request(request: Request, path: str):
        """Route the request to the audio or metadata relay."""
        with logfire.span("edge: {method} /{path}", method=request.method, path=path):
            try:
                response = await route_request(request, transport=transport)
            except httpx.HTTPError as e:
                logfire.error("Upstream request failed", error=str(e), error_type=type(e).__name__)
                raise
            logfire.info("Upstream answered {status_code}", status_code=response.status_code)
            return response

    logfire.instrument_fastapi(app)
    return app


app = create_app()
