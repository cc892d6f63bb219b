"""Cyber Image Generator — FastAPI Application.

This module is the single entry point for the web service.  It defines the
application factory, all REST API routes, and the ``main()`` CLI function
that launches the uvicorn server.

Architecture
------------
The application follows a stateless request/response pattern:

- **Configuration** is loaded once from the environment into a frozen
  :class:`~cyberimage.core.config.CyberImageConfig` and stored on
  ``app.state.settings``.
- **Origin checks** run in :class:`~cyberimage.api.middleware.PolicyCORSMiddleware`
  before routing; denied origins never reach a handler.
- **Image generation** is delegated to
  :class:`~cyberimage.core.gateway.ImageGenerationGateway`, which shares one
  ``httpx.AsyncClient`` opened for the lifetime of the application.
- **Static assets** for the frontend are served by the catch-all route, with
  a built-in HTML page when no frontend is deployed.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/health``               Liveness check
GET       ``/api/test-cors``            Echo the caller's origin and mode
POST      ``/api/generate-image``       Generate images from a prompt
GET       ``/{path}``                   Frontend assets / fallback page
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    cyberimage

Direct invocation::

    python -m cyberimage.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, Response

from cyberimage import __version__
from cyberimage.api.middleware import PolicyCORSMiddleware
from cyberimage.api.models import (
    CorsTestResponse,
    ErrorResponse,
    GenerateImageRequest,
    GenerateImageResponse,
    HealthResponse,
)
from cyberimage.api.static import FALLBACK_HTML, find_index, frontend_root, resolve_asset
from cyberimage.core.config import CyberImageConfig, config
from cyberimage.core.exceptions import ConfigurationError, CyberImageError, UpstreamError
from cyberimage.core.gateway import ImageGenerationGateway, utc_timestamp
from cyberimage.core.origins import OriginPolicy

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(status_code: int, message: str) -> JSONResponse:
    """Build the standard ``{success, error, timestamp}`` failure body."""
    body = ErrorResponse(error=message, timestamp=utc_timestamp())
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@router.get("/api/health", response_model=HealthResponse)
async def health(request: Request) -> dict:
    """Return a liveness payload.

    The body never includes configuration values beyond the service name.
    """
    settings: CyberImageConfig = request.app.state.settings
    return {
        "status": "ok",
        "service": settings.app_name,
        "timestamp": utc_timestamp(),
    }


@router.get("/api/test-cors", response_model=CorsTestResponse)
async def cors_check(request: Request) -> dict:
    """Echo the caller's origin so frontend deployments can verify CORS."""
    settings: CyberImageConfig = request.app.state.settings
    return {
        "message": "CORS is working!",
        "origin": request.headers.get("origin"),
        "timestamp": utc_timestamp(),
        "environment": settings.environment,
    }


@router.post(
    "/api/generate-image",
    response_model=GenerateImageResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_image(req: GenerateImageRequest, request: Request) -> dict:
    """Generate images for a prompt through the upstream service.

    This endpoint:

    1. Validates the prompt (present, not blank, at most 1000 characters).
    2. Resolves the model, falling back to the configured default.
    3. Issues exactly one upstream call, bounded by the configured timeout.
    4. Returns every image URL in upstream order.

    Args:
        req: Parsed :class:`GenerateImageRequest` payload.
        request: The incoming request, used to reach the gateway.

    Returns:
        Dictionary with keys ``success``, ``images``, ``prompt``, ``model``
        and ``generatedAt``.

    Raises:
        ValidationError: 400 for a missing, blank or oversized prompt.
        UpstreamError: 500 for any upstream or unexpected failure.
    """
    gateway: ImageGenerationGateway = request.app.state.gateway
    try:
        result = await gateway.generate(req.prompt, req.model)
    except CyberImageError:
        raise
    except Exception as exc:
        logger.exception("Unexpected error while generating image")
        raise UpstreamError(f"unexpected error: {exc!r}") from exc
    return result.to_dict()


@router.get("/{full_path:path}", include_in_schema=False)
async def frontend(full_path: str, request: Request) -> Response:
    """Serve frontend assets, the frontend index page, or the fallback page."""
    if full_path == "api" or full_path.startswith("api/"):
        return _error_response(404, "Not found")

    settings: CyberImageConfig = request.app.state.settings
    asset = resolve_asset(frontend_root(settings.static_dir), full_path)
    if asset is not None:
        return FileResponse(asset)

    index = find_index(settings.static_dir)
    if index is not None:
        return FileResponse(index)
    return HTMLResponse(content=FALLBACK_HTML)


# ---------------------------------------------------------------------------
# Exception handlers.
# ---------------------------------------------------------------------------


async def _handle_service_error(request: Request, exc: CyberImageError) -> JSONResponse:
    return _error_response(exc.status_code, exc.public_message)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return _error_response(400, "Invalid request body")


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    settings: CyberImageConfig = config,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Immutable configuration for this application instance.
        transport: Optional ``httpx`` transport for the upstream client.
            Tests pass an ``httpx.MockTransport`` here.

    Returns:
        A configured :class:`FastAPI` instance.  Entering its lifespan
        raises :class:`ConfigurationError` if no API key is configured.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the upstream client on startup and close it on shutdown.

        Raises:
            ConfigurationError: If ``OPENROUTER_API_KEY`` is not set.  The
                server refuses to start rather than send unauthenticated
                requests upstream.
        """
        # --- Startup -------------------------------------------------------
        settings.require_api_key()

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(settings.upstream_timeout),
            transport=transport,
        ) as client:
            app.state.gateway = ImageGenerationGateway.from_config(settings, client)
            logger.info(
                "%s ready mode=%s model=%s timeout=%ss",
                settings.app_name,
                settings.environment,
                settings.default_model,
                settings.upstream_timeout,
            )

            yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        logger.info("Upstream client closed on shutdown.")

    app = FastAPI(
        title="Cyber Image Generator",
        description="Prompt-to-image gateway for the OpenRouter image models.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.origin_policy = OriginPolicy.from_config(settings)

    app.add_middleware(PolicyCORSMiddleware, policy=app.state.origin_policy)
    app.add_exception_handler(CyberImageError, _handle_service_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.include_router(router)
    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~cyberimage.core.config.config`
    (``HOST``, ``PORT`` and ``LOG_LEVEL`` environment variables).  Exits with
    status 1 when ``OPENROUTER_API_KEY`` is missing.

    This function is registered as the ``cyberimage`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config.require_api_key()
    except ConfigurationError as exc:
        logger.critical("%s", exc.public_message)
        raise SystemExit(1) from exc

    logger.info(
        "Starting %s port=%d mode=%s url=http://localhost:%d",
        config.app_name,
        config.port,
        config.environment,
        config.port,
    )

    uvicorn.run(
        "cyberimage.api.main:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
