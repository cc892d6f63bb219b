"""Cyber Image Generator — FastAPI HTTP layer.

This package contains the FastAPI application, the Pydantic request/response
models, and the origin-checking middleware.

Modules
-------
main
    FastAPI application factory, route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request and response validation.
middleware
    CORS middleware that consults :class:`~cyberimage.core.origins.OriginPolicy`.
static
    Frontend asset resolution and the fallback HTML page.
"""
