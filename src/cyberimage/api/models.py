"""Pydantic request and response models for the Cyber Image Generator API.

FastAPI uses these models for request parsing, response serialisation and
the OpenAPI schema.

Models
------
GenerateImageRequest
    Payload for ``POST /api/generate-image``.
GenerateImageResponse
    Successful generation result.
ErrorResponse
    Shared failure shape for every error the API reports.
HealthResponse
    Body of ``GET /api/health``.
CorsTestResponse
    Body of ``GET /api/test-cors``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GenerateImageRequest(BaseModel):
    """Request body for the ``POST /api/generate-image`` endpoint.

    Both fields are typed loosely on purpose: presence, blankness and length
    of ``prompt`` are checked by the gateway so that every prompt problem is
    reported as a 400 with the standard error shape rather than a 422.

    Attributes:
        prompt: Text description of the image to generate.
        model: Optional OpenRouter model identifier.
    """

    prompt: str | None = Field(
        default=None,
        description="Text prompt (1-1000 characters after trimming).",
    )
    model: str | None = Field(
        default=None,
        description="Model identifier; the server default is used when omitted.",
    )


class ImageRef(BaseModel):
    """One generated image."""

    url: str = Field(..., description="Image URL or data URI returned upstream.")
    size: str | None = Field(default=None, description="Optional size hint.")


class GenerateImageResponse(BaseModel):
    """Successful response for ``POST /api/generate-image``."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    success: bool = True
    images: list[ImageRef]
    prompt: str
    model: str
    generated_at: str = Field(..., alias="generatedAt")


class ErrorResponse(BaseModel):
    """Failure body shared by every endpoint.

    Attributes:
        success: Always ``False``.
        error: Message that is safe to show to the user.
        timestamp: ISO 8601 UTC time of the failure.
    """

    success: bool = False
    error: str
    timestamp: str


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str
    timestamp: str


class CorsTestResponse(BaseModel):
    message: str
    origin: str | None
    timestamp: str
    environment: str
