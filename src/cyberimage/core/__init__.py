"""Core components of the Cyber Image Generator.

- **CyberImageConfig / config**: Immutable settings loaded from the
  environment (and an optional ``.env`` file) with Pydantic Settings.
- **OriginPolicy**: Cross-origin permit/deny decisions.
- **ImageGenerationGateway**: The single outbound call to OpenRouter and the
  normalisation of its response.
- **Exceptions**: The error taxonomy shared by the core and the HTTP layer.

The core package has no dependency on FastAPI; everything here can be used
and tested without an ASGI server.
"""

from cyberimage.core.config import CyberImageConfig, config
from cyberimage.core.exceptions import (
    ConfigurationError,
    CyberImageError,
    OriginDeniedError,
    UpstreamError,
    ValidationError,
)
from cyberimage.core.gateway import GeneratedImage, GenerationResult, ImageGenerationGateway
from cyberimage.core.origins import OriginPolicy

__all__ = [
    "ConfigurationError",
    "CyberImageConfig",
    "CyberImageError",
    "GeneratedImage",
    "GenerationResult",
    "ImageGenerationGateway",
    "OriginDeniedError",
    "OriginPolicy",
    "UpstreamError",
    "ValidationError",
    "config",
]
