"""Cyber Image Generator - OpenRouter image generation gateway."""

__version__ = "1.0.0"

from cyberimage.core.config import CyberImageConfig, config

__all__ = [
    "CyberImageConfig",
    "config",
]
