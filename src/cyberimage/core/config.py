"""Configuration management for the Cyber Image Generator.

This module provides centralized configuration management using Pydantic
Settings.  The variable names follow the conventions of the hosting platform
the service is deployed to (``PORT``, ``NODE_ENV``) and of the upstream
provider (``OPENROUTER_API_KEY``), so no prefix is applied.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Keyword arguments passed to :class:`CyberImageConfig`
2. Environment variables
3. .env file in the working directory
4. Default values defined in CyberImageConfig

Example .env file:
    OPENROUTER_API_KEY=sk-or-...
    PORT=10000
    NODE_ENV=production
    ALLOWED_ORIGINS=["https://faiz786-lada.github.io"]

Global Configuration Instance
------------------------------
A global ``config`` instance is created at module import time.  The settings
object is frozen: values are read once and never mutated.  To change a value,
set the environment variable and restart the process.

Usage Example
-------------
    from cyberimage.core.config import config

    print(config.port)
    print(config.is_production)

Credential Handling
-------------------
``openrouter_api_key`` is stored as a :class:`pydantic.SecretStr`, so it is
masked in ``repr()`` and in any accidental serialisation.  Absence of the key
does not fail construction; :meth:`CyberImageConfig.require_api_key` is called
from the application lifespan and refuses to start the server without one.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cyberimage.core.exceptions import ConfigurationError

DEFAULT_MODEL = "black-forest-labs/flux.2-klein-4b"

PRODUCTION = "production"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class CyberImageConfig(BaseSettings):
    """Main configuration for the Cyber Image Generator.

    Attributes
    ----------
    Upstream Settings:
        openrouter_api_key : SecretStr | None
            Bearer credential for OpenRouter.  Required to serve requests.
        openrouter_base_url : str
            Base URL of the OpenRouter API (no trailing slash).
        default_model : str
            Model used when the caller does not name one.
        upstream_timeout : float
            Upper bound, in seconds, for the whole outbound exchange.
        max_prompt_length : int
            Longest accepted prompt, in characters.
        site_url : str | None
            Optional ``HTTP-Referer`` attribution header sent upstream.
        app_name : str
            ``X-Title`` attribution header sent upstream.

    Server Settings:
        host : str
            Bind address.
        port : int
            Listen port.
        environment : str
            Deployment mode.  ``production`` enables strict CORS checks.
        log_level : str
            Root log level used by the CLI entry point.
        static_dir : Path
            Directory the frontend is served from.

    CORS Settings:
        allowed_origins : tuple[str, ...]
            Origins permitted verbatim in production mode.
        trusted_origin_suffixes : tuple[str, ...]
            Hostname suffixes permitted in production mode.

    Examples
    --------
    Create a custom configuration:

        >>> custom = CyberImageConfig(
        ...     openrouter_api_key="sk-or-test",
        ...     environment="production",
        ...     _env_file=None,
        ... )
        >>> custom.is_production
        True
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Upstream settings
    openrouter_api_key: SecretStr | None = Field(
        default=None,
        description="OpenRouter API key (required to serve generation requests)",
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL",
    )
    default_model: str = Field(
        default=DEFAULT_MODEL,
        description="Model identifier used when the request does not name one",
    )
    upstream_timeout: float = Field(
        default=45.0,
        description="Timeout in seconds for the outbound generation call",
        gt=0,
        le=600,
    )
    max_prompt_length: int = Field(
        default=1000,
        description="Maximum accepted prompt length in characters",
        ge=1,
    )
    site_url: str | None = Field(
        default=None,
        description="Optional HTTP-Referer header for OpenRouter attribution",
    )
    app_name: str = Field(
        default="Cyber Image Generator",
        description="X-Title header for OpenRouter attribution",
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    port: int = Field(
        default=10000,
        description="Server port",
        ge=1,
        le=65535,
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "node_env", "app_env"),
        description="Deployment mode: 'production' or anything else for development",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the CLI entry point",
    )
    static_dir: Path = Field(
        default=Path("."),
        description="Directory containing the frontend assets",
    )

    # CORS settings
    allowed_origins: tuple[str, ...] = Field(
        default=(
            "https://faiz786-lada.github.io",
            "https://cyber-image-generator.onrender.com",
            "http://localhost:3000",
            "http://localhost:5500",
            "http://localhost:10000",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5500",
            "http://127.0.0.1:10000",
        ),
        description="Origins allowed verbatim in production mode",
    )
    trusted_origin_suffixes: tuple[str, ...] = Field(
        default=(".github.io", ".onrender.com"),
        description="Hostname suffixes allowed in production mode",
    )

    @field_validator("openrouter_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value):
        """Treat an empty or whitespace-only key as not configured."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def _normalise_environment(cls, value):
        if isinstance(value, str):
            return value.strip().lower() or "development"
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("openrouter_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Whether strict origin checking is enabled."""
        return self.environment == PRODUCTION

    def require_api_key(self) -> str:
        """Return the configured API key.

        Raises:
            ConfigurationError: If ``OPENROUTER_API_KEY`` is not set.
        """
        if self.openrouter_api_key is None:
            raise ConfigurationError(
                "OPENROUTER_API_KEY is not set; refusing to serve generation requests"
            )
        return self.openrouter_api_key.get_secret_value()


# Global configuration instance
# Loaded once at import time from the environment and .env file.
config = CyberImageConfig()
