"""Image generation gateway for the OpenRouter chat-completions API.

The gateway turns one validated prompt into exactly one outbound request and
normalises whatever comes back into a :class:`GenerationResult` or an
:class:`~cyberimage.core.exceptions.UpstreamError`.

Outbound contract
-----------------
``POST {base_url}/chat/completions`` with a bearer token and the body::

    {
        "model": "<model id>",
        "messages": [{"role": "user", "content": "<prompt>"}],
        "modalities": ["image"]
    }

A usable response carries ``choices[0].message.images``, a non-empty list of
``{"image_url": {"url": ..., "size": ...}}`` entries.

Call semantics
--------------
- Prompt validation happens before the network is touched.
- There is no retry loop; a failed call is reported to the caller.
- The whole exchange (connect, send, receive, decode) is bounded by
  ``timeout`` seconds.
- The gateway keeps no per-request state, so any number of ``generate()``
  calls may run concurrently on the same instance and the same
  :class:`httpx.AsyncClient`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from cyberimage.core.config import DEFAULT_MODEL, CyberImageConfig
from cyberimage.core.exceptions import ConfigurationError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

# Longest prompt fragment written to the log.
LOG_PROMPT_CHARS = 100

# Longest upstream body fragment kept in an UpstreamError detail.
LOG_BODY_CHARS = 500


def utc_timestamp(moment: datetime | None = None) -> str:
    """Return an ISO 8601 UTC timestamp with millisecond precision."""
    moment = moment or datetime.now(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_prompt(prompt: Any, max_length: int = 1000) -> str:
    """Check a raw prompt value and return it trimmed.

    Args:
        prompt: Value taken from the request body.
        max_length: Longest accepted prompt after trimming.

    Returns:
        The prompt with surrounding whitespace removed.

    Raises:
        ValidationError: If the prompt is missing, not a string, blank, or
            longer than ``max_length`` characters.
    """
    if prompt is None:
        raise ValidationError("Prompt is required")
    if not isinstance(prompt, str):
        raise ValidationError("Prompt must be a string")

    cleaned = prompt.strip()
    if not cleaned:
        raise ValidationError("Prompt cannot be empty")
    if len(cleaned) > max_length:
        raise ValidationError(f"Prompt is too long (maximum {max_length} characters)")
    return cleaned


def resolve_model(model: Any, default: str = DEFAULT_MODEL) -> str:
    """Return the requested model id, or *default* when none was given.

    Raises:
        ValidationError: If ``model`` is present but not a string.
    """
    if model is None:
        return default
    if not isinstance(model, str):
        raise ValidationError("Model must be a string")
    return model.strip() or default


@dataclass(frozen=True)
class GeneratedImage:
    """One image reference returned by the upstream service."""

    url: str
    size: str | None = None

    def to_dict(self) -> dict:
        data = {"url": self.url}
        if self.size is not None:
            data["size"] = self.size
        return data


@dataclass(frozen=True)
class GenerationResult:
    """Normalised outcome of a successful generation call.

    Attributes:
        images: Image references in the order the upstream returned them.
        prompt: The prompt that was sent.
        model: The model that was requested.
        generated_at: ISO 8601 UTC timestamp of completion.
    """

    images: tuple[GeneratedImage, ...]
    prompt: str
    model: str
    generated_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "images": [image.to_dict() for image in self.images],
            "prompt": self.prompt,
            "model": self.model,
            "generatedAt": self.generated_at,
        }


def extract_images(data: Any) -> list[GeneratedImage]:
    """Pull the image references out of a chat-completions response body.

    Args:
        data: Decoded JSON body.

    Returns:
        At least one :class:`GeneratedImage`, order preserved.

    Raises:
        UpstreamError: If the body reports an error, is missing any of
            ``choices`` / ``message`` / ``images``, or contains no images.
    """
    if not isinstance(data, dict):
        raise UpstreamError(f"response body is {type(data).__name__}, expected object")

    if data.get("error"):
        raise UpstreamError(f"provider reported error: {str(data['error'])[:LOG_BODY_CHARS]}")

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise UpstreamError("response has no choices")

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise UpstreamError("choices[0] has no message")

    raw_images = message.get("images")
    if raw_images is None:
        raise UpstreamError("message has no images field")
    if not isinstance(raw_images, list):
        raise UpstreamError(f"message.images is {type(raw_images).__name__}, expected list")
    if not raw_images:
        raise UpstreamError("upstream returned zero images")

    images: list[GeneratedImage] = []
    for index, entry in enumerate(raw_images):
        image_url = entry.get("image_url") if isinstance(entry, dict) else None
        url = image_url.get("url") if isinstance(image_url, dict) else None
        if not isinstance(url, str) or not url:
            raise UpstreamError(f"images[{index}] has no image_url.url")
        size = image_url.get("size")
        images.append(GeneratedImage(url=url, size=None if size is None else str(size)))
    return images


class ImageGenerationGateway:
    """Issues generation requests to OpenRouter.

    The gateway does not own its HTTP client: the application lifespan opens
    one :class:`httpx.AsyncClient` and closes it on shutdown.

    Args:
        client: Shared async HTTP client.
        api_key: OpenRouter bearer credential.
        base_url: API base URL without the ``/chat/completions`` path.
        default_model: Model used when the caller does not name one.
        timeout: Seconds allowed for the whole outbound exchange.
        max_prompt_length: Longest accepted prompt.
        site_url: Optional ``HTTP-Referer`` attribution header.
        app_name: Optional ``X-Title`` attribution header.

    Raises:
        ConfigurationError: If ``api_key`` is empty.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        default_model: str = DEFAULT_MODEL,
        timeout: float = 45.0,
        max_prompt_length: int = 1000,
        site_url: str | None = None,
        app_name: str | None = None,
    ):
        if not api_key or not api_key.strip():
            raise ConfigurationError("An OpenRouter API key is required")
        self._client = client
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout = timeout
        self.max_prompt_length = max_prompt_length
        self.site_url = site_url
        self.app_name = app_name

    @classmethod
    def from_config(cls, settings: CyberImageConfig, client: httpx.AsyncClient) -> ImageGenerationGateway:
        """Build a gateway from application settings.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        return cls(
            client,
            settings.require_api_key(),
            base_url=settings.openrouter_base_url,
            default_model=settings.default_model,
            timeout=settings.upstream_timeout,
            max_prompt_length=settings.max_prompt_length,
            site_url=settings.site_url,
            app_name=settings.app_name,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r}, default_model={self.default_model!r})"

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def build_headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if self.site_url:
            headers["HTTP-Referer"] = self.site_url
        if self.app_name:
            headers["X-Title"] = self.app_name
        return headers

    def build_payload(self, prompt: str, model: str) -> dict:
        """Build the chat-completions body requesting image output."""
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "modalities": ["image"],
        }

    async def generate(self, prompt: Any, model: Any = None) -> GenerationResult:
        """Validate *prompt*, call the upstream once and normalise the result.

        Args:
            prompt: Raw prompt from the request body.
            model: Optional model id; the default model is used when absent.

        Returns:
            The successful :class:`GenerationResult`.

        Raises:
            ValidationError: Before any network activity, for a bad prompt
                or model value.
            UpstreamError: For transport failures, timeouts, non-2xx
                responses and unusable response bodies.
        """
        cleaned = validate_prompt(prompt, self.max_prompt_length)
        chosen_model = resolve_model(model, self.default_model)

        logger.info(
            "Generating image model=%s prompt=%r",
            chosen_model,
            cleaned[:LOG_PROMPT_CHARS],
        )

        try:
            data = await self._post(self.build_payload(cleaned, chosen_model))
            images = extract_images(data)
        except UpstreamError as exc:
            logger.error("Image generation failed model=%s: %s", chosen_model, exc.detail)
            raise

        logger.info("Generated %d image(s) model=%s", len(images), chosen_model)
        return GenerationResult(images=tuple(images), prompt=cleaned, model=chosen_model)

    async def _post(self, payload: dict) -> Any:
        """Send *payload* and return the decoded JSON body.

        Raises:
            UpstreamError: On timeout, transport error, non-2xx status or an
                undecodable body.
        """
        try:
            response = await asyncio.wait_for(
                self._client.post(self.endpoint, json=payload, headers=self.build_headers()),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamError(f"timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"transport error: {exc!r}") from exc

        if not response.is_success:
            raise UpstreamError(
                f"HTTP {response.status_code}: {response.text[:LOG_BODY_CHARS]}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"invalid JSON body: {response.text[:LOG_BODY_CHARS]!r}") from exc
