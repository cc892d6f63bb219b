"""Shared pytest fixtures for Cyber Image Generator tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from cyberimage.api.main import create_app
from cyberimage.core.config import CyberImageConfig

TEST_API_KEY = "sk-or-test-key-do-not-leak"

# Variables read by CyberImageConfig that must not leak in from the shell.
_CONFIG_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "OPENROUTER_BASE_URL",
    "DEFAULT_MODEL",
    "UPSTREAM_TIMEOUT",
    "MAX_PROMPT_LENGTH",
    "SITE_URL",
    "APP_NAME",
    "HOST",
    "PORT",
    "ENVIRONMENT",
    "NODE_ENV",
    "APP_ENV",
    "LOG_LEVEL",
    "STATIC_DIR",
    "ALLOWED_ORIGINS",
    "TRUSTED_ORIGIN_SUFFIXES",
)


def completion_body(urls: list[str], sizes: list[str] | None = None) -> dict:
    """Build an OpenRouter chat-completions body carrying *urls* as images."""
    images = []
    for index, url in enumerate(urls):
        image_url = {"url": url}
        if sizes is not None:
            image_url["size"] = sizes[index]
        images.append({"type": "image_url", "image_url": image_url})
    return {
        "id": "gen-123",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "", "images": images},
            }
        ],
    }


class FakeUpstream:
    """Callable ``httpx.MockTransport`` handler that records every request.

    Attributes:
        calls: Requests received, in order.
        status_code: Status returned for subsequent requests.
        body: JSON body returned for subsequent requests.
    """

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.status_code = 200
        self.body: object = completion_body(["https://cdn.example.com/cat.png"])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_payload(self) -> dict:
        return json.loads(self.calls[-1].content)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    """Remove configuration variables inherited from the developer's shell."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> CyberImageConfig:
    """Development-mode configuration with a dummy API key.

    Args:
        temp_dir: Temporary directory used as the static root
    """
    return CyberImageConfig(
        openrouter_api_key=TEST_API_KEY,
        environment="development",
        static_dir=temp_dir,
        _env_file=None,
    )


@pytest.fixture
def production_config(temp_dir: Path) -> CyberImageConfig:
    """Production-mode configuration using the default allow-list."""
    return CyberImageConfig(
        openrouter_api_key=TEST_API_KEY,
        environment="production",
        static_dir=temp_dir,
        _env_file=None,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    """Fake OpenRouter endpoint returning one image by default."""
    return FakeUpstream()


@pytest.fixture
def make_client(upstream: FakeUpstream) -> Generator[Callable[..., TestClient], None, None]:
    """Factory for started TestClients wired to the fake upstream.

    Yields:
        Function taking a :class:`CyberImageConfig` and an optional handler
        and returning a TestClient whose lifespan has already run.
    """
    clients: list[TestClient] = []

    def _make(settings: CyberImageConfig, handler=None) -> TestClient:
        transport = httpx.MockTransport(handler or upstream)
        client = TestClient(create_app(settings, transport=transport))
        client.__enter__()
        clients.append(client)
        return client

    try:
        yield _make
    finally:
        for client in clients:
            client.__exit__(None, None, None)


@pytest.fixture
def test_client(make_client, test_config: CyberImageConfig) -> TestClient:
    """Development-mode client."""
    return make_client(test_config)


@pytest.fixture
def production_client(make_client, production_config: CyberImageConfig) -> TestClient:
    """Production-mode client with strict origin checks."""
    return make_client(production_config)


@pytest.fixture
def completion() -> Callable[..., dict]:
    """The :func:`completion_body` builder, for tests shaping upstream replies."""
    return completion_body
