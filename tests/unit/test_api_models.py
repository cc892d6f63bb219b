"""Tests for cyberimage.api.models — Pydantic request/response models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cyberimage.api.models import ErrorResponse, GenerateImageRequest, GenerateImageResponse


class TestGenerateImageRequest:
    def test_prompt_only(self):
        req = GenerateImageRequest(prompt="a cyberpunk cat")
        assert req.prompt == "a cyberpunk cat"
        assert req.model is None

    def test_missing_prompt_allowed_at_parse_time(self):
        """Presence is checked by the gateway so the error shape stays uniform."""
        assert GenerateImageRequest().prompt is None

    def test_with_model(self):
        req = GenerateImageRequest(prompt="x", model="some/model")
        assert req.model == "some/model"

    def test_non_string_prompt_rejected(self):
        with pytest.raises(ValidationError):
            GenerateImageRequest(prompt=["not", "a", "string"])


class TestGenerateImageResponse:
    def test_serialises_generated_at_alias(self):
        resp = GenerateImageResponse.model_validate(
            {
                "success": True,
                "images": [{"url": "https://x/1.png"}],
                "prompt": "a cat",
                "model": "m",
                "generatedAt": "2026-01-01T00:00:00.000Z",
            }
        )
        data = resp.model_dump(by_alias=True, exclude_none=True)
        assert data["generatedAt"] == "2026-01-01T00:00:00.000Z"
        assert data["images"] == [{"url": "https://x/1.png"}]


class TestErrorResponse:
    def test_defaults_to_failure(self):
        err = ErrorResponse(error="Prompt is required", timestamp="t")
        assert err.model_dump() == {"success": False, "error": "Prompt is required", "timestamp": "t"}
