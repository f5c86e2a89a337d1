"""Tests for flexphoto.api.models — Pydantic request/response models.

Tests cover:
- camelCase keys produced by ``serialization_alias``.
- Default values for optional fields.
- CompileRequest field validation.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from flexphoto.api.models import (
    BackendInfo,
    CompileRequest,
    ConfigResponse,
    EnhanceResponse,
    ErrorResponse,
    HealthResponse,
    ModeInfo,
    UploadResponse,
)


class TestUploadResponse:
    """Test UploadResponse serialisation."""

    def test_camel_case_keys(self):
        resp = UploadResponse(
            filename="1-abc.png",
            original_name="me.png",
            path="/uploads/1-abc.png",
            full_path="/srv/uploads/1-abc.png",
        )
        body = resp.model_dump(by_alias=True)
        assert body == {
            "success": True,
            "filename": "1-abc.png",
            "originalName": "me.png",
            "path": "/uploads/1-abc.png",
            "fullPath": "/srv/uploads/1-abc.png",
        }


class TestEnhanceResponse:
    def test_success_defaults_true(self):
        resp = EnhanceResponse(
            original="/uploads/a.jpg",
            enhanced="/outputs/b.png",
            style="Full Flex",
        )
        assert resp.success is True


class TestHealthResponse:
    def test_aliases(self):
        body = HealthResponse(
            api_key_configured=False,
            replicate_token_configured=True,
            timestamp="2026-01-01T00:00:00Z",
        ).model_dump(by_alias=True)
        assert body["status"] == "ok"
        assert body["apiKeyConfigured"] is False
        assert body["replicateTokenConfigured"] is True


class TestConfigResponse:
    def test_aliases(self):
        style = ModeInfo(id="style", label="iPhone 17 Pro", description="Color grading & quality")
        body = ConfigResponse(
            version="0.1.0",
            modes=[style],
            max_upload_bytes=10,
            allowed_extensions=[".png"],
            create_backend="remote-job",
            create_backend_info=BackendInfo(name="remote-job", description="Text-only job"),
        ).model_dump(by_alias=True)
        assert body["maxUploadBytes"] == 10
        assert body["allowedExtensions"] == [".png"]
        assert body["createBackend"] == "remote-job"
        assert body["createBackendInfo"] == {"name": "remote-job", "description": "Text-only job"}
        assert body["modes"][0]["id"] == "style"


class TestCompileRequest:
    """Test CompileRequest validation."""

    def test_prompt_defaults_empty(self):
        assert CompileRequest(mode="style").prompt == ""

    def test_mode_required(self):
        with pytest.raises(ValidationError):
            CompileRequest(prompt="x")


class TestErrorResponse:
    def test_details_optional(self):
        assert ErrorResponse(error="Bad").model_dump(exclude_none=True) == {"error": "Bad"}

    def test_details_included(self):
        body = ErrorResponse(error="Failed to create image", details="timeout").model_dump()
        assert body == {"error": "Failed to create image", "details": "timeout"}
