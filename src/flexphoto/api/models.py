"""Pydantic request and response models for the Flex Photo API.

Response field names follow the JSON contract consumed by the browser client,
which uses camelCase for a few keys (``originalName``, ``fullPath``,
``apiKeyConfigured``).  Those fields are declared in snake_case and exported
through ``serialization_alias``; FastAPI serialises response models by alias.

Models
------
UploadResponse
    ``POST /api/upload``
EnhanceResponse
    ``POST /api/enhance/{mode}``
CreateResponse
    ``POST /api/create``
CompileRequest
    Payload for ``POST /api/prompt/compile``
HealthResponse
    ``GET /api/health``
ModeInfo / BackendInfo / ConfigResponse
    ``GET /api/config``
ErrorResponse
    Body of every 4xx/5xx produced by the application
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    """Stored upload description."""

    success: bool = True
    filename: str = Field(..., description="Generated name on disk.")
    original_name: str = Field(..., serialization_alias="originalName")
    path: str = Field(..., description="Public path under /uploads/.")
    full_path: str = Field(..., serialization_alias="fullPath")


class EnhanceResponse(BaseModel):
    """Result envelope for a single-photo enhancement.

    Attributes:
        success: Always ``True``; failures use :class:`ErrorResponse`.
        original: Public path of the uploaded photo.
        enhanced: Public path of the generated image.
        style: Human-readable label of the applied mode.
    """

    success: bool = True
    original: str
    enhanced: str
    style: str


class CreateResponse(BaseModel):
    """Result envelope for a two-person Polaroid."""

    success: bool = True
    result: str = Field(..., description="Public path of the generated image.")


class CompileRequest(BaseModel):
    """Request body for ``POST /api/prompt/compile``.

    Attributes:
        mode: ``style``, ``background``, ``combined`` (or a legacy alias), or
            ``polaroid``.
        prompt: Optional user text.  Required in spirit for ``polaroid``.
    """

    mode: str = Field(..., description="Enhancement mode id, alias, or 'polaroid'.")
    prompt: str = Field(default="", description="User-supplied text fragment.")


class HealthResponse(BaseModel):
    status: str = "ok"
    api_key_configured: bool = Field(..., serialization_alias="apiKeyConfigured")
    replicate_token_configured: bool = Field(
        ..., serialization_alias="replicateTokenConfigured"
    )
    timestamp: str


class ModeInfo(BaseModel):
    id: str
    label: str
    description: str


class BackendInfo(BaseModel):
    """Name and description of the active composite backend."""

    name: str
    description: str


class ConfigResponse(BaseModel):
    version: str
    modes: list[ModeInfo]
    max_upload_bytes: int = Field(..., serialization_alias="maxUploadBytes")
    allowed_extensions: list[str] = Field(..., serialization_alias="allowedExtensions")
    create_backend: str = Field(..., serialization_alias="createBackend")
    create_backend_info: BackendInfo = Field(..., serialization_alias="createBackendInfo")


class ErrorResponse(BaseModel):
    """Error body.  ``details`` carries the provider or local failure text."""

    error: str
    details: str | None = None
