"""Flex Photo — FastAPI Application.

This module defines the application factory, all REST API routes, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The application follows a stateless request/response pattern:

- **Configuration** is a single :class:`~flexphoto.core.config.FlexPhotoConfig`
  built when the app is created and stored on ``app.state``.  Handlers get it
  (and the provider clients built from it) through FastAPI dependencies.
- **Uploads** are validated before anything is written or sent, then stored
  under ``uploads_dir``.
- **Image generation** is delegated to the external provider via
  :class:`~flexphoto.core.openai_client.OpenAIImagesClient` (enhancements) or
  the configured composite adapter (two-person Polaroids).
- **Generated images** are written to ``outputs_dir`` before the success
  envelope is returned.
- **Static files** (``/uploads``, ``/outputs``) are served by FastAPI's
  ``StaticFiles``.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/``                         Serve the single-page frontend
GET       ``/api/config``               Modes and upload limits
POST      ``/api/upload``               Store one photo
POST      ``/api/enhance/{mode}``       Enhance one photo
POST      ``/api/create``               Two-person Polaroid composite
POST      ``/api/prompt/compile``       Preview the compiled prompt
GET       ``/api/health``               Liveness and credential flags
GET       ``/uploads/{name}``           Stored upload
GET       ``/outputs/{name}``           Generated image
========  ============================  ====================================

Errors are returned as ``{"error": ..., "details": ...}``: 400 for client
input problems, 500 for provider or local I/O failures.

Usage
-----
CLI (installed entry point)::

    flexphoto

Direct invocation::

    python -m flexphoto.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import requests
from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from flexphoto import __version__
from flexphoto.api.models import (
    BackendInfo,
    CompileRequest,
    ConfigResponse,
    CreateResponse,
    EnhanceResponse,
    ErrorResponse,
    HealthResponse,
    ModeInfo,
    UploadResponse,
)
from flexphoto.core.composite_adapters import POLAROID_MODE, CompositeAdapterBase, adapter_registry
from flexphoto.core.config import FlexPhotoConfig
from flexphoto.core.openai_client import OpenAIImagesClient
from flexphoto.core.prompt_builder import (
    ENHANCE_MODES,
    build_enhance_prompt,
    build_polaroid_prompt,
    resolve_mode,
)
from flexphoto.core.provider import ProviderError
from flexphoto.core.storage import (
    OUTPUTS_MOUNT,
    UPLOADS_MOUNT,
    ImageDecodeError,
    UploadedImage,
    save_generated_image,
    save_upload,
    sweep_expired_files,
)
from flexphoto.core.validation import (
    ALLOWED_EXTENSIONS,
    validate_file_count,
    validate_image_file,
    validate_scene_prompt,
)

logger = logging.getLogger(__name__)

# Failures that surface as 500 "Failed to ..." with the message as details.
GENERATION_FAILURES = (ProviderError, ImageDecodeError, OSError)


class ApiError(Exception):
    """An error returned to the client as ``{"error", "details"}``.

    Attributes:
        status_code: HTTP status to respond with.
        error: Short, user-facing message.
        details: Optional underlying failure text.
    """

    def __init__(self, status_code: int, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_config(request: Request) -> FlexPhotoConfig:
    return request.app.state.config


def get_image_client(request: Request) -> OpenAIImagesClient:
    return request.app.state.image_client


def get_composite_adapter(request: Request) -> CompositeAdapterBase:
    return request.app.state.composite_adapter


# ---------------------------------------------------------------------------
# Upload helpers.
# ---------------------------------------------------------------------------


def _read_validated(upload: UploadFile, config: FlexPhotoConfig) -> bytes:
    """Read an uploaded part and reject it if it fails validation.

    The framework has already received the whole part; only the read into
    memory is bounded, at ``max_upload_bytes + 1`` bytes, which is enough to
    tell that the file is over the limit.

    Raises:
        ApiError: 400 if the file type or size is not accepted.
    """
    data = upload.file.read(config.max_upload_bytes + 1)
    error = validate_image_file(
        upload.filename,
        upload.content_type,
        len(data),
        config.max_upload_bytes,
    )
    if error is not None:
        raise ApiError(400, str(error))
    return data


def _store(upload: UploadFile, data: bytes, config: FlexPhotoConfig) -> UploadedImage:
    try:
        return save_upload(
            data,
            upload.filename or "upload",
            upload.content_type or "",
            config.uploads_dir,
        )
    except OSError as e:
        logger.error(f"Failed to store upload {upload.filename!r}: {e}", exc_info=True)
        raise ApiError(500, "Failed to store upload", details=str(e)) from e


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def index(config: FlexPhotoConfig = Depends(get_config)) -> HTMLResponse:
    """Serve the single-page frontend.

    Raises:
        ApiError: 404 if ``index.html`` is not found.
    """
    index_path = config.templates_dir / "index.html"
    if index_path.exists():
        return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
    raise ApiError(404, "index.html not found")


@router.get("/api/config", response_model=ConfigResponse)
async def get_app_config(
    config: FlexPhotoConfig = Depends(get_config),
    adapter: CompositeAdapterBase = Depends(get_composite_adapter),
) -> ConfigResponse:
    """Return the enhancement modes, upload limits and composite backend."""
    return ConfigResponse(
        version=__version__,
        modes=[
            ModeInfo(id=mode.id, label=mode.label, description=mode.description)
            for mode in ENHANCE_MODES.values()
        ],
        max_upload_bytes=config.max_upload_bytes,
        allowed_extensions=list(ALLOWED_EXTENSIONS),
        create_backend=config.create_backend,
        create_backend_info=BackendInfo(**adapter.get_adapter_info()),
    )


@router.post("/api/upload", response_model=UploadResponse)
def upload_image(
    image: UploadFile | None = File(default=None),
    config: FlexPhotoConfig = Depends(get_config),
) -> UploadResponse:
    """Store a single photo without processing it.

    Raises:
        ApiError: 400 if no file was sent or the file is rejected.
    """
    if image is None:
        raise ApiError(400, "No image file uploaded")

    data = _read_validated(image, config)
    stored = _store(image, data, config)

    return UploadResponse(
        filename=stored.stored_name,
        original_name=stored.original_name,
        path=stored.public_path,
        full_path=str(stored.path),
    )


@router.post("/api/enhance/{mode}", response_model=EnhanceResponse)
def enhance_image(
    mode: str,
    image: UploadFile | None = File(default=None),
    prompt: str = Form(default=""),
    config: FlexPhotoConfig = Depends(get_config),
    client: OpenAIImagesClient = Depends(get_image_client),
) -> EnhanceResponse:
    """Apply an enhancement mode to one photo with a single edit call.

    This endpoint:

    1. Resolves the mode (``style``, ``background``, ``combined`` or alias).
    2. Validates and stores the upload.
    3. Compiles the mode's prompt with the optional user direction.
    4. Sends the photo as a data URI to the provider's edit endpoint.
    5. Decodes and stores the returned image.

    Raises:
        ApiError: 400 for an unknown mode or missing/rejected file; 500 if
            the provider call or the output write fails.
    """
    enhance_mode = resolve_mode(mode)
    if enhance_mode is None:
        raise ApiError(400, f"Unknown enhancement mode: {mode}")
    if image is None:
        raise ApiError(400, "No image file uploaded")

    data = _read_validated(image, config)
    stored = _store(image, data, config)

    try:
        edit_prompt = build_enhance_prompt(enhance_mode.id, prompt)
        payload = client.edit_image(stored, edit_prompt)
        generated = save_generated_image(payload, enhance_mode.id, config.outputs_dir)
    except GENERATION_FAILURES as e:
        logger.error(f"Enhance error ({enhance_mode.id}): {e}", exc_info=True)
        raise ApiError(500, "Failed to enhance image", details=str(e)) from e

    return EnhanceResponse(
        original=stored.public_path,
        enhanced=generated.public_path,
        style=enhance_mode.label,
    )


@router.post("/api/create", response_model=CreateResponse)
def create_polaroid(
    images: list[UploadFile] | None = File(default=None),
    prompt: str | None = Form(default=None),
    config: FlexPhotoConfig = Depends(get_config),
    adapter: CompositeAdapterBase = Depends(get_composite_adapter),
) -> CreateResponse:
    """Compose a vintage Polaroid of the two people in two photos.

    File count, each file, and the prompt are all checked before anything is
    stored or sent to the provider.

    Raises:
        ApiError: 400 for the wrong number of files, a rejected file or a
            missing prompt; 500 if the composite backend or the output write
            fails.
    """
    files = images or []

    error = validate_file_count(len(files), 2)
    if error is not None:
        raise ApiError(400, str(error))

    contents = [_read_validated(upload, config) for upload in files]

    error = validate_scene_prompt(prompt)
    if error is not None:
        raise ApiError(400, str(error))

    stored = [_store(upload, data, config) for upload, data in zip(files, contents)]

    try:
        generated = adapter.compose_and_save(stored, prompt.strip())
    except GENERATION_FAILURES as e:
        logger.error(f"Create error ({adapter.name}): {e}", exc_info=True)
        raise ApiError(500, "Failed to create image", details=str(e)) from e

    return CreateResponse(result=generated.public_path)


@router.post("/api/prompt/compile")
async def compile_prompt(req: CompileRequest) -> dict:
    """Preview the compiled prompt without calling the provider.

    Raises:
        ApiError: 400 for an unknown mode, or an empty prompt in
            ``polaroid`` mode.
    """
    if req.mode.strip().lower() == POLAROID_MODE:
        error = validate_scene_prompt(req.prompt)
        if error is not None:
            raise ApiError(400, str(error))
        return {"compiled_prompt": build_polaroid_prompt(req.prompt)}

    if resolve_mode(req.mode) is None:
        raise ApiError(400, f"Unknown enhancement mode: {req.mode}")
    return {"compiled_prompt": build_enhance_prompt(req.mode, req.prompt)}


@router.get("/api/health", response_model=HealthResponse)
async def health(config: FlexPhotoConfig = Depends(get_config)) -> HealthResponse:
    """Report liveness and which provider credentials are present."""
    return HealthResponse(
        api_key_configured=config.api_key_configured,
        replicate_token_configured=config.replicate_token_configured,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


# ---------------------------------------------------------------------------
# Exception handlers.
# ---------------------------------------------------------------------------


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body = ErrorResponse(error=exc.error, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(str(err.get("msg", err)) for err in exc.errors())
    body = ErrorResponse(error="Invalid request", details=details or None)
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown.

    On startup:
        Applies the retention policy (when configured) and logs which
        credentials are present.

    On shutdown:
        Closes the shared HTTP session.
    """
    config: FlexPhotoConfig = app.state.config

    if config.retention_hours is not None:
        max_age = config.retention_hours * 3600
        for directory in (config.uploads_dir, config.outputs_dir):
            sweep_expired_files(directory, max_age)

    logger.info(
        f"Flex Photo {__version__} ready "
        f"(apiKeyConfigured={config.api_key_configured}, "
        f"replicateTokenConfigured={config.replicate_token_configured}, "
        f"createBackend={config.create_backend})"
    )

    yield

    app.state.session.close()


def create_app(
    config: FlexPhotoConfig | None = None,
    *,
    session: requests.Session | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration.  Loaded from the environment when
            omitted.
        session: HTTP session shared by the provider clients.  A new
            :class:`requests.Session` is created when omitted.

    Returns:
        The configured application.
    """
    config = config or FlexPhotoConfig()
    session = session or requests.Session()

    app = FastAPI(
        title="Flex Photo",
        description=(
            "Photo enhancement and two-person Polaroid composites via an external image API."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.session = session
    app.state.image_client = OpenAIImagesClient(config, session)
    app.state.composite_adapter = adapter_registry.instantiate(
        config.create_backend, config, session
    )

    # The frontend may be served from a different port during development.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(router)

    app.mount(UPLOADS_MOUNT, StaticFiles(directory=str(config.uploads_dir)), name="uploads")
    app.mount(OUTPUTS_MOUNT, StaticFiles(directory=str(config.outputs_dir)), name="outputs")

    return app


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :class:`FlexPhotoConfig` (``FLEXPHOTO_SERVER_HOST``
    and ``FLEXPHOTO_SERVER_PORT`` / ``PORT``).  Defaults to ``0.0.0.0:5000``.

    This function is registered as the ``flexphoto`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = FlexPhotoConfig()
    logger.info(f"Flex Photo API starting on http://{config.server_host}:{config.server_port}")

    uvicorn.run(
        "flexphoto.api.main:create_app",
        factory=True,
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
