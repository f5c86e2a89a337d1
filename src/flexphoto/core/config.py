"""Configuration management for Flex Photo.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the FLEXPHOTO_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Explicit keyword arguments passed to ``FlexPhotoConfig(...)``
2. Environment variables (FLEXPHOTO_* prefix, plus the bare aliases below)
3. .env file in the project root
4. Default values defined in FlexPhotoConfig

The provider credentials and the listening port also accept the bare names
used by most deployment platforms (``OPENAI_API_KEY``, ``REPLICATE_API_TOKEN``,
``PORT``) so an existing ``.env`` keeps working.

Example .env file:
    OPENAI_API_KEY=sk-...
    FLEXPHOTO_MAX_UPLOAD_BYTES=10485760
    FLEXPHOTO_OUTPUTS_DIR=outputs
    FLEXPHOTO_RETENTION_HOURS=72

Configuration Lifetime
----------------------
There is no global instance.  A single ``FlexPhotoConfig`` is constructed at
process start by :func:`flexphoto.api.main.create_app` and stored on
``app.state``; route handlers receive it through a FastAPI dependency.

Directory Management
--------------------
The configuration automatically creates required directories on initialization:
- uploads_dir: For photos received from the browser
- outputs_dir: For images returned by the generation provider
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class FlexPhotoConfig(BaseSettings):
    """Main configuration for Flex Photo.

    Attributes
    ----------
    Provider Credentials:
        openai_api_key : str
            Credential for the vision / image generation provider
        replicate_api_token : str
            Credential for the job-based alternate provider

    Provider Settings:
        openai_base_url : str
            Base URL of the OpenAI-compatible REST API
        image_model : str
            Model used for image edits and text-to-image generation
        vision_model : str
            Model used to describe the subjects of uploaded photos
        image_size : str
            Requested output size (``WIDTHxHEIGHT``)
        vision_max_tokens : int
            Upper bound on the length of a subject description
        replicate_base_url : str
            Base URL of the Replicate predictions API
        replicate_model : str
            ``owner/name`` of the model used for remote jobs
        create_backend : Literal["describe-then-generate", "remote-job"]
            Backend used by ``POST /api/create``

    Timeouts:
        request_timeout : float
            Seconds allowed for each outbound provider call
        job_poll_interval : float
            Seconds between status polls of a remote job
        job_max_wait : float
            Total seconds to wait for a remote job before giving up

    Uploads and Storage:
        max_upload_bytes : int
            Largest accepted upload
        uploads_dir : Path
            Directory for received photos
        outputs_dir : Path
            Directory for generated images
        templates_dir : Path
            Directory holding the frontend ``index.html``
        retention_hours : float | None
            Delete stored images older than this at startup (None keeps all)

    Server Settings:
        server_host : str
            Bind address
        server_port : int
            Listening port (1024-65535)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FLEXPHOTO_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Provider credentials
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("FLEXPHOTO_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="API key for the vision / image generation provider",
    )
    replicate_api_token: str = Field(
        default="",
        validation_alias=AliasChoices("FLEXPHOTO_REPLICATE_API_TOKEN", "REPLICATE_API_TOKEN"),
        description="API token for the job-based generation provider",
    )

    # Provider settings
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible REST API",
    )
    image_model: str = Field(default="gpt-image-1")
    vision_model: str = Field(default="gpt-4o")
    image_size: str = Field(
        default="1024x1024",
        pattern=r"^\d+x\d+$",
        description="Requested output size",
    )
    vision_max_tokens: int = Field(default=800, ge=16, le=4096)
    replicate_base_url: str = Field(default="https://api.replicate.com/v1")
    replicate_model: str = Field(default="black-forest-labs/flux-1.1-pro")
    create_backend: Literal["describe-then-generate", "remote-job"] = Field(
        default="describe-then-generate",
        description="Backend used to compose two-person Polaroids",
    )

    # Timeouts (generation calls are long-running model inferences)
    request_timeout: float = Field(default=120.0, gt=0)
    job_poll_interval: float = Field(default=2.0, gt=0)
    job_max_wait: float = Field(default=300.0, gt=0)

    # Uploads and storage
    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024,
        ge=1,
        description="Largest accepted upload in bytes",
    )
    uploads_dir: Path = Field(
        default=Path("uploads"),
        description="Directory for uploaded photos",
    )
    outputs_dir: Path = Field(
        default=Path("outputs"),
        description="Directory for generated images",
    )
    templates_dir: Path = Field(
        default=_PACKAGE_DIR / "templates",
        description="Directory containing the frontend index.html",
    )
    retention_hours: float | None = Field(
        default=None,
        gt=0,
        description="Delete stored images older than this many hours at startup",
    )

    # Server settings
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(
        default=5000,
        validation_alias=AliasChoices("FLEXPHOTO_SERVER_PORT", "PORT"),
        ge=1024,
        le=65535,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the storage directories.

        Args:
            **kwargs: Configuration overrides (typically from tests)
        """
        super().__init__(**kwargs)

        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.outputs_dir.mkdir(parents=True, exist_ok=True)

    @property
    def api_key_configured(self) -> bool:
        """Whether the image provider credential is non-empty."""
        return bool(self.openai_api_key)

    @property
    def replicate_token_configured(self) -> bool:
        """Whether the job-based provider credential is non-empty."""
        return bool(self.replicate_api_token)
