"""Shared pytest fixtures for Flex Photo tests."""

from __future__ import annotations

import base64
import json
import shutil
import tempfile
from collections.abc import Generator
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any

import pytest
import requests
from fastapi.testclient import TestClient
from PIL import Image

from flexphoto.api.main import create_app
from flexphoto.core.config import FlexPhotoConfig
from flexphoto.core.storage import save_upload


def make_image_bytes(
    fmt: str = "PNG", size: tuple[int, int] = (32, 32), color=(200, 40, 40)
) -> bytes:
    """Render a small solid-colour image in the given Pillow format."""
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_response(
    status_code: int = 200,
    json_body: Any = None,
    content: bytes | None = None,
) -> requests.Response:
    """Build a real :class:`requests.Response` without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.encoding = "utf-8"
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = content if content is not None else b""
    return response


@dataclass
class RecordedCall:
    method: str
    url: str
    kwargs: dict

    @property
    def json(self) -> Any:
        return self.kwargs.get("json")


@dataclass
class FakeSession:
    """Stand-in for :class:`requests.Session` that answers from a route table.

    Routes are matched by HTTP method and URL suffix.  Each route holds a
    queue of responses (or exceptions to raise); the last item is reused
    once the queue is down to one entry.
    """

    routes: list[tuple[str, str, list]] = field(default_factory=list)
    calls: list[RecordedCall] = field(default_factory=list)
    closed: bool = False

    def add(self, method: str, url_suffix: str, *items) -> None:
        self.routes.append((method.upper(), url_suffix, list(items)))

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        self.calls.append(RecordedCall(method.upper(), url, kwargs))
        for route_method, suffix, queue in self.routes:
            if route_method == method.upper() and url.endswith(suffix):
                item = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(item, Exception):
                    raise item
                return item
        raise AssertionError(f"Unexpected request: {method} {url}")

    def calls_to(self, url_suffix: str) -> list[RecordedCall]:
        return [call for call in self.calls if call.url.endswith(url_suffix)]

    def close(self) -> None:
        self.closed = True


_PROVIDER_ENV_VARS = (
    "OPENAI_API_KEY",
    "FLEXPHOTO_OPENAI_API_KEY",
    "REPLICATE_API_TOKEN",
    "FLEXPHOTO_REPLICATE_API_TOKEN",
    "FLEXPHOTO_CREATE_BACKEND",
)


@pytest.fixture(autouse=True)
def isolated_provider_env(monkeypatch) -> None:
    """Keep real credentials in the shell from leaking into test configs."""
    for name in _PROVIDER_ENV_VARS:
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
def test_config(temp_dir: Path) -> FlexPhotoConfig:
    """Create a test configuration with temporary directories and fake credentials."""
    return FlexPhotoConfig(
        _env_file=None,
        openai_api_key="sk-test",
        replicate_api_token="r8-test",
        uploads_dir=str(temp_dir / "uploads"),
        outputs_dir=str(temp_dir / "outputs"),
        max_upload_bytes=1024 * 1024,
        job_poll_interval=0.01,
        job_max_wait=5.0,
    )


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG", size=(64, 48))


@pytest.fixture
def png_b64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def stored_pair(test_config: FlexPhotoConfig, jpeg_bytes: bytes, png_bytes: bytes):
    """Two photos already written to the uploads directory."""
    return [
        save_upload(jpeg_bytes, "alice.jpg", "image/jpeg", test_config.uploads_dir),
        save_upload(png_bytes, "bob.png", "image/png", test_config.uploads_dir),
    ]


@pytest.fixture
def test_client(test_config: FlexPhotoConfig, fake_session: FakeSession) -> TestClient:
    """TestClient for an app whose provider traffic goes to ``fake_session``."""
    app = create_app(test_config, session=fake_session)
    return TestClient(app)


@pytest.fixture
def response_factory():
    """Return :func:`make_response` for building provider responses."""
    return make_response


@pytest.fixture
def image_factory():
    """Return :func:`make_image_bytes` for rendering test images."""
    return make_image_bytes
