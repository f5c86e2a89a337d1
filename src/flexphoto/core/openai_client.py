"""Client for the OpenAI-compatible vision and image endpoints.

Three calls are wrapped here:

- ``POST /images/edits`` — condition generation on a source photo (sent as a
  data URI) plus an instruction.  Used by the single-photo enhancement modes.
- ``POST /chat/completions`` — ask the vision model to describe the people in
  one or two photos.  Returns a :class:`SubjectDescription`.
- ``POST /images/generations`` — text-to-image generation from a prompt.

Image calls return the base64 payload exactly as the provider sent it;
decoding and persistence happen in :mod:`flexphoto.core.storage`.

Every call carries ``config.request_timeout`` and none is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from flexphoto.core.config import FlexPhotoConfig
from flexphoto.core.provider import ProviderError, response_json, send_request
from flexphoto.core.storage import UploadedImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectDescription:
    """Text produced by the vision model about the people in the photos.

    Only :meth:`OpenAIImagesClient.describe_subjects` creates these after a
    successful call, so a generation step that takes one cannot run when the
    description step failed.  The text itself is not validated and may be
    empty.
    """

    text: str
    image_count: int


class OpenAIImagesClient:
    """Thin wrapper around the provider's REST API.

    Args:
        config: Application configuration (credentials, models, timeouts).
        session: HTTP session used for every call.
    """

    def __init__(self, config: FlexPhotoConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.config.openai_base_url.rstrip('/')}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        if not self.config.api_key_configured:
            raise ProviderError("OPENAI_API_KEY is not configured")
        return {
            "Authorization": f"Bearer {self.config.openai_api_key}",
            "Content-Type": "application/json",
        }

    def _image_payload_options(self) -> dict:
        # gpt-image models always answer with base64 and reject response_format.
        if self.config.image_model.startswith("dall-e"):
            return {"response_format": "b64_json"}
        return {}

    @staticmethod
    def _first_b64_image(body: dict) -> str:
        data = body.get("data")
        if isinstance(data, list) and data and isinstance(data[0], dict):
            b64 = data[0].get("b64_json")
            if isinstance(b64, str) and b64:
                return b64
        raise ProviderError("Provider response did not include image data")

    def edit_image(self, image: UploadedImage, prompt: str) -> str:
        """Edit a photo according to *prompt*.

        Args:
            image: Stored source photo.
            prompt: Compiled edit instruction.

        Returns:
            Base64-encoded result image.

        Raises:
            ProviderError: On any failure, including a body without image data.
        """
        payload = {
            "model": self.config.image_model,
            "image": image.to_data_uri(),
            "prompt": prompt,
            "n": 1,
            "size": self.config.image_size,
            **self._image_payload_options(),
        }

        logger.info(f"Requesting image edit for {image.stored_name} ({self.config.image_model})")
        response = send_request(
            self.session,
            "POST",
            self._url("images/edits"),
            headers=self._headers(),
            json=payload,
            timeout=self.config.request_timeout,
        )
        return self._first_b64_image(response_json(response))

    def describe_subjects(
        self, images: list[UploadedImage], instruction: str
    ) -> SubjectDescription:
        """Ask the vision model to describe the people in *images*.

        A response whose message content is missing or not text still counts
        as success and yields an empty description.

        Raises:
            ProviderError: On transport failure or a non-2xx status.
        """
        content: list[dict] = [{"type": "text", "text": instruction}]
        for image in images:
            content.append({"type": "image_url", "image_url": {"url": image.to_data_uri()}})

        payload = {
            "model": self.config.vision_model,
            "messages": [{"role": "user", "content": content}],
            "max_tokens": self.config.vision_max_tokens,
        }

        logger.info(f"Describing {len(images)} photo(s) with {self.config.vision_model}")
        response = send_request(
            self.session,
            "POST",
            self._url("chat/completions"),
            headers=self._headers(),
            json=payload,
            timeout=self.config.request_timeout,
        )

        text = ""
        try:
            message = response.json()["choices"][0]["message"]["content"]
            if isinstance(message, str):
                text = message
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("Vision response had no usable description; continuing without one")

        return SubjectDescription(text=text, image_count=len(images))

    def generate_image(self, prompt: str) -> str:
        """Generate an image from text alone.

        Returns:
            Base64-encoded result image.

        Raises:
            ProviderError: On any failure, including a body without image data.
        """
        payload = {
            "model": self.config.image_model,
            "prompt": prompt,
            "n": 1,
            "size": self.config.image_size,
            "quality": "high",
            **self._image_payload_options(),
        }

        logger.info(f"Requesting text-to-image generation ({self.config.image_model})")
        response = send_request(
            self.session,
            "POST",
            self._url("images/generations"),
            headers=self._headers(),
            json=payload,
            timeout=self.config.request_timeout,
        )
        return self._first_b64_image(response_json(response))
