"""Client for the job-based alternate provider (Replicate predictions API).

A job is submitted with a text prompt and the ``Prefer: wait`` header, which
asks the provider to hold the connection until the prediction finishes.  If
the prediction is still running when the provider answers, its ``urls.get``
link is polled until it reaches a terminal status or ``job_max_wait``
elapses.

The prediction output is either a URL (downloaded with a plain GET) or a
data URI (returned as text for the storage layer to decode).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

import requests

from flexphoto.core.config import FlexPhotoConfig
from flexphoto.core.provider import ProviderError, response_json, send_request

logger = logging.getLogger(__name__)

_TERMINAL_STATUSES = {"succeeded", "failed", "canceled"}


class ReplicateJobsClient:
    """Submit a generation job, wait for it, and fetch the result.

    Args:
        config: Application configuration (token, model, timeouts).
        session: HTTP session used for every call.
    """

    def __init__(self, config: FlexPhotoConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        if not self.config.replicate_token_configured:
            raise ProviderError("REPLICATE_API_TOKEN is not configured")
        return {
            "Authorization": f"Bearer {self.config.replicate_api_token}",
            "Content-Type": "application/json",
        }

    def submit(self, prompt: str) -> dict:
        """Create a prediction and return the provider's prediction object."""
        url = (
            f"{self.config.replicate_base_url.rstrip('/')}/models/"
            f"{self.config.replicate_model}/predictions"
        )
        payload = {
            "input": {
                "prompt": prompt,
                "aspect_ratio": "1:1",
                "output_format": "png",
            }
        }
        headers = {**self._headers(), "Prefer": "wait"}

        logger.info(f"Submitting generation job to {self.config.replicate_model}")
        response = send_request(
            self.session,
            "POST",
            url,
            headers=headers,
            json=payload,
            timeout=self.config.request_timeout,
        )
        return response_json(response)

    def wait(self, prediction: dict) -> dict:
        """Poll *prediction* until it reaches a terminal status.

        Raises:
            ProviderError: If the job fails, is canceled, or exceeds
                ``job_max_wait``.
        """
        deadline = time.monotonic() + self.config.job_max_wait

        while prediction.get("status") not in _TERMINAL_STATUSES:
            poll_url = (prediction.get("urls") or {}).get("get")
            if not poll_url:
                raise ProviderError("Provider returned a pending job without a status URL")
            if time.monotonic() >= deadline:
                raise ProviderError(
                    f"Generation job did not finish within {self.config.job_max_wait:g}s"
                )

            time.sleep(self.config.job_poll_interval)
            logger.debug(f"Polling job {prediction.get('id')} ({prediction.get('status')})")
            response = send_request(
                self.session,
                "GET",
                poll_url,
                headers=self._headers(),
                timeout=self.config.request_timeout,
            )
            prediction = response_json(response)

        if prediction["status"] != "succeeded":
            error = prediction.get("error") or f"Generation job {prediction['status']}"
            raise ProviderError(str(error))

        return prediction

    def fetch_output(self, prediction: dict) -> bytes | str:
        """Return the finished job's image as bytes, or a data URI string."""
        output = prediction.get("output")
        if isinstance(output, list):
            output = output[0] if output else None

        if not isinstance(output, str) or not output:
            raise ProviderError("Generation job finished without an output image")

        if output.startswith("data:"):
            return output

        if not output.startswith(("http://", "https://")):
            raise ProviderError(f"Unsupported job output: {output[:80]}")

        logger.info(f"Downloading job output from {output}")
        response = send_request(self.session, "GET", output, timeout=self.config.request_timeout)
        return response.content

    def run(self, prompt: str, image_refs: Sequence[str] = ()) -> bytes | str:
        """Submit, wait for, and download a text-only generation job.

        Args:
            prompt: Compiled prompt.
            image_refs: Public paths of the source photos.  Recorded in the
                log only; the job input is text.

        Returns:
            Raw image bytes or a data URI string.
        """
        if image_refs:
            logger.info(f"Job input is text-only; not sending {len(image_refs)} image reference(s)")

        prediction = self.wait(self.submit(prompt))
        return self.fetch_output(prediction)
