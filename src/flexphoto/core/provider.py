"""Shared HTTP plumbing for the external image providers.

Both provider clients send their requests through :func:`send_request`, which
turns every transport problem, non-2xx status and unreadable body into a
:class:`ProviderError`.  Nothing is retried: the first failure is reported.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """An external provider call failed.

    The message is the provider's own error text when the response carried
    one, otherwise a description of the local failure.

    Attributes:
        status_code: HTTP status returned by the provider, if any.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def extract_error_message(response: requests.Response) -> str:
    """Pull the most specific error text out of a failed response.

    Understands the OpenAI shape (``{"error": {"message": ...}}``) and the
    Replicate shape (``{"detail": ...}``).  Falls back to the raw body, then
    to the status line.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("detail"):
            return str(body["detail"])

    text = (response.text or "").strip()
    if text:
        return text[:500]
    return f"HTTP {response.status_code} {response.reason or ''}".strip()


def send_request(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    **kwargs: Any,
) -> requests.Response:
    """Send one request and fail loudly on anything but a 2xx response.

    Args:
        session: Session used for the call.
        method: HTTP method.
        url: Absolute URL.
        timeout: Seconds to wait for the provider.
        **kwargs: Passed through to :meth:`requests.Session.request`.

    Returns:
        The successful response.

    Raises:
        ProviderError: On timeout, connection failure or non-2xx status.
    """
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        raise ProviderError(f"Request to {url} timed out after {timeout:g}s") from e
    except requests.RequestException as e:
        raise ProviderError(f"Request to {url} failed: {e}") from e

    if not 200 <= response.status_code < 300:
        message = extract_error_message(response)
        logger.warning(f"{method} {url} returned {response.status_code}: {message}")
        raise ProviderError(message, status_code=response.status_code)

    return response


def response_json(response: requests.Response) -> dict:
    """Decode a JSON object body.

    Raises:
        ProviderError: If the body is not a JSON object.
    """
    try:
        body = response.json()
    except ValueError as e:
        raise ProviderError(f"Provider returned malformed JSON: {e}") from e
    if not isinstance(body, dict):
        raise ProviderError("Provider returned an unexpected response body")
    return body
