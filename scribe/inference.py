"""HTTP client for the text-generation service (``/api/generate``)."""

from __future__ import annotations

import logging
from typing import Any

import requests

from scribe.config import Settings

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120  # seconds


class InferenceError(Exception):
    """Raised when the generation service fails or returns an unusable body."""


class InferenceClient:
    """Synchronous, non-streaming client for a generate endpoint.

    Parameters
    ----------
    endpoint:
        Base URL of the service, e.g. ``http://localhost:11434``.
    model:
        Model identifier sent with every request.
    timeout:
        Per-request timeout in seconds.
    """

    def __init__(self, endpoint: str, model: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> InferenceClient:
        return cls(
            settings.inference_endpoint,
            settings.model_id,
            timeout=settings.inference_timeout,
        )

    @property
    def url(self) -> str:
        return f"{self.endpoint}/api/generate"

    def generate(self, prompt: str, options: dict[str, Any] | None = None) -> str:
        """Send *prompt* and return the generated text.

        Raises:
            InferenceError: on transport errors, timeouts, HTTP errors,
                non-JSON bodies or a missing ``response`` field.
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
        }
        if options:
            payload["options"] = options

        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            log.warning("Inference request to %s failed: %s", self.url, exc)
            raise InferenceError(f"request failed: {exc}") from exc
        except ValueError as exc:
            log.warning("Inference response was not JSON: %s", exc)
            raise InferenceError("response body is not JSON") from exc

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise InferenceError("response body has no 'response' text")
        return text
