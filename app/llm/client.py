"""Gemini text-generation client.

Wraps the Generative Language REST API
(``POST /v1beta/models/{model}:generateContent``) with:

- **Configuration gate**: ``generate()`` raises ``LLMDisabledError`` when no
  ``GEMINI_API_KEY`` is configured.
- **Latency tracking**: wall-clock time is measured per request.
- **Error mapping**: transport failures surface as ``LLMTimeoutError`` or
  ``LLMConnectionError`` so routes can map them to HTTP status codes.

The client uses ``httpx`` for synchronous HTTP calls; routes that need it
from async code run it in a worker thread.
"""
from __future__ import annotations

import logging
import time

import httpx

from app.core.settings import get_settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Custom exceptions
# ---------------------------------------------------------------------------


class LLMDisabledError(RuntimeError):
    """Raised when no Gemini API key is configured."""


class LLMConnectionError(ConnectionError):
    """Raised when Gemini is unreachable or returns an unusable response."""


class LLMTimeoutError(TimeoutError):
    """Raised when the Gemini request exceeds the configured timeout."""


# ---------------------------------------------------------------------------
# GeminiClient
# ---------------------------------------------------------------------------


class GeminiClient:
    """Synchronous client for the Gemini REST API.

    Parameters
    ----------
    api_key:
        API key.  Defaults to ``settings.gemini_api_key``.
    base_url:
        API base URL.  Defaults to ``settings.gemini_url``.
    model:
        Model name (e.g. ``"gemini-1.5-flash"``).  Defaults to
        ``settings.gemini_model``.
    timeout_s:
        Request timeout in seconds.  Defaults to
        ``settings.gemini_timeout_s``.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout_s: int | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.base_url = (base_url or settings.gemini_url).rstrip("/")
        self.model = model or settings.gemini_model
        self.timeout_s = timeout_s if timeout_s is not None else settings.gemini_timeout_s
        self._last_latency_ms: int | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    # -- public API ---------------------------------------------------------

    def generate(self, prompt: str, system: str | None = None) -> str:
        """Send a prompt to Gemini and return the generated text.

        Raises
        ------
        LLMDisabledError
            If no API key is configured.
        LLMConnectionError
            If Gemini is unreachable, answers with an HTTP error, or returns
            no candidate text.
        LLMTimeoutError
            If the request exceeds the configured timeout.
        """
        if not self.enabled:
            raise LLMDisabledError("GEMINI_API_KEY is not configured")

        payload: dict = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system is not None:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        start = time.monotonic()
        try:
            response = httpx.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                json=payload,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout_s,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            self._last_latency_ms = int((time.monotonic() - start) * 1000)
            raise LLMTimeoutError(
                f"Gemini request timed out after {self.timeout_s}s"
            ) from exc
        except httpx.ConnectError as exc:
            self._last_latency_ms = int((time.monotonic() - start) * 1000)
            raise LLMConnectionError(
                f"Cannot connect to Gemini at {self.base_url}"
            ) from exc
        except httpx.HTTPError as exc:
            self._last_latency_ms = int((time.monotonic() - start) * 1000)
            raise LLMConnectionError(f"Gemini HTTP error: {exc}") from exc

        self._last_latency_ms = int((time.monotonic() - start) * 1000)
        text = _extract_text(response.json())
        if not text:
            raise LLMConnectionError("Gemini returned no candidate text")

        logger.info("Gemini generate model=%s latency_ms=%d", self.model, self._last_latency_ms)
        return text

    def is_available(self) -> bool:
        """Check whether Gemini is reachable with the configured key.

        Never raises an exception.
        """
        if not self.enabled:
            return False
        try:
            resp = httpx.get(
                f"{self.base_url}/models/{self.model}",
                headers={"x-goog-api-key": self.api_key},
                timeout=5,
            )
            return resp.status_code == 200
        except Exception:
            return False

    @property
    def last_latency_ms(self) -> int | None:
        """Wall-clock latency of the most recent ``generate()`` call (ms)."""
        return self._last_latency_ms


def _extract_text(data: dict) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)
