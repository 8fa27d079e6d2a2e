"""Gemini ``generateContent`` client used for survey narratives.

The client is built once at startup (see ``GeminiClient.from_env``) and handed
to the analytics pipeline. Every call is a single best-effort POST: service
problems come back as a failed :class:`GenerationResult`, never as an
exception.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Config
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT = 30.0
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 2048


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one generation call: ``text`` on success, ``error`` otherwise."""

    ok: bool
    text: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, text: str) -> "GenerationResult":
        return cls(ok=True, text=text)

    @classmethod
    def failure(cls, error: str) -> "GenerationResult":
        return cls(ok=False, error=error)


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key or ""
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_env(cls, **overrides: Any) -> "GeminiClient":
        """Build a client from ``GEMINI_*`` environment variables."""
        options: Dict[str, Any] = {
            "model": os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
            "base_url": os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL),
            "timeout": float(os.getenv("GEMINI_TIMEOUT", str(DEFAULT_TIMEOUT))),
            "temperature": float(os.getenv("GEMINI_TEMPERATURE", str(DEFAULT_TEMPERATURE))),
            "max_output_tokens": int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", str(DEFAULT_MAX_OUTPUT_TOKENS))),
        }
        options.update(overrides)
        return cls(os.getenv("GEMINI_API_KEY", ""), **options)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    def generate(self, prompt: str) -> GenerationResult:
        """Send ``prompt`` to Gemini once and return the generated text.

        Args:
            prompt (str): Full prompt text.

        Returns:
            GenerationResult: success with the text, or failure with a diagnostic
            message for a missing key, non-2xx status, network error or timeout,
            or a body without ``candidates[0].content.parts[0].text``.
        """
        if not self.configured:
            logger.warning("Gemini call skipped: GEMINI_API_KEY is not configured")
            return GenerationResult.failure("GEMINI_API_KEY is not configured")

        try:
            r = self._client.post(
                self.endpoint,
                params={"key": self.api_key},
                json=self.build_payload(prompt),
            )
            r.raise_for_status()
        except httpx.HTTPStatusError as err:
            status = err.response.status_code
            logger.warning(
                "Gemini API error: status=%s prompt_chars=%d body_chars=%d",
                status, len(prompt), len(err.response.text),
            )
            return GenerationResult.failure(f"Gemini API returned HTTP {status}")
        except httpx.TimeoutException as err:
            logger.warning("Gemini API timeout after prompt_chars=%d: %s", len(prompt), err)
            return GenerationResult.failure(f"Gemini API timed out: {err}")
        except httpx.RequestError as err:
            logger.warning("Gemini API request failed: %s", err)
            return GenerationResult.failure(f"Gemini API request failed: {err}")

        try:
            data = r.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning(
                "Unexpected Gemini response shape: status=%s body_chars=%d",
                r.status_code, len(r.text),
            )
            return GenerationResult.failure("Unexpected Gemini response: missing generated text")

        if not isinstance(text, str) or not text.strip():
            logger.warning("Gemini returned empty text: status=%s", r.status_code)
            return GenerationResult.failure("Gemini returned empty text")

        logger.info(
            "Gemini generateContent ok: model=%s prompt_chars=%d response_chars=%d",
            self.model, len(prompt), len(text),
        )
        return GenerationResult.success(text)

    def close(self) -> None:
        self._client.close()
