"""Client helpers for interacting with a vision-capable LLM."""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from json import JSONDecodeError
from typing import Any, Optional

from httpx import RequestError, TimeoutException
from openai import OpenAI

from dakino_backend.config import (
    DEFAULT_LLM_BASE_URL,
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_TEMPERATURE,
    DEFAULT_TICKET_PROMPT,
)

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX = "data:"


@dataclass
class VisionLLMSettings:
    """Configuration required to talk to the vision model."""

    api_key: str
    model: str = DEFAULT_LLM_MODEL
    base_url: Optional[str] = DEFAULT_LLM_BASE_URL
    ticket_prompt: str = DEFAULT_TICKET_PROMPT
    temperature: float = DEFAULT_LLM_TEMPERATURE
    max_tokens: int = DEFAULT_LLM_MAX_TOKENS
    max_retries: int = 2


@dataclass(slots=True)
class VisionLLMResult:
    """Container for the raw and parsed outputs from the vision model."""

    raw_text: str
    parsed_json: Any | None


def build_image_data_uri(
    *,
    image_bytes: bytes | None = None,
    image_base64: str | None = None,
    mime_type: str | None = None,
) -> str:
    """Return a ``data:`` URI for the image, accepting raw bytes or base64 text."""

    mime = (mime_type or "image/jpeg").strip() or "image/jpeg"

    if image_bytes:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        return f"data:{mime};base64,{encoded}"

    candidate = (image_base64 or "").strip()
    if not candidate:
        raise ValueError("image is empty")
    if candidate.startswith(_DATA_URI_PREFIX):
        return candidate
    return f"data:{mime};base64,{candidate}"


class VisionLLMClient:
    """Thin wrapper around an OpenAI-compatible chat API for ticket scans."""

    def __init__(self, settings: VisionLLMSettings, client: OpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or OpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url or None,
            max_retries=settings.max_retries,
        )

    @property
    def model(self) -> str:
        return self._settings.model

    def extract_ticket(
        self,
        *,
        image_bytes: bytes | None = None,
        image_base64: str | None = None,
        mime_type: str | None = None,
        prompt: str | None = None,
    ) -> VisionLLMResult:
        """Send the ticket image and extraction prompt to the configured LLM."""
        data_uri = build_image_data_uri(
            image_bytes=image_bytes,
            image_base64=image_base64,
            mime_type=mime_type,
        )

        user_text = (prompt or "").strip() or self._settings.ticket_prompt
        if not user_text:
            raise ValueError(
                "prompt is required when DAKINO_LLM_TICKET_PROMPT is empty"
            )

        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": user_text},
                    {"type": "image_url", "image_url": {"url": data_uri}},
                ],
            }
        ]

        try:
            response = self._client.chat.completions.create(
                model=self._settings.model,
                messages=messages,
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
            )
        except TimeoutException as e:
            logger.error("vision LLM / HTTP timeout: %r", e)
            raise
        except RequestError as e:
            logger.error("vision LLM / HTTP network error: %r", e)
            raise
        except Exception:
            logger.exception("vision LLM response error")
            raise

        output_text = ""
        if response.choices:
            output_text = response.choices[0].message.content or ""
        return VisionLLMResult(
            raw_text=output_text,
            parsed_json=self._attempt_json_parse(output_text),
        )

    @staticmethod
    def _attempt_json_parse(text: str) -> Any | None:
        """Try to convert the LLM's text output into JSON."""
        candidate = (text or "").strip()
        if not candidate:
            return None

        start = candidate.find("{")
        end = candidate.rfind("}")
        if start == -1 or end == -1 or end < start:
            return None
        candidate = candidate[start : end + 1]

        try:
            return json.loads(candidate)
        except JSONDecodeError:
            logger.debug("LLM output was not valid JSON", exc_info=True)
            return None


def init_vision_llm_client(settings: VisionLLMSettings) -> VisionLLMClient:
    """Create a ``VisionLLMClient`` instance from the provided settings."""

    return VisionLLMClient(settings)
