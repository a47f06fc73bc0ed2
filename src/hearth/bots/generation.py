"""
Text Generation

Bots talk to the generative model through the TextGenerator interface:
one request in, one block of text out. GeminiGenerator implements it over
the Gemini ``generateContent`` REST endpoint with httpx.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from hearth.core.constants import GENERATION_OUTPUT_TOKENS_MAX, GENERATION_TIMEOUT_SECS_DEFAULT
from hearth.core.errors import UpstreamGenerationError

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass
class ChatTurn:
    """One prior message in a conversation."""

    role: str  # "user" or "model"
    text: str

    @classmethod
    def from_client(cls, item: dict[str, Any]) -> "ChatTurn":
        """Accept the chat client's history shapes: {role, text} or {role, parts: [text]}."""
        text = item.get("text")
        if text is None:
            parts = item.get("parts") or []
            first = parts[0] if parts else ""
            text = first.get("text", "") if isinstance(first, dict) else str(first)
        role = "user" if item.get("role") == "user" else "model"
        return cls(role=role, text=text or "")


@dataclass
class GenerationRequest:
    """Everything needed for one generation call."""

    system_instruction: str
    message: str
    history: list[ChatTurn] = field(default_factory=list)
    temperature: float = 0.7
    max_output_tokens: int = GENERATION_OUTPUT_TOKENS_MAX
    response_mime_type: str = "text/plain"
    # extra Gemini parts (inline images) sent after the message text
    attachments: list[dict[str, Any]] = field(default_factory=list)


class TextGenerator(ABC):
    """Opaque text-completion service."""

    async def connect(self) -> None:
        """Acquire resources. Default: nothing to do."""

    async def disconnect(self) -> None:
        """Release resources. Default: nothing to do."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> str:
        """
        Generate a reply.

        Raises:
            UpstreamGenerationError: If the service fails or returns no text
        """
        pass


class GeminiGenerator(TextGenerator):
    """
    Gemini REST client.

    Uses the primary model and retries once with the fallback model when the
    primary answers 404 (model retired or unavailable in the region).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        fallback_model: str | None = "gemini-2.0-pro",
        timeout: float = GENERATION_TIMEOUT_SECS_DEFAULT,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._fallback_model = fallback_model
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Initialize the HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=GEMINI_BASE_URL,
            headers={"x-goog-api-key": self._api_key},
            timeout=self._timeout,
        )

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def generate(self, request: GenerationRequest) -> str:
        if not self._api_key:
            raise UpstreamGenerationError("Gemini API key not configured")
        if not self._client:
            raise RuntimeError("Not connected")

        payload = self._payload(request)
        try:
            response = await self._post(self._model, payload)
            if response.status_code == 404 and self._fallback_model:
                logger.warning(f"{self._model} not found, using {self._fallback_model}")
                response = await self._post(self._fallback_model, payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise UpstreamGenerationError(str(e)) from e
        except ValueError as e:
            raise UpstreamGenerationError(f"Response body is not JSON: {e}") from e

        return _candidate_text(data)

    async def _post(self, model: str, payload: dict[str, Any]) -> httpx.Response:
        return await self._client.post(f"/models/{model}:generateContent", json=payload)

    @staticmethod
    def _payload(request: GenerationRequest) -> dict[str, Any]:
        contents = [
            {"role": turn.role, "parts": [{"text": turn.text}]}
            for turn in request.history
        ]
        contents.append({"role": "user", "parts": [{"text": request.message}, *request.attachments]})
        return {
            "systemInstruction": {"parts": [{"text": request.system_instruction}]},
            "contents": contents,
            "generationConfig": {
                "temperature": request.temperature,
                "topP": 0.95,
                "topK": 40,
                "maxOutputTokens": request.max_output_tokens,
                "responseMimeType": request.response_mime_type,
            },
        }


def _candidate_text(data: dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = data.get("candidates") or []
    if not candidates:
        raise UpstreamGenerationError("Generation returned no candidates")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts)
    if not text:
        raise UpstreamGenerationError("Generation returned empty text")
    return text
