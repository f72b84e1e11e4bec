"""Inference service collaborators.

Single operation: ``complete(prompt, system) -> text``.  Any non-success
transport status raises ``InferenceError``; retrying is the orchestrator's
job, not the service's.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx

NO_CONTENT_TEXT = "Could not generate content."


class InferenceError(RuntimeError):
    """Raised when an inference call fails."""


class InferenceUnavailableError(InferenceError):
    """Raised when no inference service is configured."""


@runtime_checkable
class InferenceService(Protocol):
    @property
    def available(self) -> bool: ...

    async def complete(self, prompt: str, system: str) -> str: ...


class UnavailableInferenceService:
    @property
    def available(self) -> bool:
        return False

    async def complete(self, prompt: str, system: str) -> str:
        raise InferenceUnavailableError("Inference service not configured")


class GeminiInferenceService:
    """Gemini ``generateContent`` over REST."""

    def __init__(
        self,
        api_key: str,
        *,
        client: httpx.AsyncClient,
        model: str = "gemini-2.5-flash-preview-09-2025",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._client = client
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def available(self) -> bool:
        return True

    async def complete(self, prompt: str, system: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "systemInstruction": {"parts": [{"text": system}]},
        }
        try:
            resp = await self._client.post(
                f"{self._base_url}/models/{self._model}:generateContent",
                params={"key": self._api_key},
                json=payload,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            msg = f"Inference request failed: {exc}"
            raise InferenceError(msg) from exc

        if resp.is_error:
            msg = f"API returned status {resp.status_code}"
            raise InferenceError(msg)
        return _extract_text(resp.json())


def _extract_text(data: dict[str, Any]) -> str:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return NO_CONTENT_TEXT
    return text or NO_CONTENT_TEXT
