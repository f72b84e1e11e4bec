"""Tests for the HTTP-backed identity and inference services."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from cipherstudio.engine.services.identity import FirebaseIdentityService, IdentityError
from cipherstudio.engine.services.inference import (
    NO_CONTENT_TEXT,
    GeminiInferenceService,
    InferenceError,
    InferenceUnavailableError,
    UnavailableInferenceService,
)

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# -- Identity ------------------------------------------------------------------


async def test_token_sign_in_looks_up_user() -> None:
    seen: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append((request.url.path, body))
        assert request.url.params["key"] == "api-key"
        if request.url.path.endswith("accounts:signInWithCustomToken"):
            return httpx.Response(200, json={"idToken": "id-token"})
        return httpx.Response(200, json={"users": [{"localId": "user-42"}]})

    async with _client(handler) as client:
        service = FirebaseIdentityService("api-key", client=client)
        assert await service.sign_in_with_token("custom") == "user-42"

    assert [path.rsplit("/", 1)[-1] for path, _ in seen] == ["accounts:signInWithCustomToken", "accounts:lookup"]
    assert seen[0][1] == {"token": "custom", "returnSecureToken": True}
    assert seen[1][1] == {"idToken": "id-token"}


async def test_anonymous_sign_in() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("accounts:signUp")
        return httpx.Response(200, json={"localId": "anon-7"})

    async with _client(handler) as client:
        service = FirebaseIdentityService("api-key", client=client)
        assert await service.sign_in_anonymously() == "anon-7"


async def test_identity_error_status() -> None:
    async with _client(lambda request: httpx.Response(400, text="INVALID_CUSTOM_TOKEN")) as client:
        service = FirebaseIdentityService("api-key", client=client)
        with pytest.raises(IdentityError, match="INVALID_CUSTOM_TOKEN"):
            await service.sign_in_with_token("bad")


async def test_identity_missing_user() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("accounts:signInWithCustomToken"):
            return httpx.Response(200, json={"idToken": "id-token"})
        return httpx.Response(200, json={"users": []})

    async with _client(handler) as client:
        service = FirebaseIdentityService("api-key", client=client)
        with pytest.raises(IdentityError):
            await service.sign_in_with_token("custom")


async def test_identity_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async with _client(handler) as client:
        service = FirebaseIdentityService("api-key", client=client)
        with pytest.raises(IdentityError, match="signUp"):
            await service.sign_in_anonymously()


# -- Inference -----------------------------------------------------------------


async def test_gemini_payload_and_text() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "hello"}]}}]})

    async with _client(handler) as client:
        service = GeminiInferenceService("gem-key", client=client, model="test-model")
        assert await service.complete("the prompt", "the system") == "hello"

    request = captured[0]
    assert request.url.path.endswith("/models/test-model:generateContent")
    assert request.url.params["key"] == "gem-key"
    assert json.loads(request.content) == {
        "contents": [{"parts": [{"text": "the prompt"}]}],
        "systemInstruction": {"parts": [{"text": "the system"}]},
    }


async def test_gemini_error_status() -> None:
    async with _client(lambda request: httpx.Response(500)) as client:
        service = GeminiInferenceService("gem-key", client=client)
        with pytest.raises(InferenceError, match="API returned status 500"):
            await service.complete("p", "s")


@pytest.mark.parametrize("body", [{}, {"candidates": []}, {"candidates": [{"content": {"parts": [{"text": ""}]}}]}])
async def test_gemini_missing_text(body: dict) -> None:
    async with _client(lambda request: httpx.Response(200, json=body)) as client:
        service = GeminiInferenceService("gem-key", client=client)
        assert await service.complete("p", "s") == NO_CONTENT_TEXT


async def test_unavailable_inference() -> None:
    service = UnavailableInferenceService()
    assert not service.available
    with pytest.raises(InferenceUnavailableError):
        await service.complete("p", "s")
