"""Identity service collaborators.

``FirebaseIdentityService`` talks to the Identity Toolkit REST API.  Custom
token sign-in does not return the user id directly, so it is followed by an
``accounts:lookup`` on the issued ID token.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx


class IdentityError(RuntimeError):
    """Raised when a sign-in attempt is rejected or malformed."""


@runtime_checkable
class IdentityService(Protocol):
    @property
    def available(self) -> bool: ...

    async def sign_in_with_token(self, token: str) -> str:
        """Exchange a bootstrap token for a user id."""
        ...

    async def sign_in_anonymously(self) -> str: ...


class UnavailableIdentityService:
    """Stand-in used when no identity service is configured."""

    @property
    def available(self) -> bool:
        return False

    async def sign_in_with_token(self, token: str) -> str:
        raise IdentityError("Identity service not configured")

    async def sign_in_anonymously(self) -> str:
        raise IdentityError("Identity service not configured")


class FirebaseIdentityService:
    def __init__(
        self,
        api_key: str,
        *,
        client: httpx.AsyncClient,
        base_url: str = "https://identitytoolkit.googleapis.com/v1",
    ) -> None:
        self._api_key = api_key
        self._client = client
        self._base_url = base_url.rstrip("/")

    @property
    def available(self) -> bool:
        return True

    async def sign_in_with_token(self, token: str) -> str:
        data = await self._post("signInWithCustomToken", {"token": token, "returnSecureToken": True})
        lookup = await self._post("lookup", {"idToken": _require(data, "idToken")})
        users = lookup.get("users") or []
        if not users:
            raise IdentityError("Token sign-in returned no user")
        return _require(users[0], "localId")

    async def sign_in_anonymously(self) -> str:
        data = await self._post("signUp", {"returnSecureToken": True})
        return _require(data, "localId")

    async def _post(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._client.post(
                f"{self._base_url}/accounts:{endpoint}",
                params={"key": self._api_key},
                json=body,
            )
        except httpx.HTTPError as exc:
            msg = f"Identity request {endpoint} failed: {exc}"
            raise IdentityError(msg) from exc
        if resp.is_error:
            msg = f"Identity request {endpoint} failed: {resp.status_code} {resp.text}"
            raise IdentityError(msg)
        return resp.json()


def _require(data: dict[str, Any], field: str) -> str:
    value = data.get(field)
    if not value:
        msg = f"Identity response missing '{field}'"
        raise IdentityError(msg)
    return str(value)
