# API: Backend REST Client
#
# Async client for the password-manager backend.
#
#   POST   /auth/register        {email, masterPassword} -> {token, user}
#   POST   /auth/login           {email, masterPassword} -> {token, user}
#   GET    /auth/me              -> {id, email, salt}
#   DELETE /auth/account         (cascades to every entry of the user)
#   GET    /passwords            -> [EncryptedPasswordEntry]
#   POST   /passwords            -> EncryptedPasswordEntry
#   PUT    /passwords/{id}       -> EncryptedPasswordEntry
#   DELETE /passwords/{id}
#   GET    /passwords/search?q=  -> [EncryptedPasswordEntry]
#
# Error bodies carry a ``message`` field. Responses are mapped onto the
# vaultsync error taxonomy; there is no automatic retry.
#
# This layer only ever sees EncryptedPasswordEntry: sealing happens in
# vault.session before anything reaches here.

import logging
from typing import Any, Dict, List, Optional

import httpx

from .. import __version__
from ..core.errors import (
    DEFAULT_ERROR_MESSAGE,
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
)
from ..vault.models import AuthResult, EncryptedPasswordEntry, UserProfile

logger = logging.getLogger(__name__)

# Statuses on /auth/* that mean "credentials rejected"
AUTH_FAILURE_STATUSES = {400, 401, 403, 409}


class VaultApiClient:
    """Async REST client for auth and encrypted-entry endpoints.

    Usage::

        async with VaultApiClient("https://vault.example.com/api") as api:
            auth = await api.login("me@example.com", master_password)
            records = await api.list_passwords()

    Args:
        base_url: Backend base URL (e.g. ``http://localhost:5000/api``).
        token: Bearer token restored from durable storage, if any.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "VaultApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Token
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _build_headers(self) -> Dict[str, str]:
        """Build HTTP headers, including the bearer token if present."""
        headers: Dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": f"vaultsync/{__version__}",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON payload.

        Raises:
            NetworkError: connectivity failure or timeout
            AuthError: 401 anywhere, or a credential failure on /auth/*
            NotFoundError: 404
            ApiError: any other non-2xx status
        """
        try:
            resp = await self._client.request(
                method,
                endpoint,
                headers=self._build_headers(),
                json=json,
                params=params,
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, endpoint, exc)
            raise NetworkError()

        payload = self._decode(resp)

        if resp.is_success:
            return payload

        message = DEFAULT_ERROR_MESSAGE
        if isinstance(payload, dict) and payload.get("message"):
            message = payload["message"]

        logger.info("%s %s -> %d (%s)", method, endpoint, resp.status_code, message)

        if resp.status_code == 401 or (
            endpoint.startswith("/auth/")
            and resp.status_code in AUTH_FAILURE_STATUSES
        ):
            raise AuthError(message, status_code=resp.status_code)
        if resp.status_code == 404:
            raise NotFoundError(message, resp.status_code)
        raise ApiError(message, resp.status_code)

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Auth endpoints
    # ------------------------------------------------------------------

    async def register(self, email: str, master_password: str) -> AuthResult:
        """Create an account; the response carries the new account salt."""
        data = await self._request(
            "POST",
            "/auth/register",
            json={"email": email, "masterPassword": master_password},
        )
        result = AuthResult.from_api(data)
        self.set_token(result.token)
        return result

    async def login(self, email: str, master_password: str) -> AuthResult:
        data = await self._request(
            "POST",
            "/auth/login",
            json={"email": email, "masterPassword": master_password},
        )
        result = AuthResult.from_api(data)
        self.set_token(result.token)
        return result

    async def get_current_user(self) -> UserProfile:
        data = await self._request("GET", "/auth/me")
        return UserProfile.from_api(data)

    async def delete_account(self) -> None:
        """Delete the account and, server-side, all of its entries."""
        await self._request("DELETE", "/auth/account")
        self.set_token(None)

    def logout(self) -> None:
        """Forget the token locally. The backend keeps no session to end."""
        self.set_token(None)

    # ------------------------------------------------------------------
    # Password endpoints
    # ------------------------------------------------------------------

    async def list_passwords(self) -> List[EncryptedPasswordEntry]:
        data = await self._request("GET", "/passwords")
        return [EncryptedPasswordEntry.from_api(item) for item in data or []]

    async def create_password(
        self, entry: EncryptedPasswordEntry
    ) -> EncryptedPasswordEntry:
        data = await self._request(
            "POST", "/passwords", json=entry.to_create_payload()
        )
        return EncryptedPasswordEntry.from_api(data)

    async def update_password(
        self, entry_id: str, changes: Dict[str, Any]
    ) -> EncryptedPasswordEntry:
        """PUT a partial update. ``changes`` uses wire keys (encryptedPassword, ...)."""
        if "password" in changes:
            raise ValueError("Plaintext password must be sealed before update")
        data = await self._request("PUT", f"/passwords/{entry_id}", json=changes)
        return EncryptedPasswordEntry.from_api(data)

    async def delete_password(self, entry_id: str) -> None:
        await self._request("DELETE", f"/passwords/{entry_id}")

    async def search_passwords(self, query: str) -> List[EncryptedPasswordEntry]:
        data = await self._request(
            "GET", "/passwords/search", params={"q": query}
        )
        return [EncryptedPasswordEntry.from_api(item) for item in data or []]
