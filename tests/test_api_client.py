"""
Tests for the backend REST client.

All HTTP calls go through httpx.MockTransport - no network access.
Covers: auth flows and token handling, bearer headers, entry CRUD and
search, error mapping (AuthError / NotFoundError / ApiError / NetworkError).
"""

import json

import httpx
import pytest

from vaultsync.api.client import VaultApiClient
from vaultsync.core.errors import (
    DEFAULT_ERROR_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
)
from vaultsync.vault.models import EncryptedPasswordEntry

API_URL = "http://testserver/api"


def _client(handler, token=None):
    return VaultApiClient(API_URL, token=token, transport=httpx.MockTransport(handler))


def _static(status, payload=None, content=None):
    def handler(request):
        if content is not None:
            return httpx.Response(status, content=content)
        return httpx.Response(status, json=payload)
    return handler


class TestAuth:
    @pytest.mark.asyncio
    async def test_register_sets_token(self, backend, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            result = await api.register("a@example.com", "Sup3r$ecret!")
            assert api.token == result.token
            assert api.is_authenticated
            assert result.user.email == "a@example.com"
            assert result.user.salt == backend.users["a@example.com"]["salt"]

        body = json.loads(backend.requests[0].content)
        assert body == {"email": "a@example.com", "masterPassword": "Sup3r$ecret!"}

    @pytest.mark.asyncio
    async def test_duplicate_registration_is_auth_error(self, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            await api.register("a@example.com", "Sup3r$ecret!")
            with pytest.raises(AuthError) as exc_info:
                await api.register("a@example.com", "other-password")
        assert exc_info.value.message == "User already exists"

    @pytest.mark.asyncio
    async def test_bad_login_is_auth_error(self, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            await api.register("a@example.com", "Sup3r$ecret!")
            api.logout()
            with pytest.raises(AuthError) as exc_info:
                await api.login("a@example.com", "wrong")
        assert exc_info.value.message == "Invalid credentials"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_bearer_header_sent(self, backend, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            result = await api.register("a@example.com", "Sup3r$ecret!")
            me = await api.get_current_user()
        assert me.id == result.user.id
        assert backend.requests[-1].headers["Authorization"] == f"Bearer {result.token}"

    @pytest.mark.asyncio
    async def test_no_bearer_without_token(self, backend, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            with pytest.raises(AuthError) as exc_info:
                await api.list_passwords()
        assert exc_info.value.status_code == 401
        assert "Authorization" not in backend.requests[-1].headers

    @pytest.mark.asyncio
    async def test_delete_account_forgets_token(self, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            await api.register("a@example.com", "Sup3r$ecret!")
            await api.delete_account()
            assert api.token is None

    def test_logout_is_local(self):
        api = VaultApiClient(API_URL, token="t")
        api.logout()
        assert not api.is_authenticated


class TestPasswords:
    @pytest.mark.asyncio
    async def test_create_list_update_delete(self, backend, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            await api.register("a@example.com", "Sup3r$ecret!")

            created = await api.create_password(EncryptedPasswordEntry(
                id="", title="Example", username="u", encrypted_password="sealed-1",
                category="social",
            ))
            assert created.id
            assert created.encrypted_password == "sealed-1"

            listed = await api.list_passwords()
            assert [e.id for e in listed] == [created.id]

            updated = await api.update_password(created.id, {"title": "Renamed"})
            assert updated.title == "Renamed"
            assert updated.encrypted_password == "sealed-1"

            await api.delete_password(created.id)
            assert await api.list_passwords() == []

    @pytest.mark.asyncio
    async def test_search_encodes_query(self, backend, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            await api.register("a@example.com", "Sup3r$ecret!")
            await api.create_password(EncryptedPasswordEntry(
                id="", title="Bank & Co", username="u", encrypted_password="c",
            ))
            await api.create_password(EncryptedPasswordEntry(
                id="", title="Mail", username="u", encrypted_password="c",
            ))
            hits = await api.search_passwords("bank & co")

        assert [h.title for h in hits] == ["Bank & Co"]
        assert backend.requests[-1].url.params["q"] == "bank & co"

    @pytest.mark.asyncio
    async def test_update_rejects_plaintext(self, transport):
        async with VaultApiClient(API_URL, token="t", transport=transport) as api:
            with pytest.raises(ValueError):
                await api.update_password("id", {"password": "hunter2"})

    @pytest.mark.asyncio
    async def test_update_missing_entry_is_not_found(self, transport):
        async with VaultApiClient(API_URL, transport=transport) as api:
            await api.register("a@example.com", "Sup3r$ecret!")
            with pytest.raises(NotFoundError) as exc_info:
                await api.update_password("missing", {"title": "x"})
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Password entry not found"


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_server_error_message(self):
        async with _client(_static(500, {"message": "Server error"}), token="t") as api:
            with pytest.raises(ApiError) as exc_info:
                await api.list_passwords()
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Server error"
        assert not isinstance(exc_info.value, AuthError)

    @pytest.mark.asyncio
    async def test_missing_message_uses_default(self):
        async with _client(_static(502, content=b"<html>bad gateway</html>"), token="t") as api:
            with pytest.raises(ApiError) as exc_info:
                await api.list_passwords()
        assert exc_info.value.message == DEFAULT_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_validation_error_on_passwords_is_api_error(self):
        async with _client(_static(400, {"message": "Title is required"}), token="t") as api:
            with pytest.raises(ApiError) as exc_info:
                await api.create_password(EncryptedPasswordEntry(
                    id="", title="", username="u", encrypted_password="c",
                ))
        assert not isinstance(exc_info.value, AuthError)
        assert exc_info.value.message == "Title is required"

    @pytest.mark.asyncio
    async def test_connect_error_is_network_error(self, backend, transport):
        backend.fail_network = True
        async with VaultApiClient(API_URL, transport=transport) as api:
            with pytest.raises(NetworkError) as exc_info:
                await api.login("a@example.com", "pw")
        assert exc_info.value.message == NETWORK_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler, token="t") as api:
            with pytest.raises(NetworkError):
                await api.list_passwords()

    @pytest.mark.asyncio
    async def test_empty_success_body(self):
        async with _client(_static(204, content=b""), token="t") as api:
            await api.delete_password("any")
