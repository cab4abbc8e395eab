"""
Shared pytest fixtures for the vaultsync test suite.

Autouse fixtures below isolate tests from the live environment:
  - Audit logger -> temp directory  (keeps ./audit_logs clean)
  - Settings     -> temp data dir, KDF at its 100k floor, auto-lock off

``FakeBackend`` is an in-memory stand-in for the REST backend, served to
the client through ``httpx.MockTransport``. It stores exactly what a real
backend would see, so tests can assert that no plaintext ever arrives.
"""

import json
import secrets
from datetime import datetime, timezone
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio

from vaultsync.core.config import MIN_KDF_ITERATIONS, Settings, set_settings
from vaultsync.vault.encryption import generate_salt
from vaultsync.vault.session import VaultSession

API_URL = "http://testserver/api"


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Redirect the global AuditLogger to a temp directory for every test."""
    import vaultsync.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    orig_init = audit_mod.AuditLogger.__init__

    def patched_init(self, log_dir=None):
        orig_init(self, log_dir=tmp_path / "audit_logs")

    monkeypatch.setattr(audit_mod.AuditLogger, "__init__", patched_init)

    yield

    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def settings(tmp_path):
    """Process settings pointing at temp dirs, with the cheapest allowed KDF."""
    s = Settings(
        api_url=API_URL,
        timeout=5.0,
        auto_lock_seconds=0,
        kdf_iterations=MIN_KDF_ITERATIONS,
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "audit_logs",
    )
    set_settings(s)
    yield s
    set_settings(None)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class FakeBackend:
    """In-memory auth + passwords API mirroring the real routes."""

    def __init__(self):
        self.users = {}       # email -> {id, email, salt, masterPassword}
        self.tokens = {}      # token -> email
        self.entries = {}     # entry id -> record dict (wire form)
        self.requests = []    # every httpx.Request seen
        self.fail_network = False

    # ── helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _json(status, payload=None):
        return httpx.Response(status, json=payload)

    def _error(self, status, message):
        return self._json(status, {"message": message})

    def _auth_payload(self, user):
        token = secrets.token_hex(16)
        self.tokens[token] = user["email"]
        return {
            "token": token,
            "user": {"id": user["id"], "email": user["email"], "salt": user["salt"]},
        }

    def _current_user(self, request):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        email = self.tokens.get(header[len("Bearer "):])
        return self.users.get(email)

    def records_for(self, user_id):
        return [e for e in self.entries.values() if e["userId"] == user_id]

    # ── router ───────────────────────────────────────────────────────

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_network:
            raise httpx.ConnectError("connection refused", request=request)

        path = unquote(request.url.path)
        if path.startswith("/api"):
            path = path[len("/api"):]
        body = json.loads(request.content) if request.content else {}
        method = request.method

        if path == "/auth/register" and method == "POST":
            return self._register(body)
        if path == "/auth/login" and method == "POST":
            return self._login(body)

        user = self._current_user(request)
        if user is None:
            return self._error(401, "No token, authorization denied")

        if path == "/auth/me" and method == "GET":
            return self._json(200, {"id": user["id"], "email": user["email"], "salt": user["salt"]})
        if path == "/auth/account" and method == "DELETE":
            for entry in self.records_for(user["id"]):
                del self.entries[entry["_id"]]
            del self.users[user["email"]]
            return self._json(200, {"message": "Account deleted"})
        if path == "/passwords" and method == "GET":
            return self._json(200, self.records_for(user["id"]))
        if path == "/passwords" and method == "POST":
            return self._create(user, body)
        if path == "/passwords/search" and method == "GET":
            q = request.url.params.get("q", "").lower()
            hits = [
                e for e in self.records_for(user["id"])
                if q in e["title"].lower()
                or q in e["username"].lower()
                or q in (e.get("url") or "").lower()
            ]
            return self._json(200, hits)
        if path.startswith("/passwords/"):
            entry_id = path[len("/passwords/"):]
            entry = self.entries.get(entry_id)
            if entry is None or entry["userId"] != user["id"]:
                return self._error(404, "Password entry not found")
            if method == "PUT":
                entry.update(body)
                entry["updatedAt"] = _now()
                return self._json(200, entry)
            if method == "DELETE":
                del self.entries[entry_id]
                return self._json(200, {"message": "Password entry deleted"})

        return self._error(404, "Route not found")

    def _register(self, body):
        email = body.get("email")
        if email in self.users:
            return self._error(400, "User already exists")
        user = {
            "id": secrets.token_hex(12),
            "email": email,
            "salt": generate_salt(),
            "masterPassword": body.get("masterPassword"),
        }
        self.users[email] = user
        return self._json(201, self._auth_payload(user))

    def _login(self, body):
        user = self.users.get(body.get("email"))
        if user is None or user["masterPassword"] != body.get("masterPassword"):
            return self._error(400, "Invalid credentials")
        return self._json(200, self._auth_payload(user))

    def _create(self, user, body):
        if "password" in body:
            return self._error(400, "Plaintext password rejected")
        now = _now()
        entry = {
            "_id": secrets.token_hex(12),
            "userId": user["id"],
            "title": body.get("title", ""),
            "username": body.get("username", ""),
            "encryptedPassword": body.get("encryptedPassword", ""),
            "url": body.get("url", ""),
            "notes": body.get("notes", ""),
            "category": body.get("category", "other"),
            "createdAt": now,
            "updatedAt": now,
        }
        self.entries[entry["_id"]] = entry
        return self._json(201, entry)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def transport(backend):
    return httpx.MockTransport(backend.handle)


@pytest_asyncio.fixture
async def session(settings, transport):
    """VaultSession talking to the in-memory backend."""
    s = VaultSession.from_settings(settings, transport=transport)
    yield s
    await s.aclose()
