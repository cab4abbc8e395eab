# API Module - Backend REST Client
#
# Async httpx client for the auth and encrypted-entry endpoints.

from .client import VaultApiClient

__all__ = ["VaultApiClient"]
