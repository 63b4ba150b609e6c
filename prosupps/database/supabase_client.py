from typing import Optional

from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import create_client, Client, ClientOptions
from prosupps.config import settings

security = HTTPBearer(auto_error=False)


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None
    _request_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Use only after the caller's role was checked."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def for_request(cls, token: Optional[str] = None) -> Client:
        """
        Short-lived anon client for one request. Sessions and row queries stay
        on this client, so nothing one user signs in with reaches another user.
        Queries run under `token` when the caller sent one.
        """
        if cls._request_client is not None:
            return cls._request_client
        options = ClientOptions(persist_session=False, auto_refresh_token=False)
        if token:
            options.headers["Authorization"] = f"Bearer {token}"
        return create_client(settings.supabase_url, settings.supabase_key, options=options)

    @classmethod
    def use_clients(cls, client: Client, service_client: Client = None):
        """Install pre-built clients (tests, scripts)."""
        cls._client = client
        cls._service_client = service_client
        cls._request_client = client

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None
        cls._request_client = None


def get_supabase(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> Client:
    return SupabaseClient.for_request(credentials.credentials if credentials else None)


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()
