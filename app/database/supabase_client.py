from postgrest import SyncPostgrestClient
from postgrest.constants import DEFAULT_POSTGREST_CLIENT_HEADERS
from supabase import create_client, Client, ClientOptions
from app.config.settings import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Server-side only."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @staticmethod
    def create_session_client() -> Client:
        """Throwaway anon client for sign-up/sign-in; the shared client never holds a user session."""
        return create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(persist_session=False, auto_refresh_token=False),
        )

    @staticmethod
    def get_user_client(access_token: str) -> SyncPostgrestClient:
        """PostgREST client acting as the token's user, so auth.uid() and RLS apply in SQL."""
        client = SyncPostgrestClient(
            f"{settings.supabase_url}/rest/v1",
            headers={**DEFAULT_POSTGREST_CLIENT_HEADERS, "apikey": settings.supabase_key},
        )
        return client.auth(access_token)

    @classmethod
    def has_service_role(cls) -> bool:
        return bool(settings.supabase_service_role_key)

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()


def get_session_supabase() -> Client:
    return SupabaseClient.create_session_client()
