"""
Supabase client construction.

Clients are built explicitly from settings and handed to whoever needs them;
there is no process-wide client cache.
"""

from supabase import create_client, Client
from app.core.config import Settings


def create_supabase_client(settings: Settings) -> Client:
    """
    Create a Supabase client with the service role key (bypasses RLS).

    The ledger is written server-side only, so no anon-key client is needed.
    """
    if not settings.supabase_url:
        raise ValueError("SUPABASE_URL must be set when LEDGER_BACKEND=supabase")

    if not settings.supabase_service_role_key:
        raise ValueError("SUPABASE_SERVICE_ROLE_KEY must be set when LEDGER_BACKEND=supabase")

    return create_client(settings.supabase_url, settings.supabase_service_role_key)
