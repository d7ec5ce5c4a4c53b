"""Service-role Supabase client. Server-side only."""

from supabase import Client, create_client

from codepocket.config.settings import settings


def get_supabase_admin_client() -> Client:
    """Client authorised with the service-role key.

    Avatar storage uses it to write and delete objects under any user's
    folder of the avatars bucket, which the anon key cannot do.
    """
    key = settings.supabase_service_role_key
    if not key:
        raise ValueError("SUPABASE_SERVICE_ROLE_KEY is not set; avatar storage is unavailable")
    return create_client(settings.supabase_url, key)
