"""
Database connections: Supabase client setup.

Tables used by the GPA feature:
  course_grades  one row per saved semester (courses stored as a JSON list)
  users          academic_stats JSON column, refreshed after every change
"""

from functools import lru_cache
from supabase import create_client, Client

from studenthub.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Get the Supabase client (singleton), using the anon key."""
    settings = get_settings()
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


@lru_cache
def get_supabase_admin_client() -> Client:
    """Get the Supabase admin client (service_role key, bypasses RLS).

    Only the bulk stats refresh needs it: it reads every student's semesters.
    """
    settings = get_settings()
    if not settings.SUPABASE_SERVICE_KEY:
        raise ValueError("SUPABASE_SERVICE_KEY not configured")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
