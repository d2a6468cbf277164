from savanna.integrations.supabase.client import SupabaseClient
from savanna.integrations.supabase.errors import SupabaseError

__all__ = ["SupabaseClient", "SupabaseError"]
