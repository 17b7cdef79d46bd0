from pinclone.database.supabase_client import close_supabase, create_supabase, create_user_supabase, get_supabase

__all__ = ["close_supabase", "create_supabase", "create_user_supabase", "get_supabase"]
