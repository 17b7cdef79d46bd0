# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- username: text (unique, not null, at least 3 characters)
- full_name: text (nullable)
- avatar_url: text (nullable)
- bio: text (nullable)
- website: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (maintained by trigger)

Rows are created by the handle_new_user trigger on auth.users insert, using
full_name from raw_user_meta_data. They are only updated by their owner and
never deleted by this service.

Storage bucket "avatars": public, objects keyed {user_id}/avatar-{ts}.{ext}
"""
