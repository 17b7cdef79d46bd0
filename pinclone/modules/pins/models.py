# Supabase tables: pins, profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

pins:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (not null, references profiles.id)
- image_url: text (not null)
- title: text (nullable)
- description: text (nullable)
- width: integer (not null, pixels)
- height: integer (not null, pixels)
- created_at: timestamp (default: now())
- updated_at: timestamp (maintained by trigger)

Every read joins the uploader summary through the user_id foreign key:
    select("*, profiles(username, avatar_url, full_name)")

Pins are created by their authenticated owner and are never updated or
deleted by this service.

Storage bucket "pins": public, objects keyed public/{user_id}/{ts}.{ext}
"""
