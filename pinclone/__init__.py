"""Pinclone: a pin board backend over Supabase, plus its client-side state library."""

__version__ = "0.1.0"
