# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - Password and OAuth login, PKCE code exchange
# - JWT access tokens and refresh tokens
# - Password hashing and security

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (full_name goes to raw_user_meta_data,
  read by the handle_new_user trigger that inserts the profiles row)
- auth.sign_in_with_password() - Authenticate users
- auth.sign_in_with_oauth() - Build the provider authorization URL
- auth.exchange_code_for_session() - Finish the OAuth PKCE flow
- auth.refresh_session() - Trade a refresh token for a new session
- auth.get_user() - Get current user from JWT token

Sessions reach the browser as two HTTP-only cookies (access and refresh
token), see pinclone.core.cookies.
"""
