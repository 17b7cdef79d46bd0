import logging

from fastapi import Request
from supabase import create_client, Client, ClientOptions

from pinclone.config import Settings
from pinclone.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _require_credentials(settings: Settings) -> None:
    if not settings.supabase_url or not settings.supabase_key:
        raise ConfigurationError(
            "Supabase URL or key is missing. Set SUPABASE_URL and SUPABASE_KEY."
        )


def create_supabase(settings: Settings) -> Client:
    """Build the store client. Missing credentials are fatal, not retryable."""
    _require_credentials(settings)
    client = create_client(settings.supabase_url, settings.supabase_key)
    logger.info("Supabase client created for %s", settings.supabase_url)
    return client


def create_user_supabase(settings: Settings, access_token: str) -> Client:
    """Client acting as the signed-in user.

    Table and storage requests carry the user's JWT, so row-level security
    policies see ``auth.uid()`` instead of the anon role.
    """
    _require_credentials(settings)
    options = ClientOptions(
        headers={"Authorization": f"Bearer {access_token}"},
        auto_refresh_token=False,
        persist_session=False,
    )
    return create_client(settings.supabase_url, settings.supabase_key, options=options)


def close_supabase(client: Client) -> None:
    """Release the client's HTTP session."""
    try:
        client.postgrest.session.close()
    except Exception as e:
        logger.warning("Supabase client close failed: %s", e)


def get_supabase(request: Request) -> Client:
    """FastAPI dependency: the client built during application startup."""
    client = getattr(request.app.state, "supabase", None)
    if client is None:
        raise ConfigurationError("Supabase client was not initialised at startup")
    return client
