"""Session cookies carrying the Supabase access and refresh tokens."""

from starlette.responses import Response

from pinclone.config import Settings

REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30


def set_session_cookies(response: Response, settings: Settings, access_token: str,
                        refresh_token: str, expires_in: int = None) -> None:
    common = {"httponly": True, "samesite": "lax", "secure": settings.cookie_secure, "path": "/"}
    response.set_cookie(settings.session_access_cookie, access_token, max_age=expires_in or 3600, **common)
    response.set_cookie(settings.session_refresh_cookie, refresh_token, max_age=REFRESH_COOKIE_MAX_AGE, **common)


def clear_session_cookies(response: Response, settings: Settings) -> None:
    for name in (settings.session_access_cookie, settings.session_refresh_cookie):
        response.delete_cookie(name, path="/", secure=settings.cookie_secure, httponly=True, samesite="lax")
