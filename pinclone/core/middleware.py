"""
ASGI middlewares: security headers and the session cookie refresh filter.
"""

import logging
import re

from fastapi import HTTPException
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import Response

from pinclone.core.cookies import clear_session_cookies, set_session_cookies
from pinclone.modules.auth.service import AuthService

logger = logging.getLogger(__name__)

STATIC_PATH_PATTERN = re.compile(
    r"^/(_next/static|_next/image|static)/|^/favicon\.ico$|\.(svg|png|jpe?g|gif|webp)$",
    re.IGNORECASE,
)


def is_static_path(path: str) -> bool:
    return bool(STATIC_PATH_PATTERN.search(path))


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


class SessionCookieMiddleware:
    """Resolve the cookie session on every non-static request and refresh it when expired.

    Puts the user (or None) on ``request.state.user`` and the usable access
    token on ``request.state.access_token``. Without store configuration the
    request passes through untouched.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or is_static_path(scope.get("path", "")):
            await self.app(scope, receive, send)
            return

        state = scope["app"].state
        supabase = getattr(state, "supabase", None)
        settings = getattr(state, "settings", None)
        if supabase is None or settings is None or not settings.is_supabase_configured:
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        access_token = request.cookies.get(settings.session_access_cookie)
        refresh_token = request.cookies.get(settings.session_refresh_cookie)
        auth_service = AuthService(supabase, settings)

        user = None
        cookie_response = None
        if access_token:
            try:
                user = await run_in_threadpool(auth_service.get_current_user, access_token)
            except HTTPException:
                user = None
        if user is None and refresh_token:
            tokens = await run_in_threadpool(auth_service.refresh_session, refresh_token)
            cookie_response = Response()
            if tokens is not None:
                access_token = tokens.access_token
                set_session_cookies(cookie_response, settings, tokens.access_token,
                                    tokens.refresh_token, tokens.expires_in)
                try:
                    user = await run_in_threadpool(auth_service.get_current_user, access_token)
                except HTTPException as e:
                    logger.warning("Refreshed session was rejected: %s", e.detail)
            else:
                clear_session_cookies(cookie_response, settings)
                access_token = None

        scope.setdefault("state", {})
        scope["state"]["user"] = user
        scope["state"]["access_token"] = access_token if user is not None else None

        if cookie_response is None:
            await self.app(scope, receive, send)
            return

        cookie_headers = [
            (k, v) for k, v in cookie_response.raw_headers if k.lower() == b"set-cookie"
        ]
        cookie_names = (settings.session_access_cookie.encode(), settings.session_refresh_cookie.encode())

        async def send_with_cookies(message):
            if message["type"] == "http.response.start":
                headers = message.setdefault("headers", [])
                # Cookies written by the route itself (login, logout) take precedence
                already_set = any(
                    k.lower() == b"set-cookie" and v.startswith(cookie_names)
                    for k, v in headers
                )
                if not already_set:
                    headers.extend(cookie_headers)
            await send(message)

        await self.app(scope, receive, send_with_cookies)
