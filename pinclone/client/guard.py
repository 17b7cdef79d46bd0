"""
Route guard: keeps the current location consistent with the auth state.

The navigator is whatever drives the UI. It must expose ``location`` (path
plus query string) and ``push(url)``, ``replace(url)`` and ``refresh()``.
"""

import logging
import re
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

from pinclone.client.notifications import DESTRUCTIVE, Notifier
from pinclone.client.session import AuthEvent, SessionStore
from pinclone.core.navigation import HOME_PATH, LOGIN_PATH, SIGNUP_PATH, login_url, safe_next_path, unhyphenate

logger = logging.getLogger(__name__)

AUTH_PATHS = frozenset({LOGIN_PATH, SIGNUP_PATH})
PUBLIC_PATHS = frozenset({HOME_PATH, "/search", "/not-found"})
PUBLIC_PATTERNS = (
    re.compile(r"^/pin/[^/]+/?$"),
    re.compile(r"^/u/[^/]+/?$"),
)
# Events after which the current view re-reads its server data
REFRESH_EVENTS = frozenset({
    AuthEvent.SIGNED_IN,
    AuthEvent.SIGNED_OUT,
    AuthEvent.USER_UPDATED,
    AuthEvent.TOKEN_REFRESHED,
})
CONFIRMATION_PENDING = "confirmation_pending"


class GuardState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


def is_auth_path(path: str) -> bool:
    return path in AUTH_PATHS


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or any(p.match(path) for p in PUBLIC_PATTERNS)


def redirect_target(state: GuardState, location: str) -> Optional[str]:
    """Where the navigation policy sends ``location`` for ``state``; None to stay."""
    parts = urlsplit(location)
    path = parts.path or HOME_PATH
    if state == GuardState.ANONYMOUS:
        if not is_public_path(path) and not is_auth_path(path):
            return login_url(next_path=location)
    elif state == GuardState.AUTHENTICATED:
        if is_auth_path(path):
            return safe_next_path(dict(parse_qsl(parts.query)).get("next"))
    return None


class RouteGuard:
    def __init__(self, store: SessionStore, navigator, notifier: Optional[Notifier] = None):
        self.store = store
        self.navigator = navigator
        self.notifier = notifier
        self.state = GuardState.LOADING
        self.session: Optional[Any] = None
        self._mounted = False

    @asynccontextmanager
    async def mounted(self) -> AsyncIterator["RouteGuard"]:
        """Listen for session changes for the lifetime of the block."""
        with self.store.subscribed(self.handle_event):
            self._mounted = True
            try:
                session = await self.store.get_current_session()
                # A change event may already have resolved the state
                if self._mounted and self.state == GuardState.LOADING:
                    self._transition(session, event=None)
                self.consume_query_notice()
                yield self
            finally:
                self._mounted = False

    def handle_event(self, event: AuthEvent, session: Optional[Any]) -> None:
        if not self._mounted:
            logger.debug("Ignoring %s after unmount", event.value)
            return
        self._transition(session, event)

    def on_navigate(self) -> None:
        """Re-apply the policy after the navigator moved to a new location."""
        self.consume_query_notice()
        if self.state == GuardState.LOADING:
            return
        target = redirect_target(self.state, self.navigator.location)
        if target:
            self.navigator.push(target)

    def _transition(self, session: Optional[Any], event: Optional[AuthEvent]) -> None:
        previous = self.state
        self.session = session
        self.state = GuardState.AUTHENTICATED if session else GuardState.ANONYMOUS

        if self.state != previous:
            target = redirect_target(self.state, self.navigator.location)
            if target:
                logger.info("Auth state %s -> %s, redirecting to %s", previous.value, self.state.value, target)
                self.navigator.push(target)
                return
        if event in REFRESH_EVENTS:
            self.navigator.refresh()

    def consume_query_notice(self) -> None:
        """Turn error/message query parameters into a notification and drop them from the URL."""
        if self.notifier is None:
            return
        parts = urlsplit(self.navigator.location)
        params = parse_qsl(parts.query)
        query = dict(params)
        error = query.get("error")
        message = query.get("message")
        if error:
            self.notifier.notify(
                unhyphenate(error),
                unhyphenate(message) if message else "An unexpected error occurred.",
                DESTRUCTIVE,
            )
        elif message == CONFIRMATION_PENDING:
            self.notifier.notify(
                "Signup Almost Complete!",
                "We've sent a confirmation link to your email. Please check your inbox "
                "(and spam folder) to verify your account.",
            )
        else:
            return
        remaining = [(k, v) for k, v in params if k not in ("error", "message")]
        path = parts.path or HOME_PATH
        self.navigator.replace(f"{path}?{urlencode(remaining)}" if remaining else path)
