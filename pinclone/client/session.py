"""
Session store: the current auth session and its change stream.

Wraps the auth handle of an explicitly constructed supabase client. Listeners
are released through ``Subscription.unsubscribe`` or, preferably, by holding
them inside ``SessionStore.subscribed``.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from starlette.concurrency import run_in_threadpool
from supabase import Client

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"


SessionCallback = Callable[[AuthEvent, Optional[Any]], None]


def parse_event(event) -> Optional[AuthEvent]:
    try:
        return AuthEvent(getattr(event, "value", event))
    except ValueError:
        return None


class Subscription:
    """Handle for one change listener. Unsubscribing twice is a no-op."""

    def __init__(self, inner):
        self._inner = inner
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._inner.unsubscribe()


class SessionStore:
    def __init__(self, auth):
        self._auth = auth

    @classmethod
    def from_client(cls, client: Client) -> "SessionStore":
        return cls(client.auth)

    async def get_current_session(self) -> Optional[Any]:
        """The current session, or None. Lookup failures are logged and read as signed out."""
        try:
            return await run_in_threadpool(self._auth.get_session)
        except Exception as e:
            logger.error("Error getting current session: %s", e)
            return None

    def on_change(self, callback: SessionCallback) -> Subscription:
        def listener(event, session):
            parsed = parse_event(event)
            if parsed is None:
                logger.debug("Ignoring unknown auth event %r", event)
                return
            callback(parsed, session)

        return Subscription(self._auth.on_auth_state_change(listener))

    @contextmanager
    def subscribed(self, callback: SessionCallback) -> Iterator[Subscription]:
        subscription = self.on_change(callback)
        try:
            yield subscription
        finally:
            subscription.unsubscribe()
