"""Tests for the session store and the route guard."""

from types import SimpleNamespace

import pytest

from pinclone.client.guard import GuardState, RouteGuard, is_public_path, redirect_target
from pinclone.client.notifications import DESTRUCTIVE, Notifier
from pinclone.client.session import AuthEvent, SessionStore, parse_event
from tests.fakes import FakeAuth, FakeNavigator

SESSION = SimpleNamespace(access_token="tok-alice", user=SimpleNamespace(id="u-alice"))


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def store(auth):
    return SessionStore(auth)


class TestSessionStore:
    async def test_current_session(self, auth, store):
        auth.session = SESSION
        assert await store.get_current_session() is SESSION

    async def test_lookup_failure_reads_as_signed_out(self, auth, store):
        auth.session_error = RuntimeError("storage unavailable")
        assert await store.get_current_session() is None

    def test_events_are_parsed_and_unknown_ones_dropped(self, auth, store):
        received = []
        store.on_change(lambda event, session: received.append((event, session)))
        auth.emit("SIGNED_IN", SESSION)
        auth.emit("SOMETHING_NEW", None)
        assert received == [(AuthEvent.SIGNED_IN, SESSION)]

    def test_subscribed_releases_listener(self, auth, store):
        with store.subscribed(lambda event, session: None) as subscription:
            assert len(auth.listeners) == 1
            assert subscription.active
        assert auth.listeners == []
        assert not subscription.active
        subscription.unsubscribe()

    def test_parse_event(self):
        assert parse_event(AuthEvent.TOKEN_REFRESHED) is AuthEvent.TOKEN_REFRESHED
        assert parse_event("nope") is None


class TestPolicy:
    @pytest.mark.parametrize("path", ["/", "/search", "/not-found", "/pin/42", "/u/alice"])
    def test_public_paths(self, path):
        assert is_public_path(path)

    @pytest.mark.parametrize("path", ["/create", "/settings/profile", "/pin/42/edit"])
    def test_protected_paths(self, path):
        assert not is_public_path(path)

    def test_anonymous_on_protected_goes_to_login_with_next(self):
        assert redirect_target(GuardState.ANONYMOUS, "/create?draft=1") == "/login?next=%2Fcreate%3Fdraft%3D1"

    def test_authenticated_on_auth_page_goes_to_next(self):
        assert redirect_target(GuardState.AUTHENTICATED, "/login?next=%2Fu%2Falice") == "/u/alice"

    def test_authenticated_ignores_offsite_next(self):
        assert redirect_target(GuardState.AUTHENTICATED, "/signup?next=https://evil.test/") == "/"

    def test_loading_never_redirects(self):
        assert redirect_target(GuardState.LOADING, "/create") is None


class TestRouteGuard:
    async def test_anonymous_on_protected_page_redirects_once(self, auth, store):
        navigator = FakeNavigator("/create")
        guard = RouteGuard(store, navigator)
        async with guard.mounted():
            assert guard.state == GuardState.ANONYMOUS
            assert navigator.pushed == ["/login?next=%2Fcreate"]

            auth.emit("SIGNED_OUT", None)
            guard.on_navigate()
            assert navigator.pushed == ["/login?next=%2Fcreate"]
            assert navigator.refreshes == 1

    async def test_anonymous_on_public_page_stays(self, store):
        navigator = FakeNavigator("/pin/abc")
        async with RouteGuard(store, navigator).mounted() as guard:
            assert guard.state == GuardState.ANONYMOUS
            assert navigator.pushed == []

    async def test_authenticated_on_login_goes_to_next(self, auth, store):
        auth.session = SESSION
        navigator = FakeNavigator("/login?next=%2Fu%2Falice")
        async with RouteGuard(store, navigator).mounted() as guard:
            assert guard.state == GuardState.AUTHENTICATED
            assert navigator.pushed == ["/u/alice"]

    async def test_sign_in_on_login_page_leaves_it(self, auth, store):
        navigator = FakeNavigator("/login")
        async with RouteGuard(store, navigator).mounted() as guard:
            assert navigator.pushed == []
            auth.emit("SIGNED_IN", SESSION)
            assert guard.state == GuardState.AUTHENTICATED
            assert navigator.pushed == ["/"]

    async def test_sign_out_on_protected_page(self, auth, store):
        auth.session = SESSION
        navigator = FakeNavigator("/settings/profile")
        async with RouteGuard(store, navigator).mounted():
            assert navigator.pushed == []
            auth.emit("SIGNED_OUT", None)
            assert navigator.pushed == ["/login?next=%2Fsettings%2Fprofile"]

    async def test_token_refresh_refreshes_view(self, auth, store):
        auth.session = SESSION
        navigator = FakeNavigator("/create")
        async with RouteGuard(store, navigator).mounted():
            auth.emit("TOKEN_REFRESHED", SESSION)
            assert navigator.refreshes == 1
            assert navigator.pushed == []

    async def test_listener_released_and_late_events_ignored(self, auth, store):
        navigator = FakeNavigator("/create")
        guard = RouteGuard(store, navigator)
        async with guard.mounted():
            assert len(auth.listeners) == 1
        assert auth.listeners == []

        guard.handle_event(AuthEvent.SIGNED_IN, SESSION)
        assert guard.state == GuardState.ANONYMOUS
        assert navigator.pushed == ["/login?next=%2Fcreate"]

    async def test_session_lookup_failure_is_anonymous(self, auth, store):
        auth.session_error = RuntimeError("boom")
        navigator = FakeNavigator("/create")
        async with RouteGuard(store, navigator).mounted() as guard:
            assert guard.state == GuardState.ANONYMOUS
            assert navigator.pushed == ["/login?next=%2Fcreate"]


class TestQueryNotices:
    async def test_error_params_become_notification(self, store):
        notifier = Notifier()
        navigator = FakeNavigator("/login?error=OAuth-Callback-Failed&message=No-auth-code-provided")
        async with RouteGuard(store, navigator, notifier).mounted():
            pass
        (notification,) = notifier.notifications
        assert notification.title == "OAuth Callback Failed"
        assert notification.description == "No auth code provided"
        assert notification.variant == DESTRUCTIVE
        assert navigator.replaced == ["/login"]

    async def test_confirmation_pending_notice_keeps_other_params(self, store):
        notifier = Notifier()
        navigator = FakeNavigator("/login?message=confirmation_pending&next=%2Fcreate")
        async with RouteGuard(store, navigator, notifier).mounted():
            pass
        assert notifier.notifications[0].title == "Signup Almost Complete!"
        assert navigator.replaced == ["/login?next=%2Fcreate"]

    async def test_plain_location_has_no_notice(self, store):
        notifier = Notifier()
        navigator = FakeNavigator("/search?q=tea")
        async with RouteGuard(store, navigator, notifier).mounted():
            pass
        assert notifier.notifications == []
        assert navigator.replaced == []


class TestNotifier:
    def test_dismiss(self):
        notifier = Notifier()
        first = notifier.notify("Saved")
        notifier.error("Username taken", title="Could not save")
        assert notifier.dismiss(first.id) is True
        assert notifier.dismiss(first.id) is False
        assert [n.title for n in notifier.notifications] == ["Could not save"]
        notifier.clear()
        assert notifier.notifications == []
