from pinclone.client.api import PincloneApiClient
from pinclone.client.guard import GuardState, RouteGuard
from pinclone.client.notifications import Notification, Notifier
from pinclone.client.pagination import PaginationController
from pinclone.client.session import AuthEvent, SessionStore, Subscription

__all__ = [
    "AuthEvent",
    "GuardState",
    "Notification",
    "Notifier",
    "PaginationController",
    "PincloneApiClient",
    "RouteGuard",
    "SessionStore",
    "Subscription",
]
