"""Pagination controllers for each list view, wired to the API client."""

from typing import Optional

from pinclone.client.api import PincloneApiClient
from pinclone.client.notifications import Notifier
from pinclone.client.pagination import DEFAULT_THRESHOLD, PaginationController
from pinclone.modules.pins.schemas import PinResponse

HOME_PAGE_SIZE = 20
USER_PINS_PAGE_SIZE = 18
RELATED_PINS_PAGE_SIZE = 10
SEARCH_PAGE_SIZE = 20


def _error_handler(notifier: Optional[Notifier], title: str):
    if notifier is None:
        return None
    return lambda error: notifier.error(error, title=title)


def home_feed(api: PincloneApiClient, notifier: Optional[Notifier] = None) -> PaginationController:
    async def fetch(_owner, page, page_size):
        return await api.fetch_all_pins(page=page, limit=page_size)

    return PaginationController(
        fetch, HOME_PAGE_SIZE, threshold=DEFAULT_THRESHOLD,
        on_error=_error_handler(notifier, "Error fetching pins"),
    )


def user_pins_feed(api: PincloneApiClient, user_id: str,
                   notifier: Optional[Notifier] = None) -> PaginationController:
    """Pins created by one user; switch users with ``set_owner``."""
    async def fetch(owner, page, page_size):
        return await api.fetch_pins_by_user_id(owner, page=page, limit=page_size)

    return PaginationController(
        fetch, USER_PINS_PAGE_SIZE, owner_key=user_id, threshold=DEFAULT_THRESHOLD,
        on_error=_error_handler(notifier, "Error fetching created pins"),
    )


def related_pins_feed(api: PincloneApiClient, pin: PinResponse,
                      notifier: Optional[Notifier] = None) -> PaginationController:
    """More pins from the same uploader, never repeating the pin being viewed."""
    async def fetch(owner, page, page_size):
        return await api.fetch_pins_by_user_id(owner, page=page, limit=page_size)

    return PaginationController(
        fetch, RELATED_PINS_PAGE_SIZE, owner_key=pin.user_id, exclude_id=pin.id,
        threshold=DEFAULT_THRESHOLD,
        on_error=_error_handler(notifier, "Error fetching related pins"),
    )


def pin_search_feed(api: PincloneApiClient, query: str,
                    notifier: Optional[Notifier] = None) -> PaginationController:
    async def fetch(owner, page, page_size):
        return await api.search_pins(owner or "", page=page, limit=page_size)

    return PaginationController(
        fetch, SEARCH_PAGE_SIZE, owner_key=query, threshold=DEFAULT_THRESHOLD,
        on_error=_error_handler(notifier, "Error searching pins"),
    )
