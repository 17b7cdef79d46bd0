"""
Incremental list loading for feeds (infinite scroll).

One controller per list instance. ``load_more`` never runs two fetches at
once, stops for good once a short page or an error arrives, and discards
pages that resolve after the owning key changed.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Hashable, List, Optional, Tuple, Union

from pinclone.core.errors import ServiceError

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.8

PageResult = Tuple[List[Any], Optional[Union[ServiceError, str]]]
PageFetcher = Callable[[Optional[Hashable], int, int], Union[Awaitable[PageResult], PageResult]]
ErrorHandler = Callable[[Union[ServiceError, str]], None]


def item_id(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        value = item.get("id")
    else:
        value = getattr(item, "id", None)
    return None if value is None else str(value)


class PaginationController:
    def __init__(
        self,
        fetch_page: PageFetcher,
        page_size: int,
        owner_key: Optional[Hashable] = None,
        threshold: float = DEFAULT_THRESHOLD,
        exclude_id: Optional[str] = None,
        on_error: Optional[ErrorHandler] = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._fetch_page = fetch_page
        self.page_size = page_size
        self.threshold = threshold
        self.on_error = on_error
        self.fetch_count = 0
        self._generation = 0
        self._reinitialize(owner_key, exclude_id)

    def _reinitialize(self, owner_key: Optional[Hashable], exclude_id: Optional[str]) -> None:
        self.owner_key = owner_key
        self.exclude_id = exclude_id
        self.items: List[Any] = []
        self.cursor = 1
        self.loading = False
        self.exhausted = False
        self.error: Optional[Union[ServiceError, str]] = None

    @property
    def can_load(self) -> bool:
        return not self.loading and not self.exhausted

    def reset(self, owner_key: Optional[Hashable] = None, exclude_id: Optional[str] = None) -> None:
        """Start over for a (possibly new) owner; an in-flight page for the old one is dropped."""
        self._generation += 1
        self._reinitialize(owner_key, exclude_id)

    def set_owner(self, owner_key: Optional[Hashable], exclude_id: Optional[str] = None) -> bool:
        """Reset when the owning key changed. Returns True if it did."""
        if owner_key == self.owner_key and exclude_id == self.exclude_id:
            return False
        self.reset(owner_key, exclude_id)
        return True

    async def mount(self) -> bool:
        """Initial load: first page for the current owner."""
        if self.cursor != 1 or self.items:
            self.reset(self.owner_key, self.exclude_id)
        return await self.load_more()

    async def on_sentinel_visible(self, intersection_ratio: float) -> bool:
        """End-of-list marker became visible; fetch the next page when visible enough."""
        if intersection_ratio < self.threshold:
            return False
        return await self.load_more()

    async def load_more(self) -> bool:
        """Fetch the next page. Returns False when nothing was applied."""
        if not self.can_load:
            return False

        self.loading = True
        generation = self._generation
        owner_key = self.owner_key
        page = self.cursor
        self.fetch_count += 1
        try:
            try:
                result = self._fetch_page(owner_key, page, self.page_size)
                if inspect.isawaitable(result):
                    result = await result
                items, error = result
            except Exception as e:
                logger.exception("Page fetch for %r page %s failed", owner_key, page)
                items, error = [], ServiceError.store(str(e) or "An unexpected error occurred.")

            if generation != self._generation:
                logger.debug("Discarding stale page %s for %r", page, owner_key)
                return False

            if error:
                self.exhausted = True
                self.error = error
                if self.on_error is not None:
                    self.on_error(error)
                return True

            items = list(items or [])
            fetched = len(items)
            if self.exclude_id is not None:
                items = [item for item in items if item_id(item) != self.exclude_id]
            self.items.extend(items)
            self.cursor += 1
            # Short page, or a page emptied by the exclusion filter, ends the list
            if fetched < self.page_size or not items:
                self.exhausted = True
            return True
        finally:
            if generation == self._generation:
                self.loading = False
