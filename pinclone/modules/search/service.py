import logging
from typing import List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client

from pinclone.core.errors import ServiceError
from pinclone.database.filters import contains_pattern, page_range
from pinclone.modules.pins.schemas import PinResponse
from pinclone.modules.pins.service import MAX_PAGE_SIZE, PIN_SELECT, map_pin, validate_page
from pinclone.modules.profiles.schemas import ProfileResponse

logger = logging.getLogger(__name__)

DEFAULT_USERS_LIMIT = 10


class SearchService:
    def __init__(self, supabase: Client, users_limit: int = DEFAULT_USERS_LIMIT,
                 max_page_size: int = MAX_PAGE_SIZE):
        self.supabase = supabase
        self.users_limit = users_limit
        self.max_page_size = max_page_size

    def search_users(self, query: str) -> Tuple[List[ProfileResponse], Optional[ServiceError]]:
        """Profiles whose username or full name contains the query, case-insensitive"""
        if not query or not query.strip():
            return [], None
        pattern = contains_pattern(query)
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .or_(f"username.ilike.{pattern},full_name.ilike.{pattern}")\
                .limit(self.users_limit)\
                .execute()
            return [ProfileResponse(**row) for row in result.data or []], None
        except APIError as e:
            logger.error(f"Error searching users for {query!r}: {e.message}")
            return [], ServiceError.store(e.message or "An unexpected error occurred during search.")
        except Exception as e:
            logger.error(f"Unexpected error in search_users: {str(e)}")
            return [], ServiceError.store("An unexpected error occurred during search.")

    def search_pins(self, query: str, page: int = 1, limit: int = 20) -> Tuple[List[PinResponse], Optional[ServiceError]]:
        """Pins whose title or description contains the query, newest first"""
        if not query or not query.strip():
            return [], None
        error = validate_page(page, limit, self.max_page_size)
        if error:
            return [], error
        pattern = contains_pattern(query)
        start, end = page_range(page, limit)
        try:
            result = self.supabase.table("pins")\
                .select(PIN_SELECT)\
                .or_(f"title.ilike.{pattern},description.ilike.{pattern}")\
                .order("created_at", desc=True)\
                .range(start, end)\
                .execute()
            return [map_pin(row) for row in result.data or []], None
        except APIError as e:
            logger.error(f"Error searching pins for {query!r}: {e.message}")
            return [], ServiceError.store(e.message or "An unexpected error occurred during pin search.")
        except Exception as e:
            logger.error(f"Unexpected error in search_pins: {str(e)}")
            return [], ServiceError.store("An unexpected error occurred during pin search.")
