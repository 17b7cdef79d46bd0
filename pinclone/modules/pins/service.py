import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client

from pinclone.core.errors import NO_ROWS_CODE, UNEXPECTED, ServiceError
from pinclone.database.filters import page_range
from pinclone.database.storage import SupabaseStorage
from pinclone.modules.pins.images import file_extension, read_dimensions
from pinclone.modules.pins.schemas import PinCreate, PinResponse
from pinclone.modules.profiles.schemas import UploaderSummary

logger = logging.getLogger(__name__)

PIN_SELECT = "*, profiles(username, avatar_url, full_name)"
DEFAULT_WIDTH = 300
DEFAULT_HEIGHT = 400
UNKNOWN_USERNAME = "unknown_user"
MAX_PAGE_SIZE = 100

PinListResult = Tuple[List[PinResponse], Optional[ServiceError]]
PinResult = Tuple[Optional[PinResponse], Optional[ServiceError]]


def map_pin(row: Dict[str, Any]) -> PinResponse:
    """Map a pins row with its joined profiles summary to PinResponse"""
    profile = row.get("profiles")
    uploader = None
    if profile:
        uploader = UploaderSummary(
            username=profile.get("username") or UNKNOWN_USERNAME,
            avatar_url=profile.get("avatar_url"),
            full_name=profile.get("full_name"),
        )
    return PinResponse(
        id=str(row["id"]),
        user_id=str(row.get("user_id") or ""),
        image_url=row["image_url"],
        title=row.get("title"),
        description=row.get("description"),
        width=row.get("width") or DEFAULT_WIDTH,
        height=row.get("height") or DEFAULT_HEIGHT,
        created_at=row["created_at"],
        updated_at=row.get("updated_at"),
        uploader=uploader,
    )


def validate_page(page: int, limit: int, max_page_size: int = MAX_PAGE_SIZE) -> Optional[ServiceError]:
    if page < 1:
        return ServiceError.validation("Page must be 1 or greater.")
    if limit < 1 or limit > max_page_size:
        return ServiceError.validation(f"Limit must be between 1 and {max_page_size}.")
    return None


class PinService:
    def __init__(self, supabase: Client, pins_bucket: Optional[str] = None,
                 max_page_size: int = MAX_PAGE_SIZE):
        self.supabase = supabase
        self.pins_bucket = pins_bucket
        self.max_page_size = max_page_size

    def fetch_all_pins(self, page: int = 1, limit: int = 20) -> PinListResult:
        """List pins, newest first, one page at a time"""
        error = validate_page(page, limit, self.max_page_size)
        if error:
            return [], error
        start, end = page_range(page, limit)
        try:
            result = self.supabase.table("pins")\
                .select(PIN_SELECT)\
                .order("created_at", desc=True)\
                .range(start, end)\
                .execute()
            return [map_pin(row) for row in result.data or []], None
        except APIError as e:
            logger.error(f"Error fetching all pins: {e.message}")
            return [], ServiceError.store(e.message or UNEXPECTED)
        except Exception as e:
            logger.error(f"Unexpected error in fetch_all_pins: {str(e)}")
            return [], ServiceError.store(UNEXPECTED)

    def fetch_pin_by_id(self, pin_id: str) -> PinResult:
        if not pin_id:
            return None, ServiceError.validation("Pin ID is required.")
        try:
            result = self.supabase.table("pins")\
                .select(PIN_SELECT)\
                .eq("id", pin_id)\
                .single()\
                .execute()
            if not result.data:
                return None, ServiceError.not_found("Pin not found.")
            return map_pin(result.data), None
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                return None, ServiceError.not_found("Pin not found.")
            logger.error(f"Error fetching pin by ID {pin_id}: {e.message}")
            return None, ServiceError.store(e.message or UNEXPECTED)
        except Exception as e:
            logger.error(f"Unexpected error in fetch_pin_by_id: {str(e)}")
            return None, ServiceError.store(UNEXPECTED)

    def fetch_pins_by_user_id(self, user_id: str, page: int = 1, limit: int = 20) -> PinListResult:
        """List one uploader's pins, newest first"""
        if not user_id:
            return [], ServiceError.validation("User ID is required.")
        error = validate_page(page, limit, self.max_page_size)
        if error:
            return [], error
        start, end = page_range(page, limit)
        try:
            result = self.supabase.table("pins")\
                .select(PIN_SELECT)\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .range(start, end)\
                .execute()
            return [map_pin(row) for row in result.data or []], None
        except APIError as e:
            logger.error(f"Error fetching pins for user {user_id}: {e.message}")
            return [], ServiceError.store(e.message or UNEXPECTED)
        except Exception as e:
            logger.error(f"Unexpected error in fetch_pins_by_user_id: {str(e)}")
            return [], ServiceError.store(UNEXPECTED)

    def create_pin(self, user_id: Optional[str], pin_data: PinCreate) -> PinResult:
        """Create a pin owned by the authenticated caller"""
        if not user_id:
            return None, ServiceError.unauthenticated("User must be authenticated to create a pin.")
        if not pin_data.image_url:
            return None, ServiceError.validation("Image URL is required.")
        if pin_data.width is None or pin_data.height is None:
            return None, ServiceError.validation(
                "Image dimensions (width and height) are required and must be numbers."
            )
        if pin_data.width <= 0 or pin_data.height <= 0:
            return None, ServiceError.validation("Image dimensions must be positive.")

        new_pin = pin_data.model_dump()
        new_pin["user_id"] = user_id
        try:
            result = self.supabase.table("pins").insert(new_pin).execute()
            if not result.data:
                return None, ServiceError.store("Failed to create pin or retrieve created pin data.")
            row = result.data[0]
        except APIError as e:
            logger.error(f"Error inserting pin: {e.message}")
            return None, ServiceError.store(f"Failed to create pin: {e.message}")
        except Exception as e:
            logger.error(f"Unexpected error in create_pin: {str(e)}")
            return None, ServiceError.store(f"An unexpected error occurred: {str(e)}")

        if not row.get("profiles"):
            row["profiles"] = self._fetch_uploader(user_id)
        return map_pin(row), None

    def _fetch_uploader(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Uploader summary for a freshly inserted pin. Missing profile is tolerated."""
        try:
            result = self.supabase.table("profiles")\
                .select("username, avatar_url, full_name")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.warning(f"Fallback profile fetch after pin creation failed for {user_id}: {str(e)}")
            return None
        if not result.data:
            logger.warning(f"No profile found for {user_id}; pin uploader will be empty")
            return None
        return result.data[0]

    def upload_and_create_pin(
        self,
        user_id: Optional[str],
        file_content: bytes,
        filename: Optional[str],
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> PinResult:
        """Store the image in the pins bucket, then create the pin pointing at it.

        The stored object is removed again when the pin cannot be created.
        """
        if not user_id:
            return None, ServiceError.unauthenticated("User must be authenticated to create a pin.")
        if not file_content:
            return None, ServiceError.validation("Image file is required.")
        if content_type and not content_type.startswith("image/"):
            return None, ServiceError.validation("Only image files can be pinned.")

        if width is None or height is None:
            dimensions = read_dimensions(file_content)
            if dimensions is None:
                return None, ServiceError.validation("Could not read image dimensions.")
            width, height = dimensions

        key = f"public/{user_id}/{int(time.time() * 1000)}.{file_extension(filename)}"
        try:
            storage = SupabaseStorage(self.supabase, self.pins_bucket)
            image_url = storage.upload_file(file_content, key, content_type)
        except Exception as e:
            return None, ServiceError.store(f"Image upload failed: {str(e)}")

        pin, error = self.create_pin(user_id, PinCreate(
            image_url=image_url,
            title=title,
            description=description,
            width=width,
            height=height,
        ))
        if error:
            storage.delete_file(key)
        return pin, error
