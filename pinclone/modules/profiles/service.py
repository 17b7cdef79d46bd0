import logging
import re
import time
from typing import Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client

from pinclone.core.errors import NO_ROWS_CODE, UNEXPECTED, USERNAME_TAKEN, ServiceError
from pinclone.database.filters import escape_like
from pinclone.database.storage import SupabaseStorage
from pinclone.modules.pins.images import file_extension
from pinclone.modules.profiles.schemas import ProfileResponse, ProfileUpdate

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
_USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.]+$")
_OPTIONAL_TEXT_FIELDS = ("full_name", "bio", "website", "avatar_url")

ProfileResult = Tuple[Optional[ProfileResponse], Optional[ServiceError]]


def validate_username(username: Optional[str]) -> Tuple[Optional[str], Optional[ServiceError]]:
    """Return the trimmed username, or a validation error."""
    if username is None or username.strip() == "":
        return None, ServiceError.validation("Username cannot be empty.")
    trimmed = username.strip()
    if len(trimmed) < USERNAME_MIN_LENGTH:
        return None, ServiceError.validation(
            f"Username must be at least {USERNAME_MIN_LENGTH} characters."
        )
    if not _USERNAME_PATTERN.match(trimmed):
        return None, ServiceError.validation(
            "Username can only contain letters, numbers, underscores, and periods."
        )
    return trimmed, None


def _is_username_conflict(error: APIError) -> bool:
    message = error.message or ""
    if "profiles_username_key" in message or "profiles_username_idx" in message:
        return True
    if error.code == "23505" or "duplicate key value violates unique constraint" in message:
        return "username" in message or "username" in (error.details or "")
    return False


class ProfileService:
    def __init__(self, supabase: Client, avatars_bucket: Optional[str] = None):
        self.supabase = supabase
        self.avatars_bucket = avatars_bucket

    def fetch_profile_by_id(self, user_id: str) -> ProfileResult:
        """Get profile by user ID"""
        if not user_id:
            return None, ServiceError.validation("User ID is required.")
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .single()\
                .execute()
            if not result.data:
                return None, ServiceError.not_found("Profile not found for this user ID.")
            return ProfileResponse(**result.data), None
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                return None, ServiceError.not_found("Profile not found for this user ID.")
            logger.error(f"Error fetching profile by ID {user_id}: {e.message} (code={e.code})")
            return None, ServiceError.store(e.message or UNEXPECTED)
        except Exception as e:
            logger.error(f"Unexpected error in fetch_profile_by_id: {str(e)}")
            return None, ServiceError.store(UNEXPECTED)

    def fetch_profile_by_username(self, username: str) -> ProfileResult:
        """Get profile by username, case-insensitive exact match"""
        if not username or username.strip() == "":
            return None, ServiceError.validation("Username is required.")
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .ilike("username", escape_like(username.strip()))\
                .single()\
                .execute()
            if not result.data:
                return None, ServiceError.not_found("Profile not found.")
            return ProfileResponse(**result.data), None
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                return None, ServiceError.not_found("Profile not found.")
            logger.error(f"Error fetching profile by username {username!r}: {e.message} (code={e.code})")
            return None, ServiceError.store(e.message or UNEXPECTED)
        except Exception as e:
            logger.error(f"Unexpected error in fetch_profile_by_username: {str(e)}")
            return None, ServiceError.store(UNEXPECTED)

    def update_profile(self, user_id: str, updates: ProfileUpdate) -> ProfileResult:
        """Update the caller's own profile. Only fields that were sent are written."""
        if not user_id:
            return None, ServiceError.validation("User ID is required for update.")

        update_data = updates.model_dump(exclude_unset=True)
        # updated_at belongs to the database trigger
        update_data.pop("updated_at", None)

        if "username" in update_data:
            username, error = validate_username(update_data["username"])
            if error:
                return None, error
            update_data["username"] = username

        for field in _OPTIONAL_TEXT_FIELDS:
            if field in update_data:
                value = update_data[field]
                update_data[field] = value.strip() or None if value else None

        if not update_data:
            return self.fetch_profile_by_id(user_id)

        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                logger.error(f"Profile update for user {user_id} returned no rows")
                return None, ServiceError.not_found("Profile not found for this user ID.")
            return ProfileResponse(**result.data[0]), None
        except APIError as e:
            logger.error(f"Error updating profile for user {user_id}: {e.message} (code={e.code})")
            if _is_username_conflict(e):
                return None, ServiceError.conflict(USERNAME_TAKEN)
            return None, ServiceError.store(e.message or UNEXPECTED)
        except Exception as e:
            logger.error(f"Unexpected error in update_profile: {str(e)}")
            return None, ServiceError.store(UNEXPECTED)

    def check_username_availability(self, username: str) -> Tuple[bool, Optional[ServiceError]]:
        """True when no profile holds this username, compared case-insensitively"""
        trimmed, error = validate_username(username)
        if error:
            return False, error
        try:
            result = self.supabase.table("profiles")\
                .select("username")\
                .ilike("username", escape_like(trimmed))\
                .limit(1)\
                .execute()
            return not result.data, None
        except APIError as e:
            logger.error(f"Error checking username availability for {trimmed!r}: {e.message}")
            return False, ServiceError.store(e.message or UNEXPECTED)
        except Exception as e:
            logger.error(f"Unexpected error in check_username_availability: {str(e)}")
            return False, ServiceError.store("An unexpected error occurred while checking username.")

    def upload_avatar(
        self,
        user_id: str,
        file_content: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> ProfileResult:
        """Store a new avatar image and point the profile at it"""
        if not user_id:
            return None, ServiceError.validation("User ID is required for update.")
        if not file_content:
            return None, ServiceError.validation("Avatar image is required.")
        if content_type and not content_type.startswith("image/"):
            return None, ServiceError.validation("Avatar must be an image.")

        key = f"{user_id}/avatar-{int(time.time() * 1000)}.{file_extension(filename, 'png')}"
        try:
            storage = SupabaseStorage(self.supabase, self.avatars_bucket)
            avatar_url = storage.upload_file(file_content, key, content_type)
        except Exception as e:
            return None, ServiceError.store(f"Avatar upload failed: {str(e)}")

        profile, error = self.update_profile(user_id, ProfileUpdate(avatar_url=avatar_url))
        if error:
            storage.delete_file(key)
        return profile, error
