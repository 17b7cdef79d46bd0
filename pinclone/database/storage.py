import logging
from typing import Optional

from supabase import Client

logger = logging.getLogger(__name__)


class SupabaseStorage:
    """Object storage bucket backed by Supabase Storage."""

    def __init__(self, supabase: Client, bucket_name: str):
        if not bucket_name:
            raise ValueError("Storage bucket name must be configured")
        self.bucket_name = bucket_name
        self._bucket = supabase.storage.from_(bucket_name)

    def upload_file(self, file_content: bytes, key: str, content_type: Optional[str] = None) -> str:
        """Upload file and return its public URL"""
        try:
            self._bucket.upload(
                key,
                file_content,
                {
                    "content-type": content_type or "application/octet-stream",
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except Exception as e:
            logger.error(f"Failed to upload {key} to bucket {self.bucket_name}: {str(e)}")
            raise
        return self.public_url(key)

    def public_url(self, key: str) -> str:
        return self._bucket.get_public_url(key).rstrip("?")

    def delete_file(self, key: str) -> bool:
        """Delete file from the bucket"""
        try:
            self._bucket.remove([key])
            return True
        except Exception as e:
            logger.warning("Failed to delete %s from bucket %s: %s", key, self.bucket_name, e)
            return False
