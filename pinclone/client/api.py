"""Async HTTP client for the pinclone API, keeping the (value, error) contract of the services."""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from pinclone.core.errors import ErrorKind, ServiceError
from pinclone.modules.pins.schemas import PinResponse
from pinclone.modules.profiles.schemas import ProfileResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

_KIND_BY_STATUS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.UNAUTHENTICATED,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.VALIDATION,
}


def error_from_response(response: httpx.Response) -> ServiceError:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if not isinstance(detail, str):
        detail = response.reason_phrase or f"HTTP {response.status_code}"
    return ServiceError(_KIND_BY_STATUS.get(response.status_code, ErrorKind.STORE), detail)


class PincloneApiClient:
    """Wraps an ``httpx.AsyncClient`` whose base_url points at the backend."""

    def __init__(self, client: httpx.AsyncClient, access_token: Optional[str] = None):
        self.client = client
        self.access_token = access_token

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Tuple[Any, Optional[ServiceError]]:
        headers = {"Authorization": f"Bearer {self.access_token}"} if self.access_token else None
        try:
            response = await self.client.get(f"{API_PREFIX}{path}", params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Request to %s failed: %s", path, e)
            return None, ServiceError.store("Network error, please try again.")
        if response.is_error:
            return None, error_from_response(response)
        return response.json(), None

    async def fetch_all_pins(self, page: int = 1, limit: int = 20) -> Tuple[List[PinResponse], Optional[ServiceError]]:
        data, error = await self._get("/pins", {"page": page, "limit": limit})
        if error:
            return [], error
        return [PinResponse(**row) for row in data], None

    async def fetch_pin_by_id(self, pin_id: str) -> Tuple[Optional[PinResponse], Optional[ServiceError]]:
        if not pin_id:
            return None, ServiceError.validation("Pin ID is required.")
        data, error = await self._get(f"/pins/{pin_id}")
        if error:
            return None, error
        return PinResponse(**data), None

    async def fetch_pins_by_user_id(self, user_id: str, page: int = 1,
                                    limit: int = 20) -> Tuple[List[PinResponse], Optional[ServiceError]]:
        if not user_id:
            return [], ServiceError.validation("User ID is required.")
        data, error = await self._get(f"/users/{user_id}/pins", {"page": page, "limit": limit})
        if error:
            return [], error
        return [PinResponse(**row) for row in data], None

    async def search_pins(self, query: str, page: int = 1,
                          limit: int = 20) -> Tuple[List[PinResponse], Optional[ServiceError]]:
        if not query or not query.strip():
            return [], None
        data, error = await self._get("/search/pins", {"q": query, "page": page, "limit": limit})
        if error:
            return [], error
        return [PinResponse(**row) for row in data], None

    async def search_users(self, query: str) -> Tuple[List[ProfileResponse], Optional[ServiceError]]:
        if not query or not query.strip():
            return [], None
        data, error = await self._get("/search/users", {"q": query})
        if error:
            return [], error
        return [ProfileResponse(**row) for row in data], None

    async def fetch_profile_by_username(self, username: str) -> Tuple[Optional[ProfileResponse], Optional[ServiceError]]:
        if not username or not username.strip():
            return None, ServiceError.validation("Username is required.")
        data, error = await self._get(f"/profiles/by-username/{username.strip()}")
        if error:
            return None, error
        return ProfileResponse(**data), None
