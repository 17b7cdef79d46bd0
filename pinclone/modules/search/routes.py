from fastapi import APIRouter, Depends
from pinclone.config import Settings
from pinclone.core.dependencies import get_settings
from pinclone.core.errors import raise_for_error
from pinclone.database.supabase_client import get_supabase
from pinclone.modules.pins.schemas import PinResponse
from pinclone.modules.profiles.schemas import ProfileResponse
from pinclone.modules.search.service import SearchService
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/search", tags=["search"])


def get_search_service(
    supabase: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
) -> SearchService:
    return SearchService(supabase, users_limit=settings.search_users_limit,
                         max_page_size=settings.max_page_size)


@router.get("/users", response_model=List[ProfileResponse])
async def search_users(
    q: str = "",
    service: SearchService = Depends(get_search_service),
):
    """Search profiles by username or full name"""
    users, error = service.search_users(q)
    raise_for_error(error)
    return users


@router.get("/pins", response_model=List[PinResponse])
async def search_pins(
    q: str = "",
    page: int = 1,
    limit: Optional[int] = None,
    service: SearchService = Depends(get_search_service),
    settings: Settings = Depends(get_settings),
):
    """Search pins by title or description, newest first"""
    if limit is None:
        limit = settings.default_page_size
    pins, error = service.search_pins(q, page=page, limit=limit)
    raise_for_error(error)
    return pins
