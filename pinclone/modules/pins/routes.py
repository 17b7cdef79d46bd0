from fastapi import APIRouter, Depends, File, Form, UploadFile
from pinclone.config import Settings
from pinclone.core.dependencies import get_current_user, get_settings, get_user_supabase
from pinclone.core.errors import raise_for_error
from pinclone.database.supabase_client import get_supabase
from pinclone.modules.pins.schemas import PinCreate, PinResponse
from pinclone.modules.pins.service import PinService
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(tags=["pins"])


def get_pin_service(
    supabase: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
) -> PinService:
    return PinService(supabase, pins_bucket=settings.pins_bucket, max_page_size=settings.max_page_size)


def get_user_pin_service(
    supabase: Client = Depends(get_user_supabase),
    settings: Settings = Depends(get_settings),
) -> PinService:
    """Pin service whose writes run as the signed-in user"""
    return PinService(supabase, pins_bucket=settings.pins_bucket, max_page_size=settings.max_page_size)


@router.get("/pins", response_model=List[PinResponse])
async def list_pins(
    page: int = 1,
    limit: Optional[int] = None,
    service: PinService = Depends(get_pin_service),
    settings: Settings = Depends(get_settings),
):
    """Home feed: all pins, newest first"""
    if limit is None:
        limit = settings.default_page_size
    pins, error = service.fetch_all_pins(page=page, limit=limit)
    raise_for_error(error)
    return pins


@router.post("/pins", response_model=PinResponse, status_code=201)
async def create_pin(
    pin_data: PinCreate,
    user_data: Dict = Depends(get_current_user),
    service: PinService = Depends(get_user_pin_service),
):
    """Create a pin for an already hosted image"""
    pin, error = service.create_pin(user_data["id"], pin_data)
    raise_for_error(error)
    return pin


@router.post("/pins/upload", response_model=PinResponse, status_code=201)
async def upload_pin(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    width: Optional[int] = Form(None),
    height: Optional[int] = Form(None),
    user_data: Dict = Depends(get_current_user),
    service: PinService = Depends(get_user_pin_service),
):
    """
    Upload an image and create a pin for it.
    Dimensions are read from the image when not given.
    """
    content = await file.read()
    pin, error = service.upload_and_create_pin(
        user_data["id"],
        content,
        file.filename,
        content_type=file.content_type,
        title=title,
        description=description,
        width=width,
        height=height,
    )
    raise_for_error(error)
    return pin


@router.get("/pins/{pin_id}", response_model=PinResponse)
async def get_pin(
    pin_id: str,
    service: PinService = Depends(get_pin_service),
):
    pin, error = service.fetch_pin_by_id(pin_id)
    raise_for_error(error)
    return pin


@router.get("/users/{user_id}/pins", response_model=List[PinResponse])
async def list_user_pins(
    user_id: str,
    page: int = 1,
    limit: Optional[int] = None,
    service: PinService = Depends(get_pin_service),
    settings: Settings = Depends(get_settings),
):
    """Pins created by one user, newest first"""
    if limit is None:
        limit = settings.default_page_size
    pins, error = service.fetch_pins_by_user_id(user_id, page=page, limit=limit)
    raise_for_error(error)
    return pins
