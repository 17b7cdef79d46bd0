from fastapi import APIRouter, Depends, File, UploadFile
from pinclone.config import Settings
from pinclone.core.dependencies import get_current_user, get_settings, get_user_supabase
from pinclone.core.errors import raise_for_error
from pinclone.database.supabase_client import get_supabase
from pinclone.modules.profiles.schemas import ProfileResponse, ProfileUpdate, UsernameAvailabilityResponse
from pinclone.modules.profiles.service import ProfileService
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(
    supabase: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
) -> ProfileService:
    return ProfileService(supabase, avatars_bucket=settings.avatars_bucket)


def get_user_profile_service(
    supabase: Client = Depends(get_user_supabase),
    settings: Settings = Depends(get_settings),
) -> ProfileService:
    return ProfileService(supabase, avatars_bucket=settings.avatars_bucket)


@router.get("/me", response_model=ProfileResponse)
async def get_own_profile(
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    profile, error = service.fetch_profile_by_id(user_data["id"])
    raise_for_error(error)
    return profile


@router.patch("/me", response_model=ProfileResponse)
async def update_own_profile(
    updates: ProfileUpdate,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_user_profile_service),
):
    """Update the caller's profile; 409 when the username is taken"""
    profile, error = service.update_profile(user_data["id"], updates)
    raise_for_error(error)
    return profile


@router.post("/me/avatar", response_model=ProfileResponse)
async def upload_own_avatar(
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_user_profile_service),
):
    content = await file.read()
    profile, error = service.upload_avatar(user_data["id"], content, file.filename, file.content_type)
    raise_for_error(error)
    return profile


@router.get("/username-available", response_model=UsernameAvailabilityResponse)
async def username_available(
    username: str,
    service: ProfileService = Depends(get_profile_service),
):
    available, error = service.check_username_availability(username)
    raise_for_error(error)
    return UsernameAvailabilityResponse(username=username.strip(), available=available)


@router.get("/by-username/{username}", response_model=ProfileResponse)
async def get_profile_by_username(
    username: str,
    service: ProfileService = Depends(get_profile_service),
):
    """Public profile lookup, case-insensitive"""
    profile, error = service.fetch_profile_by_username(username)
    raise_for_error(error)
    return profile


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
):
    profile, error = service.fetch_profile_by_id(user_id)
    raise_for_error(error)
    return profile
