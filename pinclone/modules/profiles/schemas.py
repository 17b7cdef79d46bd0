from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UploaderSummary(BaseModel):
    username: str
    avatar_url: Optional[str] = None
    full_name: Optional[str] = None


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UsernameAvailabilityResponse(BaseModel):
    username: str
    available: bool
