from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from pinclone.modules.profiles.schemas import UploaderSummary


class PinCreate(BaseModel):
    # Presence is checked by PinService.create_pin so a missing field is a
    # validation error rather than a schema rejection
    image_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class PinResponse(BaseModel):
    id: str
    user_id: str
    image_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    width: int
    height: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    uploader: Optional[UploaderSummary] = None

    class Config:
        from_attributes = True
