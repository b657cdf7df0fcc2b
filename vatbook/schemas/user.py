from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from vatbook.models.user import BusinessType


class ProfileUpdate(BaseModel):
    email: Optional[str] = Field(None, max_length=255)
    full_name: str = Field(..., min_length=1, max_length=255)
    business_name: str = Field(..., min_length=1, max_length=255)
    business_type: BusinessType
    phone: str = Field(..., min_length=1, max_length=20)
    location: str = Field(..., min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)


class ProfileResponse(BaseModel):
    user_id: int
    email: Optional[str] = None
    full_name: Optional[str] = None
    business_name: Optional[str] = None
    business_type: Optional[BusinessType] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
