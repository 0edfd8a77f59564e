from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LinkCreate(BaseModel):
    """Schema for creating a new short link"""
    url: str = Field(..., description="Original URL to shorten", min_length=1)
    custom_alias: Optional[str] = Field(
        None, description="Custom label to use as the identifier", max_length=64
    )


class LinkResponse(BaseModel):
    """Schema for link response"""
    identifier: str
    short_url: str
    original_url: str
    created_at: datetime
