"""Settings Schemas"""

from pydantic import BaseModel, Field
from typing import Optional


class SettingsResponse(BaseModel):
    min_time_till_stocking: int
    max_time_for_registration: int


class SettingsUpdate(BaseModel):
    min_time_till_stocking: Optional[int] = Field(None, ge=0)
    max_time_for_registration: Optional[int] = Field(None, ge=0)
