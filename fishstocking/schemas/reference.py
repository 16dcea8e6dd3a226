"""Reference Data Schemas"""

from pydantic import BaseModel, ConfigDict


class FishTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    label: str
    priority: int


class FishAgeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    label: str
    priority: int
