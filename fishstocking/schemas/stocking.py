"""Fish Stocking Schemas"""

from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from fishstocking.services.stocking.status import FishStockingStatus


class FishOrigin(str, Enum):
    GROWN = "GROWN"
    CAUGHT = "CAUGHT"


def _to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Event times are compared as local wall-clock times"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


# Value objects
class Municipality(BaseModel):
    id: int
    name: str


class Location(BaseModel):
    cadastral_id: str
    name: str
    municipality: Municipality
    area: Optional[float] = None
    length: Optional[float] = None
    category: Optional[str] = None


class Reservoir(BaseModel):
    name: str
    cadastral_id: str
    municipality: Municipality
    area: Optional[float] = None


class Signature(BaseModel):
    organization: str
    signed_by: str
    signature: str


class Coordinates(BaseModel):
    lat: float
    lng: float


# Batch payloads
class BatchRegistration(BaseModel):
    id: Optional[int] = None
    fish_type: int = Field(..., gt=0)
    fish_age: int = Field(..., gt=0)
    amount: int = Field(..., ge=0)
    weight: Optional[float] = Field(None, ge=0)

    def to_batch_values(self) -> Dict[str, Any]:
        values = {
            "fish_type_id": self.fish_type,
            "fish_age_id": self.fish_age,
            "amount": self.amount,
            "weight": self.weight,
        }
        if self.id is not None:
            values["id"] = self.id
        return values


class BatchReview(BaseModel):
    id: int
    review_amount: int = Field(..., ge=0)
    review_weight: Optional[float] = Field(None, ge=0)

    def to_batch_values(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "review_amount": self.review_amount,
            "review_weight": self.review_weight,
        }


class BatchAdmin(BaseModel):
    id: Optional[int] = None
    fish_type: Optional[int] = Field(None, gt=0)
    fish_age: Optional[int] = Field(None, gt=0)
    amount: Optional[int] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    review_amount: Optional[int] = Field(None, ge=0)
    review_weight: Optional[float] = Field(None, ge=0)

    def to_batch_values(self) -> Dict[str, Any]:
        """Only the fields the caller sent, so omitted ones stay untouched"""
        renames = {"fish_type": "fish_type_id", "fish_age": "fish_age_id"}
        return {
            renames.get(name, name): value
            for name, value in self.model_dump(exclude_unset=True).items()
        }


# Operation payloads
class FishStockingRegister(BaseModel):
    event_time: datetime
    phone: Optional[str] = None
    assigned_to: int
    location: Location
    geom: Dict[str, Any] = Field(..., description="GeoJSON FeatureCollection")
    batches: List[BatchRegistration] = Field(..., min_length=1)
    fish_origin: FishOrigin
    fish_origin_company_name: Optional[str] = None
    fish_origin_reservoir: Optional[Reservoir] = None
    stocking_customer: Optional[int] = None

    @field_validator("event_time")
    @classmethod
    def local_event_time(cls, v):
        return _to_local_naive(v)


class FishStockingRegistrationUpdate(BaseModel):
    event_time: Optional[datetime] = None
    phone: Optional[str] = None
    assigned_to: Optional[int] = None
    location: Optional[Location] = None
    geom: Optional[Dict[str, Any]] = None
    batches: Optional[List[BatchRegistration]] = None
    fish_origin: Optional[FishOrigin] = None
    fish_origin_company_name: Optional[str] = None
    fish_origin_reservoir: Optional[Reservoir] = None
    stocking_customer: Optional[int] = None

    @field_validator("event_time")
    @classmethod
    def local_event_time(cls, v):
        return _to_local_naive(v)


class FishStockingReview(BaseModel):
    id: int
    review_location: Optional[Coordinates] = None
    waybill_no: str
    veterinary_approval_no: str
    veterinary_approval_order_no: Optional[str] = None
    container_water_temp: float
    water_temp: float
    batches: List[BatchReview]
    signatures: Optional[List[Signature]] = None
    comment: Optional[str] = None


class FishStockingAdminUpdate(BaseModel):
    event_time: Optional[datetime] = None
    phone: Optional[str] = None
    assigned_to: Optional[int] = None
    location: Optional[Location] = None
    geom: Optional[Dict[str, Any]] = None
    batches: Optional[List[BatchAdmin]] = None
    fish_origin: Optional[FishOrigin] = None
    fish_origin_company_name: Optional[str] = None
    fish_origin_reservoir: Optional[Reservoir] = None
    tenant: Optional[int] = None
    stocking_customer: Optional[int] = None
    inspector: Optional[int] = None
    canceled_at: Optional[datetime] = None
    signatures: Optional[List[Signature]] = None
    waybill_no: Optional[str] = None
    veterinary_approval_no: Optional[str] = None
    veterinary_approval_order_no: Optional[str] = None
    container_water_temp: Optional[float] = None
    water_temp: Optional[float] = None
    comment: Optional[str] = None

    @field_validator("event_time", "canceled_at")
    @classmethod
    def local_times(cls, v):
        return _to_local_naive(v)


# Responses
class FishBatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fish_type_id: int
    fish_age_id: int
    amount: int
    weight: Optional[float] = None
    review_amount: Optional[int] = None
    review_weight: Optional[float] = None


class FishStockingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: Optional[FishStockingStatus] = None
    event_time: datetime
    review_time: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    fish_origin: FishOrigin
    fish_origin_company_name: Optional[str] = None
    fish_origin_reservoir: Optional[Dict[str, Any]] = None
    tenant_id: Optional[int] = None
    stocking_customer_id: Optional[int] = None
    assigned_to_id: Optional[int] = None
    reviewed_by_id: Optional[int] = None
    created_by: Optional[int] = None
    phone: Optional[str] = None
    inspector: Optional[Dict[str, Any]] = None
    location: Dict[str, Any]
    geom: Optional[Dict[str, Any]] = None
    review_location: Optional[Dict[str, Any]] = None
    signatures: Optional[List[Dict[str, Any]]] = None
    waybill_no: Optional[str] = None
    veterinary_approval_no: Optional[str] = None
    veterinary_approval_order_no: Optional[str] = None
    container_water_temp: Optional[float] = None
    water_temp: Optional[float] = None
    comment: Optional[str] = None
    mandatory: bool = False
    batches: List[FishBatchResponse] = []


class FishStockingListResponse(BaseModel):
    items: List[FishStockingResponse]
    total: int
    skip: int
    limit: int


class OperationResponse(BaseModel):
    """Outcome of an operation that may remove the event"""
    success: bool
    removed: bool = False
    message: str
    fish_stocking: Optional[FishStockingResponse] = None


class RecentLocationResponse(BaseModel):
    """A water body the caller stocked before, as recorded on its latest event"""
    cadastral_id: Optional[str] = None
    name: Optional[str] = None
    municipality: Optional[Municipality] = None
    area: Optional[float] = None
    length: Optional[float] = None
    category: Optional[str] = None
    geom: Optional[Dict[str, Any]] = None


class FishStockingStatisticsResponse(BaseModel):
    fish_stocking_count: int
    fishing_area_count: int
    fish_count: int
