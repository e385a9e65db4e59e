from pydantic import BaseModel
from typing import Generic, Optional, TypeVar
from datetime import datetime

from verichain.domain.models import EventType

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    # Present only when success is true
    data: Optional[T] = None
    message: str

    @classmethod
    def ok(cls, data: T, message: str = "Success") -> "ApiResponse[T]":
        return cls(success=True, data=data, message=message)


class ProductCreate(BaseModel):
    name: str
    description: str
    manufacturer: str
    min_temperature: float
    max_temperature: float
    logistics_partner: str


class ShipmentCreate(BaseModel):
    product_id: str
    consumer: str
    # Accepted as-is; sign and magnitude are not checked
    escrow_amount: float


class EventCreate(BaseModel):
    location: str
    temperature: float
    event_type: EventType
    reporter: str


class PasswordVerifyRequest(BaseModel):
    password: str
    action: str


class PasswordVerifyResponse(BaseModel):
    valid: bool
    message: str


class WeatherRead(BaseModel):
    temperature: float
    # Placeholder; the current-temperature lookup only reports temperature
    humidity: float = 0.0
    conditions: str = "Current"
    location: str
    timestamp: datetime
