from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum
import datetime
import uuid


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


class EventType(str, Enum):
    PICKUP = "pickup"
    TRANSIT = "transit"
    DELIVERY = "delivery"


class ShipmentStatus(str, Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    COMPROMISED = "compromised"
    DELIVERED = "delivered"
    CONFIRMED = "confirmed"


class UserRole(str, Enum):
    MANUFACTURER = "manufacturer"
    LOGISTICS = "logistics"
    CONSUMER = "consumer"


class Product(BaseModel):
    id: str = Field(default_factory=lambda: new_id("prod"))
    name: str
    description: str
    # Owning manufacturer and assigned carrier (user ids)
    manufacturer: str
    logistics_partner: str
    # Inclusive cold-chain band in degrees Celsius; ordering is not enforced
    min_temperature: float
    max_temperature: float
    registered_at: datetime.datetime = Field(default_factory=utcnow)


class ShipmentEvent(BaseModel):
    id: str = Field(default_factory=lambda: new_id("event"))
    timestamp: datetime.datetime = Field(default_factory=utcnow)
    location: str
    # Self-reported by the field reporter
    temperature: float
    # Independent reading used to decide validity
    verified_temperature: float
    reporter: str
    event_type: EventType
    is_temperature_valid: bool


class Shipment(BaseModel):
    id: str = Field(default_factory=lambda: new_id("ship"))
    product_id: str
    # Snapshot taken at funding time; later product changes do not propagate
    product: Product
    manufacturer: str
    logistics_partner: str
    consumer: str
    status: ShipmentStatus = ShipmentStatus.PENDING
    escrow_amount: float
    escrow_released: bool = False
    # Append-only, arrival order
    events: list[ShipmentEvent] = Field(default_factory=list)
    created_at: datetime.datetime = Field(default_factory=utcnow)
    # delivered_at / confirmed_at stay null until their transition happens
    delivered_at: Optional[datetime.datetime] = None
    confirmed_at: Optional[datetime.datetime] = None


class User(BaseModel):
    id: str
    name: str
    role: UserRole
    # Opaque wallet-style identifier, never validated
    address: str
