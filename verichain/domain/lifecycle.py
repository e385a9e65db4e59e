"""Shipment lifecycle rules.

Pure functions: they take the current shipment and return a new one, never
touching the input. Persistence and verification happen in the service layer.
"""

import datetime
from typing import Optional

from .errors import InvalidStateTransition
from .models import (
    EventType,
    Product,
    Shipment,
    ShipmentEvent,
    ShipmentStatus,
    utcnow,
)


def is_within_band(product: Product, temperature: float) -> bool:
    """Inclusive check against the product's cold-chain band"""
    return product.min_temperature <= temperature <= product.max_temperature


def next_status(current: ShipmentStatus, event_type: EventType, temperature_valid: bool) -> ShipmentStatus:
    """Resolve the status after an event. Order matters: first match wins.

    A breached reading overrides delivery, and compromised is never
    downgraded by a later in-band reading.
    """
    if not temperature_valid and current != ShipmentStatus.COMPROMISED:
        return ShipmentStatus.COMPROMISED
    elif event_type == EventType.DELIVERY and current != ShipmentStatus.COMPROMISED:
        return ShipmentStatus.DELIVERED
    elif current == ShipmentStatus.PENDING:
        return ShipmentStatus.IN_TRANSIT
    return current


def apply_event(
    shipment: Shipment,
    *,
    location: str,
    temperature: float,
    event_type: EventType,
    reporter: str,
    verified_temperature: float,
    now: Optional[datetime.datetime] = None,
) -> tuple[Shipment, ShipmentEvent]:
    """Build the event record and compute the shipment that results from it.

    Returns ``(updated_shipment, event)``. The event is appended whichever
    status rule fired.
    """
    now = now or utcnow()
    valid = is_within_band(shipment.product, verified_temperature)
    event = ShipmentEvent(
        timestamp=now,
        location=location,
        temperature=temperature,
        verified_temperature=verified_temperature,
        reporter=reporter,
        event_type=event_type,
        is_temperature_valid=valid,
    )

    updated = shipment.model_copy(deep=True)
    updated.status = next_status(shipment.status, event_type, valid)
    if updated.status == ShipmentStatus.DELIVERED and updated.delivered_at is None:
        updated.delivered_at = now
    updated.events.append(event)
    return updated, event


def confirm_delivery(shipment: Shipment, now: Optional[datetime.datetime] = None) -> Shipment:
    """Release escrow. Only a delivered shipment may be confirmed; the first
    confirmation time is kept if it is confirmed again after a re-delivery."""
    if shipment.status != ShipmentStatus.DELIVERED:
        raise InvalidStateTransition("Shipment must be delivered before confirmation")

    confirmed = shipment.model_copy(deep=True)
    confirmed.status = ShipmentStatus.CONFIRMED
    confirmed.escrow_released = True
    if confirmed.confirmed_at is None:
        confirmed.confirmed_at = now or utcnow()
    return confirmed
