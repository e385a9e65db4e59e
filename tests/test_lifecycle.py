from datetime import datetime, timezone

import pytest

from verichain.domain import lifecycle
from verichain.domain.errors import InvalidStateTransition
from verichain.domain.models import EventType, Product, Shipment, ShipmentStatus

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def shipment():
    product = Product(
        name="Vaccine",
        description="2-8C",
        manufacturer="manu-001",
        logistics_partner="logi-001",
        min_temperature=2.0,
        max_temperature=8.0,
    )
    return Shipment(
        product_id=product.id,
        product=product,
        manufacturer=product.manufacturer,
        logistics_partner=product.logistics_partner,
        consumer="cons-001",
        escrow_amount=50000.0,
    )


def _apply(shipment, event_type, verified, now=NOW):
    return lifecycle.apply_event(
        shipment,
        location="Pune",
        temperature=verified,
        event_type=event_type,
        reporter="driver-7",
        verified_temperature=verified,
        now=now,
    )


@pytest.mark.parametrize("temperature,expected", [
    (2.0, True),
    (8.0, True),
    (5.0, True),
    (1.9, False),
    (8.1, False),
])
def test_band_is_inclusive(shipment, temperature, expected):
    assert lifecycle.is_within_band(shipment.product, temperature) is expected


@pytest.mark.parametrize("event_type", [EventType.PICKUP, EventType.TRANSIT])
def test_pending_moves_in_transit_on_valid_reading(shipment, event_type):
    updated, event = _apply(shipment, event_type, 5.0)

    assert updated.status == ShipmentStatus.IN_TRANSIT
    assert updated.events == [event]
    assert event.is_temperature_valid is True
    assert updated.delivered_at is None


def test_input_shipment_is_not_mutated(shipment):
    _apply(shipment, EventType.PICKUP, 5.0)
    assert shipment.status == ShipmentStatus.PENDING
    assert shipment.events == []


@pytest.mark.parametrize("prior", list(ShipmentStatus))
@pytest.mark.parametrize("event_type", list(EventType))
def test_breach_always_compromises(shipment, prior, event_type):
    shipment.status = prior
    updated, event = _apply(shipment, event_type, 12.5)

    assert updated.status == ShipmentStatus.COMPROMISED
    assert event.is_temperature_valid is False
    assert len(updated.events) == 1


def test_breach_preempts_delivery(shipment):
    updated, _ = _apply(shipment, EventType.DELIVERY, 0.5)
    assert updated.status == ShipmentStatus.COMPROMISED
    assert updated.delivered_at is None


@pytest.mark.parametrize("event_type", list(EventType))
def test_compromised_is_sticky(shipment, event_type):
    shipment.status = ShipmentStatus.COMPROMISED
    updated, event = _apply(shipment, event_type, 5.0)

    assert updated.status == ShipmentStatus.COMPROMISED
    assert event.is_temperature_valid is True
    assert len(updated.events) == 1


@pytest.mark.parametrize("prior", [ShipmentStatus.PENDING, ShipmentStatus.IN_TRANSIT])
def test_valid_delivery_marks_delivered(shipment, prior):
    shipment.status = prior
    updated, _ = _apply(shipment, EventType.DELIVERY, 4.0)

    assert updated.status == ShipmentStatus.DELIVERED
    assert updated.delivered_at == NOW


def test_delivered_at_set_only_once(shipment):
    first, _ = _apply(shipment, EventType.DELIVERY, 4.0)
    later = datetime(2024, 3, 2, tzinfo=timezone.utc)
    second, _ = _apply(first, EventType.DELIVERY, 4.0, now=later)

    assert second.status == ShipmentStatus.DELIVERED
    assert second.delivered_at == NOW
    assert len(second.events) == 2


def test_in_transit_stays_in_transit(shipment):
    shipment.status = ShipmentStatus.IN_TRANSIT
    updated, _ = _apply(shipment, EventType.TRANSIT, 6.0)
    assert updated.status == ShipmentStatus.IN_TRANSIT


def test_events_keep_arrival_order(shipment):
    current = shipment
    ids = []
    for event_type, temp in [(EventType.PICKUP, 5.0), (EventType.TRANSIT, 9.0), (EventType.TRANSIT, 3.0)]:
        current, event = _apply(current, event_type, temp)
        ids.append(event.id)

    assert [e.id for e in current.events] == ids
    assert [e.is_temperature_valid for e in current.events] == [True, False, True]


def test_confirm_delivered_releases_escrow(shipment):
    shipment.status = ShipmentStatus.DELIVERED
    confirmed = lifecycle.confirm_delivery(shipment, now=NOW)

    assert confirmed.status == ShipmentStatus.CONFIRMED
    assert confirmed.escrow_released is True
    assert confirmed.confirmed_at == NOW
    assert shipment.escrow_released is False


@pytest.mark.parametrize("status", [s for s in ShipmentStatus if s != ShipmentStatus.DELIVERED])
def test_confirm_outside_delivered_is_rejected(shipment, status):
    shipment.status = status
    with pytest.raises(InvalidStateTransition, match="must be delivered"):
        lifecycle.confirm_delivery(shipment)
    assert shipment.escrow_released is False


def test_confirm_is_not_idempotent(shipment):
    shipment.status = ShipmentStatus.DELIVERED
    confirmed = lifecycle.confirm_delivery(shipment)
    with pytest.raises(InvalidStateTransition):
        lifecycle.confirm_delivery(confirmed)


def test_valid_delivery_after_confirmation_reopens_delivered(shipment):
    shipment.status = ShipmentStatus.DELIVERED
    confirmed = lifecycle.confirm_delivery(_apply(shipment, EventType.DELIVERY, 4.0)[0], now=NOW)
    later = datetime(2024, 3, 3, tzinfo=timezone.utc)

    redelivered, event = _apply(confirmed, EventType.DELIVERY, 5.0, now=later)

    assert event.is_temperature_valid is True
    assert redelivered.status == ShipmentStatus.DELIVERED
    assert redelivered.escrow_released is True
    assert redelivered.confirmed_at == NOW
    assert redelivered.delivered_at == NOW

    reconfirmed = lifecycle.confirm_delivery(redelivered, now=later)
    assert reconfirmed.status == ShipmentStatus.CONFIRMED
    assert reconfirmed.confirmed_at == NOW
