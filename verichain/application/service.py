from datetime import datetime, timezone
from typing import List, Optional

from shared.core import get_logger, set_request_context
from verichain.domain import lifecycle
from verichain.domain.errors import NotFound, VerificationFailed
from verichain.domain.models import Product, Shipment, User
from verichain.infrastructure.store import Store
from verichain.infrastructure.weather import TemperatureVerifier, WeatherServiceError
from .passwords import verify_password
from .schemas import (
    EventCreate,
    PasswordVerifyRequest,
    PasswordVerifyResponse,
    ProductCreate,
    ShipmentCreate,
    WeatherRead,
)

logger = get_logger(__name__)


class ProductService:
    def __init__(self, store: Store):
        self.store = store

    def list(self) -> List[Product]:
        return self.store.list_products()

    def register(self, data: ProductCreate) -> Product:
        # No band-order validation: min > max is stored as submitted
        product = self.store.put_product(Product(**data.model_dump()))
        logger.info(
            f"Product registered: {product.id}",
            extra={"extra_fields": {"product_id": product.id, "manufacturer": product.manufacturer}},
        )
        return product


class ShipmentService:
    def __init__(self, store: Store, verifier: Optional[TemperatureVerifier] = None):
        self.store = store
        self.verifier = verifier

    def list(self) -> List[Shipment]:
        return self.store.list_shipments()

    def get(self, shipment_id: str) -> Shipment:
        shipment = self.store.get_shipment(shipment_id)
        if shipment is None:
            raise NotFound("Shipment not found")
        return shipment

    def list_for_user(self, user_id: str, role: Optional[str]) -> List[Shipment]:
        return self.store.list_shipments_by_user(user_id, role)

    def fund(self, data: ShipmentCreate) -> Shipment:
        product = self.store.get_product(data.product_id)
        if product is None:
            raise NotFound("Product not found")

        shipment = self.store.put_shipment(Shipment(
            product_id=product.id,
            product=product,
            manufacturer=product.manufacturer,
            logistics_partner=product.logistics_partner,
            consumer=data.consumer,
            escrow_amount=data.escrow_amount,
        ))
        logger.info(
            f"Escrow funded for shipment {shipment.id}",
            extra={"extra_fields": {
                "shipment_id": shipment.id,
                "product_id": product.id,
                "escrow_amount": shipment.escrow_amount,
            }},
        )
        return shipment

    def add_event(self, shipment_id: str, data: EventCreate) -> Shipment:
        """Verify the reported reading and advance the shipment.

        Fetch, verify, then write back. The verifier runs with no store lock
        held; concurrent events on one shipment are last-write-wins.
        """
        set_request_context(shipment_id=shipment_id)
        shipment = self.get(shipment_id)

        try:
            reading = self.verifier.verify(data.location, data.temperature)
        except WeatherServiceError as e:
            logger.error(f"Weather verification failed: {e}")
            raise VerificationFailed("Weather verification failed") from e

        updated, event = lifecycle.apply_event(
            shipment,
            location=data.location,
            temperature=data.temperature,
            event_type=data.event_type,
            reporter=data.reporter,
            verified_temperature=reading.temperature,
        )
        self.store.update_shipment(updated)

        logger.info(
            f"Event {event.event_type.value} recorded for shipment {shipment_id}",
            extra={"extra_fields": {
                "event_id": event.id,
                "verified_temperature": event.verified_temperature,
                "is_temperature_valid": event.is_temperature_valid,
                "status_before": shipment.status.value,
                "status_after": updated.status.value,
            }},
        )
        if not event.is_temperature_valid:
            logger.warning(
                f"Temperature breach on shipment {shipment_id}: "
                f"{event.verified_temperature} outside "
                f"[{shipment.product.min_temperature}, {shipment.product.max_temperature}]"
            )
        return updated

    def confirm_delivery(self, shipment_id: str) -> Shipment:
        set_request_context(shipment_id=shipment_id)
        shipment = self.get(shipment_id)
        confirmed = lifecycle.confirm_delivery(shipment)
        self.store.update_shipment(confirmed)
        logger.info(
            f"Delivery confirmed, escrow released for shipment {shipment_id}",
            extra={"extra_fields": {"escrow_amount": confirmed.escrow_amount}},
        )
        return confirmed


class UserService:
    def __init__(self, store: Store):
        self.store = store

    def list(self) -> List[User]:
        return self.store.list_users()


class WeatherService:
    def __init__(self, verifier: TemperatureVerifier):
        self.verifier = verifier

    def current(self, location: str) -> WeatherRead:
        try:
            temperature = self.verifier.current(location)
        except WeatherServiceError as e:
            logger.error(f"Current temperature lookup failed for {location}: {e}")
            raise VerificationFailed(str(e)) from e
        return WeatherRead(
            temperature=temperature,
            location=location,
            timestamp=datetime.now(timezone.utc),
        )


class AuthService:
    def verify(self, data: PasswordVerifyRequest) -> PasswordVerifyResponse:
        valid = verify_password(data.password, data.action)
        return PasswordVerifyResponse(
            valid=valid,
            message="Password verified successfully" if valid else "Invalid password",
        )
