"""Demo data loaded at startup so the dashboards have something to show."""

from verichain.domain.models import Product, Shipment, ShipmentStatus, User, UserRole
from shared.core import get_logger

from .store import Store

logger = get_logger(__name__)

DEMO_USERS = [
    {"id": "manu-001", "name": "TechCorp Manufacturing", "role": UserRole.MANUFACTURER, "address": "0x1234...abcd"},
    {"id": "logi-001", "name": "FastTrack Logistics", "role": UserRole.LOGISTICS, "address": "0x5678...efgh"},
    {"id": "cons-001", "name": "Global Retail Chain", "role": UserRole.CONSUMER, "address": "0x9012...ijkl"},
]


def seed_demo_data(store: Store) -> None:
    users = [store.put_user(User(**row)) for row in DEMO_USERS]
    manufacturer, logistics, consumer = users

    product = store.put_product(Product(
        id="prod-001",
        name="Temperature-Sensitive Medication",
        description="Critical pharmaceutical requiring cold chain maintenance",
        manufacturer=manufacturer.id,
        logistics_partner=logistics.id,
        min_temperature=2.0,
        max_temperature=8.0,
    ))

    store.put_shipment(Shipment(
        id="ship-001",
        product_id=product.id,
        product=product,
        manufacturer=manufacturer.id,
        logistics_partner=logistics.id,
        consumer=consumer.id,
        status=ShipmentStatus.PENDING,
        escrow_amount=50000.0,
    ))

    logger.info("Demo data initialized", extra={"extra_fields": store.counts()})
