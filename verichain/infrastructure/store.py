"""In-memory entity store shared by every request.

Each map is lock-striped: an id hashes to one shard, and each shard guards its
own dict with its own lock. Writers on different ids never contend, and a read
after a write to the same id always sees that write or a later one.

Values are deep-copied on the way in and on the way out, so callers work on
snapshots and can never mutate stored state by accident.
"""

import threading
import zlib
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from verichain.core_settings import get_settings
from verichain.domain.models import Product, Shipment, User

T = TypeVar("T", bound=BaseModel)

# Role name -> shipment field matched against the user id
ROLE_FIELDS = {
    "manufacturer": "manufacturer",
    "logistics": "logistics_partner",
    "consumer": "consumer",
}


class _Shard(Generic[T]):
    __slots__ = ("lock", "items")

    def __init__(self):
        self.lock = threading.RLock()
        self.items: dict[str, T] = {}


class ShardedMap(Generic[T]):
    """Thread-safe id -> model map"""

    def __init__(self, shards: int = 16):
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._shards: list[_Shard[T]] = [_Shard() for _ in range(shards)]

    def _shard_for(self, key: str) -> _Shard[T]:
        # crc32 is stable across processes, unlike hash() on str
        return self._shards[zlib.crc32(key.encode("utf-8")) % len(self._shards)]

    def put(self, key: str, value: T) -> T:
        stored = value.model_copy(deep=True)
        shard = self._shard_for(key)
        with shard.lock:
            shard.items[key] = stored
        return stored.model_copy(deep=True)

    def get(self, key: str) -> Optional[T]:
        shard = self._shard_for(key)
        with shard.lock:
            value = shard.items.get(key)
        return value.model_copy(deep=True) if value is not None else None

    def values(self) -> list[T]:
        snapshot: list[T] = []
        for shard in self._shards:
            with shard.lock:
                snapshot.extend(shard.items.values())
        return [value.model_copy(deep=True) for value in snapshot]

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.items)
        return total

    def clear(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.items.clear()


class Store:
    """Owner of all mutable state: products, shipments and users"""

    def __init__(self, shards: int = 16):
        self.products: ShardedMap[Product] = ShardedMap(shards)
        self.shipments: ShardedMap[Shipment] = ShardedMap(shards)
        self.users: ShardedMap[User] = ShardedMap(shards)

    # Products
    def put_product(self, product: Product) -> Product:
        return self.products.put(product.id, product)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def list_products(self) -> list[Product]:
        return self.products.values()

    # Shipments
    def put_shipment(self, shipment: Shipment) -> Shipment:
        return self.shipments.put(shipment.id, shipment)

    def update_shipment(self, shipment: Shipment) -> Shipment:
        # Whole-record replace keyed by the shipment's own id (last write wins)
        return self.shipments.put(shipment.id, shipment)

    def get_shipment(self, shipment_id: str) -> Optional[Shipment]:
        return self.shipments.get(shipment_id)

    def list_shipments(self) -> list[Shipment]:
        return self.shipments.values()

    def list_shipments_by_user(self, user_id: str, role: Optional[str]) -> list[Shipment]:
        """Shipments where the field selected by ``role`` equals ``user_id``.

        Unknown or missing roles yield an empty list rather than an error.
        """
        field = ROLE_FIELDS.get(role or "")
        if field is None:
            return []
        return [s for s in self.shipments.values() if getattr(s, field) == user_id]

    # Users
    def put_user(self, user: User) -> User:
        return self.users.put(user.id, user)

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def list_users(self) -> list[User]:
        return self.users.values()

    def counts(self) -> dict[str, int]:
        return {
            "products": len(self.products),
            "shipments": len(self.shipments),
            "users": len(self.users),
        }

    def clear(self) -> None:
        self.products.clear()
        self.shipments.clear()
        self.users.clear()


settings = get_settings()
store = Store(shards=settings.STORE_SHARDS)


def get_store() -> Store:
    return store
