from concurrent.futures import ThreadPoolExecutor

import pytest

from verichain.domain.models import Product, Shipment, User, UserRole
from verichain.infrastructure.store import ShardedMap, Store


def _shipment(product, consumer="cons-001", manufacturer=None, logistics=None):
    return Shipment(
        product_id=product.id,
        product=product,
        manufacturer=manufacturer or product.manufacturer,
        logistics_partner=logistics or product.logistics_partner,
        consumer=consumer,
        escrow_amount=100.0,
    )


def test_put_and_get_product(store, cold_product):
    assert store.get_product(cold_product.id) == cold_product
    assert store.get_product("prod-missing") is None


def test_returned_values_are_snapshots(store, cold_product):
    shipment = store.put_shipment(_shipment(cold_product))
    fetched = store.get_shipment(shipment.id)
    fetched.escrow_released = True
    fetched.product.max_temperature = 99.0

    again = store.get_shipment(shipment.id)
    assert again.escrow_released is False
    assert again.product.max_temperature == 8.0


def test_update_shipment_replaces_whole_record(store, cold_product):
    shipment = store.put_shipment(_shipment(cold_product))
    shipment.consumer = "cons-002"
    store.update_shipment(shipment)

    assert store.get_shipment(shipment.id).consumer == "cons-002"
    assert len(store.list_shipments()) == 1


def test_listings(store, cold_product):
    store.put_user(User(id="u1", name="A", role=UserRole.CONSUMER, address="0x1"))
    store.put_shipment(_shipment(cold_product))
    store.put_shipment(_shipment(cold_product))

    assert len(store.list_products()) == 1
    assert len(store.list_shipments()) == 2
    assert [u.id for u in store.list_users()] == ["u1"]
    assert store.counts() == {"products": 1, "shipments": 2, "users": 1}


@pytest.mark.parametrize("role,user_id,field", [
    ("manufacturer", "manu-A", "manufacturer"),
    ("logistics", "logi-A", "logistics_partner"),
    ("consumer", "cons-A", "consumer"),
])
def test_list_shipments_by_user_matches_role_field(store, cold_product, role, user_id, field):
    mine = store.put_shipment(_shipment(cold_product, consumer="cons-A", manufacturer="manu-A", logistics="logi-A"))
    store.put_shipment(_shipment(cold_product, consumer="cons-B", manufacturer="manu-B", logistics="logi-B"))

    result = store.list_shipments_by_user(user_id, role)
    assert [s.id for s in result] == [mine.id]
    assert all(getattr(s, field) == user_id for s in result)


@pytest.mark.parametrize("role", ["admin", "", None, "Manufacturer"])
def test_list_shipments_by_user_unknown_role_is_empty(store, cold_product, role):
    store.put_shipment(_shipment(cold_product))
    assert store.list_shipments_by_user("manu-001", role) == []


def test_sharded_map_rejects_zero_shards():
    with pytest.raises(ValueError):
        ShardedMap(0)


def test_concurrent_writers_on_distinct_keys():
    store = Store(shards=8)

    def register(i):
        return store.put_product(Product(
            name=f"p{i}",
            description="",
            manufacturer="m",
            logistics_partner="l",
            min_temperature=0.0,
            max_temperature=10.0,
        )).id

    with ThreadPoolExecutor(max_workers=16) as pool:
        ids = list(pool.map(register, range(500)))

    assert len(set(ids)) == 500
    assert len(store.list_products()) == 500
    assert all(store.get_product(i) is not None for i in ids)


def test_read_your_writes_per_key(store, cold_product):
    shipments = [store.put_shipment(_shipment(cold_product)) for _ in range(8)]

    def writer(shipment):
        # Sole writer for this key: every read must see its latest write
        for i in range(200):
            shipment.escrow_amount = float(i)
            store.update_shipment(shipment)
            if store.get_shipment(shipment.id).escrow_amount != float(i):
                return False
        return True

    with ThreadPoolExecutor(max_workers=8) as pool:
        assert all(pool.map(writer, shipments))

    assert len(store.list_shipments()) == 8
