from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from verichain.domain.models import Product
from verichain.infrastructure.store import Store, get_store
from verichain.infrastructure.weather import WeatherReading, WeatherServiceError, get_verifier
from verichain.main import app


class FakeVerifier:
    """Returns queued temperatures in order; ``None`` in the queue means fail."""

    def __init__(self, *temperatures):
        self.temperatures = list(temperatures)
        self.calls = []

    def queue(self, *temperatures):
        self.temperatures.extend(temperatures)

    def _next(self, location):
        self.calls.append(location)
        temperature = self.temperatures.pop(0) if self.temperatures else 5.0
        if temperature is None:
            raise WeatherServiceError("Weather API returned error: 503")
        return temperature

    def verify(self, location, reported_temperature):
        return WeatherReading(
            temperature=self._next(location),
            humidity=40.0,
            conditions="Clear",
            location=location,
            timestamp=datetime.now(timezone.utc),
        )

    def current(self, location):
        return self._next(location)


@pytest.fixture
def store():
    return Store(shards=4)


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def cold_product(store):
    return store.put_product(Product(
        name="Insulin",
        description="Keep refrigerated",
        manufacturer="manu-001",
        logistics_partner="logi-001",
        min_temperature=2.0,
        max_temperature=8.0,
    ))


@pytest.fixture
def client(store, verifier):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_verifier] = lambda: verifier
    yield TestClient(app)
    app.dependency_overrides = {}
