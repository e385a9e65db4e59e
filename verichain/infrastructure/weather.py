"""
Temperature verification against OpenWeatherMap.

When the upstream cannot be reached (or no API key is configured) the client
answers with a synthetic reading derived from a per-city baseline plus random
jitter. That is a normal operating mode, not an error. Timeouts, HTTP error
statuses and malformed payloads do raise ``WeatherServiceError``.
"""

import random
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

import httpx
from pydantic import BaseModel

from shared.core import get_logger
from verichain.core_settings import get_settings

logger = get_logger(__name__)

# Baseline temperatures (°C) used for synthetic readings
MOCK_BASE_TEMPERATURES: Dict[str, float] = {
    "Mumbai": 32.0,
    "Delhi": 28.0,
    "Bangalore": 24.0,
    "Chennai": 30.0,
    "Kolkata": 29.0,
    "Hyderabad": 26.0,
    "Pune": 25.0,
    "Ahmedabad": 31.0,
    "Jaipur": 27.0,
    "Lucknow": 23.0,
    "Surat": 33.0,
    "Kanpur": 26.0,
    "Nagpur": 29.0,
    "Indore": 27.0,
    "Thane": 31.0,
}
DEFAULT_BASE_TEMPERATURE = 25.0
DEFAULT_HUMIDITY = 50.0
MOCK_JITTER = 10.0


class WeatherServiceError(Exception):
    """Upstream answered, but not with a usable reading"""


def _section(data: Dict[str, Any], key: str, expected: type, default: Any) -> Any:
    """``data[key]`` checked against ``expected``; absent or null gives ``default``"""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, expected):
        raise WeatherServiceError(
            f"Malformed weather payload: '{key}' must be {expected.__name__}, got {type(value).__name__}"
        )
    return value


def _number(value: Any, default: float, field: str) -> float:
    if value is None:
        return default
    # bool is an int subclass, but never a reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise WeatherServiceError(f"Malformed weather payload: '{field}' is not a number")
    return float(value)


class WeatherReading(BaseModel):
    temperature: float
    humidity: float
    conditions: str
    location: str
    timestamp: datetime


class TemperatureVerifier(Protocol):
    def verify(self, location: str, reported_temperature: float) -> WeatherReading: ...

    def current(self, location: str) -> float: ...


class WeatherClient:
    """OpenWeatherMap client with a synthetic fallback"""

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.openweathermap.org/data/2.5/weather",
        country_code: str = "IN",
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
        rng: Optional[random.Random] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.country_code = country_code
        self.timeout = timeout
        self._transport = transport
        self._rng = rng or random.Random()

    @property
    def synthetic_only(self) -> bool:
        return not self.api_key

    def verify(self, location: str, reported_temperature: float) -> WeatherReading:
        """Independent reading for ``location``.

        ``reported_temperature`` is accepted for the record only; the reading
        never depends on it. A missing or null ``temp`` or ``humidity`` falls
        back to the defaults; a value of the wrong type is malformed.
        """
        data = self._fetch(location)
        if data is None:
            return self._mock_reading(location)

        main = _section(data, "main", dict, {})
        weather = _section(data, "weather", list, [])
        first = weather[0] if weather else {}
        if not isinstance(first, dict):
            raise WeatherServiceError("Malformed weather payload: 'weather' entries must be objects")

        temperature = _number(main.get("temp"), DEFAULT_BASE_TEMPERATURE, "temp")
        humidity = _number(main.get("humidity"), DEFAULT_HUMIDITY, "humidity")

        return WeatherReading(
            temperature=round(temperature, 1),
            humidity=humidity,
            conditions=str(first.get("description") or "Unknown"),
            location=str(data.get("name") or location),
            timestamp=datetime.now(timezone.utc),
        )

    def current(self, location: str) -> float:
        data = self._fetch(location)
        if data is None:
            return self._mock_temperature(location)

        main = _section(data, "main", dict, {})
        if main.get("temp") is None:
            raise WeatherServiceError("Temperature data not found in response")
        return round(_number(main["temp"], DEFAULT_BASE_TEMPERATURE, "temp"), 1)

    def _fetch(self, location: str) -> Optional[Dict[str, Any]]:
        """Raw upstream payload, or None when the synthetic fallback applies"""
        if self.synthetic_only:
            return None

        params = {
            "q": f"{location},{self.country_code}",
            "appid": self.api_key,
            "units": "metric",
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(self.base_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Weather API timed out for {location}")
            raise WeatherServiceError(f"Weather API timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"Weather API returned error: {e.response.status_code}")
            raise WeatherServiceError(f"Weather API returned error: {e.response.status_code}") from e
        except httpx.TransportError as e:
            logger.warning(f"Weather API unreachable, using synthetic reading for {location}: {e}")
            return None
        except ValueError as e:
            raise WeatherServiceError(f"Malformed weather payload: {e}") from e

        if not isinstance(data, dict):
            raise WeatherServiceError("Malformed weather payload")
        return data

    def _mock_temperature(self, location: str) -> float:
        base = MOCK_BASE_TEMPERATURES.get(location, DEFAULT_BASE_TEMPERATURE)
        variation = (self._rng.random() - 0.5) * MOCK_JITTER
        return round(base + variation, 1)

    def _mock_reading(self, location: str) -> WeatherReading:
        temperature = self._mock_temperature(location)
        if temperature > 30:
            conditions = "Hot"
        elif temperature < 10:
            conditions = "Cold"
        else:
            conditions = "Moderate"
        return WeatherReading(
            temperature=temperature,
            humidity=float(self._rng.randint(0, 100)),
            conditions=conditions,
            location=location,
            timestamp=datetime.now(timezone.utc),
        )


def get_verifier() -> TemperatureVerifier:
    settings = get_settings()
    return WeatherClient(
        api_key=settings.WEATHER_API_KEY,
        base_url=settings.WEATHER_BASE_URL,
        country_code=settings.WEATHER_COUNTRY_CODE,
        timeout=settings.WEATHER_TIMEOUT_SECONDS,
    )
