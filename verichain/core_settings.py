from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    SERVICE_NAME: str = "verichain-service"
    SERVICE_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Empty key keeps the weather client in synthetic mode
    WEATHER_API_KEY: str = ""
    WEATHER_BASE_URL: str = "https://api.openweathermap.org/data/2.5/weather"
    WEATHER_COUNTRY_CODE: str = "IN"
    WEATHER_TIMEOUT_SECONDS: float = 5.0

    STORE_SHARDS: int = 16
    SEED_DEMO_DATA: bool = True
    CORS_ORIGINS: list[str] = ["*"]

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
