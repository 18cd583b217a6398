from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Experiences Booking API"
    # Comma-separated origins for CORS. If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SSL_CERT_REQS: str = "CERT_REQUIRED"  # applied to rediss:// URLs that do not set it

    # Pricing
    CURRENCY: str = "INR"
    TAX_RATE: Decimal = Decimal("0.10")
    TIMEZONE: str = "Asia/Kolkata"  # promo day/time restrictions and slot times are local to this zone

    # Booking policy
    CANCELLATION_WINDOW_HOURS: int = 24
    MAX_GUESTS_PER_BOOKING: int = 20

    # Transient storage conflicts (lock timeouts, stale version) inside reserve/redeem
    STORAGE_RETRY_ATTEMPTS: int = 3
    STORAGE_RETRY_BACKOFF_SECONDS: float = 0.05
    DB_LOCK_TIMEOUT_SECONDS: int = 30  # SQLite busy timeout


settings = Settings()
