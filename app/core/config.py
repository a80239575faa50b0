"""Application configuration."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_timeout: float = 10.0  # seconds, passed to the driver

    # Storefront
    restaurant_name: str = "Restaurant"
    app_url: str = "http://localhost:8000"
    default_locale: str = "en"
    environment: str = "development"  # development, production

    # Admin panel
    admin_password: Optional[str] = None
    admin_session_hours: int = 24

    # Shopper cart session
    cart_cookie_name: str = "cart_session"
    cart_cookie_max_age: int = 60 * 60 * 24 * 30

    # Payments (mock mode when no Stripe key is configured)
    stripe_secret_key: Optional[str] = None
    payment_webhook_secret: Optional[str] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()
