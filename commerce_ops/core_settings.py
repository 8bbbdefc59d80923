from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    SERVICE_NAME: str = "commerce-ops"
    SERVICE_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: Optional[str] = None
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "commerce"
    POSTGRES_USER: str = "commerce"
    POSTGRES_PASSWORD: str = "commerce"

    AUTH_ENABLED: bool = True
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    ADMIN_ROLES: str = "ADMIN,SUPER_ADMIN"

    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Payment gateway (Stripe)
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    APP_URL: str = "http://localhost:3000"

    # Shipping-rate provider (Shippo)
    SHIPPO_API_KEY: Optional[str] = None
    SHIPPO_API_BASE: str = "https://api.goshippo.com"
    SHIPPING_QUOTE_TTL_SECONDS: int = 900
    SHIP_FROM_NAME: Optional[str] = None
    SHIP_FROM_COMPANY: Optional[str] = None
    SHIP_FROM_STREET1: Optional[str] = None
    SHIP_FROM_STREET2: Optional[str] = None
    SHIP_FROM_CITY: Optional[str] = None
    SHIP_FROM_STATE: Optional[str] = None
    SHIP_FROM_ZIP: Optional[str] = None
    SHIP_FROM_COUNTRY: str = "US"
    SHIP_FROM_PHONE: Optional[str] = None
    SHIP_FROM_EMAIL: Optional[str] = None

    # Email provider (Resend)
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_BASE: str = "https://api.resend.com"
    MAIL_FROM: str = "contact@example.com"
    MAIL_SENDER_NAME: str = "Commerce Ops"
    MAIL_BCC: str = ""

    LOW_STOCK_THRESHOLD: int = 10
    ENFORCE_STATUS_TRANSITIONS: bool = False
    RUN_MIGRATIONS: bool = True

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def admin_roles(self) -> set[str]:
        return {role.strip() for role in self.ADMIN_ROLES.split(",") if role.strip()}

    @property
    def mail_bcc(self) -> list[str]:
        return [addr.strip() for addr in self.MAIL_BCC.split(",") if addr.strip()]

    @property
    def ship_from_address(self) -> Optional[dict]:
        """Ship-from address in provider format, or None when not configured."""
        if not (self.SHIP_FROM_STREET1 and self.SHIP_FROM_CITY and self.SHIP_FROM_STATE and self.SHIP_FROM_ZIP):
            return None
        return {
            "name": self.SHIP_FROM_NAME or self.SHIP_FROM_COMPANY or self.SERVICE_NAME,
            "company": self.SHIP_FROM_COMPANY,
            "street1": self.SHIP_FROM_STREET1,
            "street2": self.SHIP_FROM_STREET2,
            "city": self.SHIP_FROM_CITY,
            "state": self.SHIP_FROM_STATE,
            "zip": self.SHIP_FROM_ZIP,
            "country": self.SHIP_FROM_COUNTRY,
            "phone": self.SHIP_FROM_PHONE,
            "email": self.SHIP_FROM_EMAIL,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
