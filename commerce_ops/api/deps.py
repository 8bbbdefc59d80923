"""FastAPI dependencies for the external providers.

Each provider is built once per process from settings; tests swap them out
through ``app.dependency_overrides``.
"""

from functools import lru_cache

from commerce_ops.core_settings import get_settings
from commerce_ops.infrastructure.mailer import ResendMailer
from commerce_ops.infrastructure.payments import StripeGateway
from commerce_ops.infrastructure.quote_cache import ShippingQuoteCache
from commerce_ops.infrastructure.shipping import ShippoClient


@lru_cache
def get_payment_gateway() -> StripeGateway:
    settings = get_settings()
    return StripeGateway(
        settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        app_url=settings.APP_URL,
    )


@lru_cache
def get_shipping_provider() -> ShippoClient:
    settings = get_settings()
    return ShippoClient(settings.SHIPPO_API_KEY, api_base=settings.SHIPPO_API_BASE, timeout=settings.HTTP_TIMEOUT_SECONDS)


@lru_cache
def get_mailer() -> ResendMailer:
    settings = get_settings()
    return ResendMailer(
        settings.RESEND_API_KEY,
        from_address=settings.MAIL_FROM,
        sender_name=settings.MAIL_SENDER_NAME,
        bcc=settings.mail_bcc,
        api_base=settings.RESEND_API_BASE,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


@lru_cache
def get_quote_cache() -> ShippingQuoteCache:
    return ShippingQuoteCache(ttl_seconds=get_settings().SHIPPING_QUOTE_TTL_SECONDS)
