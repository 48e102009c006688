"""Thin async wrapper around the Stripe SDK.

The Stripe SDK is blocking; every call runs in a worker thread so route
handlers stay async. Objects are returned as the SDK's StripeObject (a dict
subclass), which the catalog/checkout services read as plain mappings.
"""

import asyncio
import logging
from typing import Any

import stripe

from app.settings import get_settings

logger = logging.getLogger("uvicorn.error")


class StripeNotConfiguredError(RuntimeError):
    pass


class StripeGateway:
    """Stripe access for catalog reads and checkout writes."""

    def __init__(self, api_key: str | None = None, api_version: str | None = None):
        """Initialize gateway with API key and version (defaults from settings)."""
        settings = get_settings()
        self.api_key = api_key or settings.stripe_secret_key
        self.api_version = api_version or settings.stripe_api_version

    def _options(self) -> dict[str, str]:
        if not self.api_key:
            logger.error("STRIPE_SECRET_KEY is not set - cannot reach Stripe")
            raise StripeNotConfiguredError("STRIPE_SECRET_KEY is not set")
        return {"api_key": self.api_key, "stripe_version": self.api_version}

    async def list_active_products(self) -> list[Any]:
        """All active products, following pagination."""
        options = self._options()

        def _list() -> list[Any]:
            page = stripe.Product.list(active=True, expand=["data.default_price"], limit=100, **options)
            return list(page.auto_paging_iter())

        return await asyncio.to_thread(_list)

    async def list_active_prices(self, product_id: str) -> list[Any]:
        """All active prices of a product, following pagination."""
        options = self._options()

        def _list() -> list[Any]:
            page = stripe.Price.list(product=product_id, active=True, limit=100, **options)
            return list(page.auto_paging_iter())

        return await asyncio.to_thread(_list)

    async def retrieve_product(self, product_id: str) -> Any:
        """Retrieve a single product with its default price expanded."""
        options = self._options()
        return await asyncio.to_thread(
            stripe.Product.retrieve, product_id, expand=["default_price"], **options
        )

    async def create_checkout_session(self, **params: Any) -> Any:
        """Create a hosted checkout session."""
        options = self._options()
        return await asyncio.to_thread(stripe.checkout.Session.create, **params, **options)

    async def create_payment_link(self, **params: Any) -> Any:
        """Create a reusable payment link."""
        options = self._options()
        return await asyncio.to_thread(stripe.PaymentLink.create, **params, **options)
