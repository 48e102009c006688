"""Checkout service: resolve selections to Stripe prices and create sessions.

Flow:
1. Resolve each line's Stripe price: a price whose metadata matches every
   selected (variation, option) pair, else the product's default price
2. Create a hosted checkout session (or payment link) with those line items
3. Success/cancel URLs are built from the request origin, then SITE_URL,
   then the local dev server

Selection completeness is checked by the caller (routes) through the
variation engine before a session is created.
"""

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlparse

import stripe

from app.schemas.checkout import CheckoutItem
from app.services.stripe_gateway import StripeGateway
from app.settings import get_settings

logger = logging.getLogger("uvicorn.error")

SUCCESS_PATH = "/success?session_id={CHECKOUT_SESSION_ID}"
CANCEL_PATH = "/shop"
DEV_FALLBACK_ORIGIN = "http://localhost:8787"


class CheckoutError(RuntimeError):
    pass


def construct_url(path: str, request_url: str | None = None) -> str:
    """Build an absolute URL for `path`.

    Priority: origin of `request_url`, then SITE_URL (https assumed when it has
    no scheme), then the local dev server.
    """
    if request_url:
        parsed = urlparse(request_url)
        if parsed.scheme and parsed.netloc:
            return f"{parsed.scheme}://{parsed.netloc}{path}"

    site_url = get_settings().site_url
    if site_url:
        base = site_url if site_url.startswith("http") else f"https://{site_url}"
        return f"{base.rstrip('/')}{path}"

    return f"{DEV_FALLBACK_ORIGIN}{path}"


def select_matching_price(
    prices: Sequence[Mapping[str, Any]],
    selected_variations: Mapping[str, str],
) -> Mapping[str, Any] | None:
    """First price whose metadata carries every selected (variation, option) pair."""
    for price in prices:
        metadata = price.get("metadata") or {}
        if all(metadata.get(key) == value for key, value in selected_variations.items()):
            return price
    return None


async def find_matching_price(
    product_id: str,
    selected_variations: Mapping[str, str],
    gateway: StripeGateway | None = None,
) -> str:
    """Resolve the Stripe price id for a product and its selections.

    Returns:
        Matching price id, or the product's default price id.
    """
    gateway = gateway or StripeGateway()
    product = await gateway.retrieve_product(product_id)
    price_id = _price_id(product.get("default_price"))

    if selected_variations:
        prices = await gateway.list_active_prices(product_id)
        matching = select_matching_price(prices, selected_variations)
        if matching is not None:
            price_id = matching["id"]

    if not price_id:
        raise CheckoutError(f"No price available for product {product_id}")
    return price_id


async def create_line_items(
    items: Sequence[CheckoutItem],
    gateway: StripeGateway | None = None,
) -> list[dict[str, Any]]:
    """Stripe line items for a cart."""
    gateway = gateway or StripeGateway()
    line_items: list[dict[str, Any]] = []
    for item in items:
        price_id = await find_matching_price(item.product_id, item.selected_variations, gateway)
        line_items.append({"price": price_id, "quantity": item.quantity})
    return line_items


async def create_cart_checkout_session(
    items: Sequence[CheckoutItem],
    request_url: str | None = None,
    gateway: StripeGateway | None = None,
) -> str:
    """Create a checkout session for several cart items.

    Returns:
        Hosted checkout URL.
    """
    gateway = gateway or StripeGateway()
    try:
        line_items = await create_line_items(items, gateway)
        session = await gateway.create_checkout_session(
            payment_method_types=["card"],
            line_items=line_items,
            mode="payment",
            success_url=construct_url(SUCCESS_PATH, request_url),
            cancel_url=construct_url(CANCEL_PATH, request_url),
        )
    except stripe.StripeError as e:
        logger.error(f"Error creating cart checkout session: {e}")
        raise CheckoutError("Failed to create checkout session") from e

    return session["url"]


async def create_checkout_session(
    product_id: str,
    quantity: int = 1,
    selected_variations: Mapping[str, str] | None = None,
    request_url: str | None = None,
    gateway: StripeGateway | None = None,
) -> str:
    """Create a checkout session for a single product.

    The session metadata records the product id and the selections as JSON.

    Returns:
        Hosted checkout URL.
    """
    gateway = gateway or StripeGateway()
    selected_variations = dict(selected_variations or {})
    try:
        price_id = await find_matching_price(product_id, selected_variations, gateway)
        session = await gateway.create_checkout_session(
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": quantity}],
            mode="payment",
            success_url=construct_url(SUCCESS_PATH, request_url),
            cancel_url=construct_url(CANCEL_PATH, request_url),
            metadata={
                "productId": product_id,
                "selectedVariations": json.dumps(selected_variations) if selected_variations else "",
            },
        )
    except stripe.StripeError as e:
        logger.error(f"Error creating checkout session for {product_id}: {e}")
        raise CheckoutError("Failed to create checkout session") from e

    return session["url"]


async def create_payment_link(
    product_id: str,
    quantity: int = 1,
    selected_variations: Mapping[str, str] | None = None,
    gateway: StripeGateway | None = None,
) -> str:
    """Create a payment link for a product and its selections.

    Returns:
        Payment link URL.
    """
    gateway = gateway or StripeGateway()
    selected_variations = dict(selected_variations or {})
    try:
        price_id = await find_matching_price(product_id, selected_variations, gateway)
        link = await gateway.create_payment_link(
            line_items=[{"price": price_id, "quantity": quantity}],
            metadata={
                "productId": product_id,
                "selectedVariations": json.dumps(selected_variations),
            },
        )
    except stripe.StripeError as e:
        logger.error(f"Error creating payment link for {product_id}: {e}")
        raise CheckoutError("Failed to create payment link") from e

    return link["url"]


def _price_id(default_price: Any) -> str | None:
    # default_price is an id, or a Price object when expanded
    if default_price is None:
        return None
    if isinstance(default_price, str):
        return default_price
    return default_price.get("id")
