"""Catalog service: storefront products from Stripe products + prices.

Flow:
1. List active Stripe products flagged for the storefront (metadata flag == "true")
2. Fetch active prices per product; products without prices are skipped
3. Transform to Product: lowest price is the base price, variation definitions
   come from the `variations` metadata JSON (fallback: group prices by their
   `variation` / `option` metadata tags)

Malformed metadata never propagates: it is logged and degrades to the fallback
or empty value. The product listing is cached in Redis when available.
"""

import asyncio
import json
import logging
import re
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

import stripe
from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

from app.schemas.product import Product, ProductDimensions, ProductMetadata, ProductPrice
from app.schemas.variation import OptionDefinition, VariationDefinition, VariationKind
from app.services.stripe_gateway import StripeGateway
from app.settings import get_settings
from app.stores.redis import get_catalog_cache, set_catalog_cache

logger = logging.getLogger("uvicorn.error")

_VARIATIONS_ADAPTER = TypeAdapter(list[VariationDefinition])


class CatalogError(RuntimeError):
    pass


def generate_slug(name: str) -> str:
    """Generate a URL slug from a product name.

    Example:
        >>> generate_slug("Bodega Cat Coffee Mug!")
        "bodega-cat-coffee-mug"
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def is_storefront_product(product: Mapping[str, Any]) -> bool:
    """Whether a Stripe product is flagged for the storefront."""
    metadata = product.get("metadata") or {}
    return metadata.get(get_settings().catalog_flag_key) == "true"


def product_slug(product: Mapping[str, Any]) -> str:
    metadata = product.get("metadata") or {}
    return metadata.get("slug") or generate_slug(product.get("name") or "")


# ============================================================
# Stripe reads
# ============================================================


async def list_products(gateway: StripeGateway | None = None, *, use_cache: bool = True) -> list[Product]:
    """List storefront products.

    Args:
        gateway: Stripe gateway (defaults to one built from settings).
        use_cache: Whether to read/write the Redis listing cache.

    Returns:
        Products flagged for the storefront that have at least one active price.
    """
    use_cache = use_cache and get_settings().catalog_cache_enabled
    if use_cache:
        cached = await _try_get_cached_products()
        if cached is not None:
            logger.info(f"Catalog loaded from cache: {len(cached)} products")
            return cached

    gateway = gateway or StripeGateway()
    try:
        raw_products = await gateway.list_active_products()
        flagged = [p for p in raw_products if is_storefront_product(p)]
        price_lists = await asyncio.gather(
            *(gateway.list_active_prices(p["id"]) for p in flagged)
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe catalog listing failed: {e}")
        raise CatalogError("Failed to load products from Stripe") from e

    products: list[Product] = []
    for raw_product, prices in zip(flagged, price_lists):
        if not prices:
            continue
        try:
            products.append(transform_stripe_product(raw_product, prices))
        except CatalogError as e:
            logger.warning(str(e))

    logger.info(f"Catalog fetched from Stripe: {len(products)} products")
    if use_cache:
        await _try_set_cached_products(products)
    return products


async def get_product(slug: str, gateway: StripeGateway | None = None) -> Product | None:
    """Find a storefront product by slug (metadata `slug` or generated from name)."""
    products = await list_products(gateway)
    return next((p for p in products if p.slug == slug), None)


async def get_product_by_id(product_id: str, gateway: StripeGateway | None = None) -> Product | None:
    """Retrieve a storefront product by Stripe id.

    Returns:
        Product, or None if Stripe has no such product, it is not flagged,
        or it has no valid active prices.

    Raises:
        CatalogError: If Stripe cannot be reached or rejects the request.
    """
    gateway = gateway or StripeGateway()
    try:
        raw_product = await gateway.retrieve_product(product_id)
        if not is_storefront_product(raw_product):
            return None
        prices = await gateway.list_active_prices(raw_product["id"])
    except stripe.InvalidRequestError as e:
        if e.code == "resource_missing":
            return None
        logger.error(f"Stripe rejected product lookup {product_id}: {e}")
        raise CatalogError(f"Failed to load product {product_id} from Stripe") from e
    except stripe.StripeError as e:
        logger.error(f"Error fetching product by ID {product_id}: {e}")
        raise CatalogError(f"Failed to load product {product_id} from Stripe") from e

    if not prices:
        return None
    try:
        return transform_stripe_product(raw_product, prices)
    except CatalogError as e:
        logger.warning(f"Product {product_id} is not sellable: {e}")
        return None


# ============================================================
# Transformation (pure)
# ============================================================


def transform_stripe_product(
    product: Mapping[str, Any],
    prices: Sequence[Mapping[str, Any]],
) -> Product:
    """Transform a Stripe product and its active prices into a storefront Product.

    Raises:
        CatalogError: If no price has a positive unit amount.
    """
    lowest: Mapping[str, Any] | None = None
    for price in prices:
        amount = price.get("unit_amount")
        if amount and (lowest is None or amount < lowest["unit_amount"]):
            lowest = price

    if lowest is None:
        raise CatalogError(f"No valid prices found for product {product['id']}")

    base_currency = lowest["currency"]
    base_prices = [p for p in prices if p.get("currency") == base_currency]
    metadata = product.get("metadata") or {}

    return Product(
        id=product["id"],
        name=product.get("name") or "",
        description=product.get("description") or "",
        metadata=_parse_product_metadata(product["id"], metadata),
        images=list(product.get("images") or []),
        active=bool(product.get("active", True)),
        slug=product_slug(product),
        base_price=lowest["unit_amount"],
        currency=base_currency,
        stripe_product_id=product["id"],
        stripe_price_id=lowest["id"],
        prices=[
            ProductPrice(
                id=p["id"],
                unit_amount=p.get("unit_amount"),
                currency=p["currency"],
                metadata=dict(p.get("metadata") or {}),
            )
            for p in base_prices
        ],
        variation_definitions=parse_product_variations(product, base_prices),
        created_at=datetime.fromtimestamp(product.get("created") or 0, tz=timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def parse_product_variations(
    product: Mapping[str, Any],
    prices: Sequence[Mapping[str, Any]],
) -> list[VariationDefinition]:
    """Variation definitions from product metadata, falling back to price tags.

    Fallback: prices are grouped by (metadata.variation or "Default",
    metadata.option or "Standard"); each group becomes an option of an
    independent, optional variation, priced relative to the first price.
    """
    metadata = product.get("metadata") or {}
    raw_variations = metadata.get("variations")
    if raw_variations:
        try:
            return _VARIATIONS_ADAPTER.validate_json(raw_variations)
        except ValidationError as e:
            logger.warning(
                f"Failed to parse variations for product {product.get('id')}: "
                f"{e.error_count()} error(s), falling back to price tags"
            )

    groups: dict[tuple[str, str], list[Mapping[str, Any]]] = {}
    for price in prices:
        price_metadata = price.get("metadata") or {}
        key = (
            price_metadata.get("variation") or "Default",
            price_metadata.get("option") or "Standard",
        )
        groups.setdefault(key, []).append(price)

    if not groups:
        return []

    first_amount = prices[0].get("unit_amount") or 0
    options_by_variation: dict[str, list[OptionDefinition]] = {}
    for (variation_name, option_name), group in groups.items():
        price = group[0]  # first price of the group represents the option
        options_by_variation.setdefault(variation_name, []).append(
            OptionDefinition(
                id=option_name,
                name=option_name,
                display_name=option_name,
                price_modifier=(price.get("unit_amount") or 0) - first_amount,
                available=True,
                images=_parse_price_images(price),
            )
        )

    return [
        VariationDefinition(
            id=name,
            name=name,
            display_name=name,
            kind=VariationKind.INDEPENDENT,
            order=index,
            required=False,
            options=options,
        )
        for index, (name, options) in enumerate(options_by_variation.items(), start=1)
    ]


def _parse_product_metadata(product_id: str, metadata: Mapping[str, Any]) -> ProductMetadata:
    tags = _load_json_field(product_id, metadata, "tags")
    if not isinstance(tags, list):
        tags = []

    weight: float | None = None
    if metadata.get("weight"):
        try:
            weight = float(metadata["weight"])
        except (TypeError, ValueError):
            logger.warning(f"Invalid weight for product {product_id}: {metadata['weight']!r}")

    dimensions: ProductDimensions | None = None
    raw_dimensions = _load_json_field(product_id, metadata, "dimensions")
    if isinstance(raw_dimensions, dict):
        try:
            dimensions = ProductDimensions.model_validate(raw_dimensions)
        except ValidationError:
            logger.warning(f"Invalid dimensions for product {product_id}")

    return ProductMetadata(
        product_type_id=metadata.get("productTypeId"),
        tags=[str(t) for t in tags],
        category=metadata.get("category"),
        brand=metadata.get("brand"),
        sku=metadata.get("sku"),
        weight=weight,
        dimensions=dimensions,
    )


def _parse_price_images(price: Mapping[str, Any]) -> list[str] | None:
    images = _load_json_field(price.get("id", ""), price.get("metadata") or {}, "images")
    if isinstance(images, list) and images:
        return [str(i) for i in images]
    return None


def _load_json_field(owner_id: str, metadata: Mapping[str, Any], key: str) -> Any:
    raw = metadata.get(key)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"Invalid JSON in metadata.{key} for {owner_id}")
        return None


# ============================================================
# Cache helpers
# ============================================================


async def _try_get_cached_products() -> list[Product] | None:
    try:
        payload = await get_catalog_cache()
    except (RuntimeError, RedisError):
        return None
    if not payload:
        return None

    try:
        return [Product.model_validate(p) for p in payload.get("products", [])]
    except ValidationError:
        logger.warning("Cached catalog payload is invalid, refetching from Stripe")
        return None


async def _try_set_cached_products(products: list[Product]) -> None:
    payload = {"products": [p.model_dump(mode="json", by_alias=True) for p in products]}
    try:
        await set_catalog_cache(payload)
    except (RuntimeError, RedisError):
        # Redis may be unavailable in tests/local minimal env.
        return
