#!/usr/bin/env python3
"""Seed a Stripe (test mode) account with sample storefront products.

Creates:
- T-Shirt with the "shirt" preset (Size -> Color), custom slug
- Art print with the "art" preset (Material -> Size)
- Coffee mug without variations (slug generated from the name)

Each product is flagged for the storefront (metadata flag == "true") and gets
one base price set as its default price. Variation definitions are stored as
JSON in the product's `variations` metadata.

Usage:
    cd services/api
    python -m scripts.setup_stripe_products
"""

import asyncio
import json
import logging
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import stripe  # noqa: E402
from dotenv import load_dotenv  # noqa: E402
from redis.exceptions import RedisError  # noqa: E402

from app.services.variation_presets import create_example_variations  # noqa: E402
from app.settings import get_settings  # noqa: E402
from app.stores.redis import close_redis, init_redis, invalidate_catalog_cache  # noqa: E402

load_dotenv()

logger = logging.getLogger("uvicorn.error")

# ============================================================
# Sample products
# ============================================================

SAMPLE_PRODUCTS = [
    {
        "name": "Bodega Cat T-Shirt",
        "description": "A comfortable cotton t-shirt featuring the Bodega Cat logo",
        "image": "https://via.placeholder.com/400x400?text=T-Shirt",
        "unit_amount": 2500,  # $25.00
        "preset": "shirt",
        "metadata": {
            "slug": "bodega-cat-tshirt",
            "productTypeId": "clothing",
            "category": "Clothing",
            "brand": "Bodega Cat",
            "sku": "TSHIRT-001",
            "tags": ["clothing", "tshirt", "cotton"],
        },
    },
    {
        "name": "Bodega Cat Art Print",
        "description": "The Bodega Cat, printed on your material of choice",
        "image": "https://via.placeholder.com/400x400?text=Art+Print",
        "unit_amount": 4000,  # $40.00
        "preset": "art",
        "metadata": {
            "productTypeId": "art",
            "category": "Art",
            "brand": "Bodega Cat",
            "sku": "PRINT-001",
            "tags": ["art", "print"],
        },
    },
    {
        "name": "Bodega Cat Coffee Mug",
        "description": "A ceramic coffee mug with the Bodega Cat design",
        "image": "https://via.placeholder.com/400x400?text=Coffee+Mug",
        "unit_amount": 1500,  # $15.00
        "preset": None,
        "metadata": {
            "productTypeId": "accessories",
            "category": "Kitchen",
            "brand": "Bodega Cat",
            "sku": "MUG-001",
            "tags": ["kitchen", "mug", "ceramic"],
        },
    },
]


def build_product_metadata(sample: dict, flag_key: str) -> dict[str, str]:
    """Stripe metadata values must be strings: lists/definitions go in as JSON."""
    metadata = {k: v for k, v in sample["metadata"].items() if k != "tags"}
    metadata["tags"] = json.dumps(sample["metadata"].get("tags", []))
    metadata[flag_key] = "true"

    if sample["preset"]:
        variations = create_example_variations(sample["preset"])
        metadata["variations"] = json.dumps(
            [v.model_dump(mode="json", by_alias=True, exclude_none=True) for v in variations]
        )
    return metadata


def create_sample_product(sample: dict, options: dict[str, str], flag_key: str) -> str:
    product = stripe.Product.create(
        name=sample["name"],
        description=sample["description"],
        images=[sample["image"]],
        metadata=build_product_metadata(sample, flag_key),
        **options,
    )
    price = stripe.Price.create(
        product=product.id,
        unit_amount=sample["unit_amount"],
        currency="usd",
        **options,
    )
    stripe.Product.modify(product.id, default_price=price.id, **options)
    return product.id


async def _invalidate_cache() -> None:
    try:
        await init_redis()
        await invalidate_catalog_cache()
    except (RedisError, OSError):
        logger.exception("Redis unavailable, catalog cache not invalidated")
    finally:
        await close_redis()


def main() -> None:
    settings = get_settings()
    if not settings.stripe_secret_key:
        print("STRIPE_SECRET_KEY is not set (environment or .env)")
        sys.exit(1)

    options = {"api_key": settings.stripe_secret_key, "stripe_version": settings.stripe_api_version}

    created: list[dict[str, str]] = []
    for sample in SAMPLE_PRODUCTS:
        product_id = create_sample_product(sample, options, settings.catalog_flag_key)
        created.append({"id": product_id, "name": sample["name"]})

    asyncio.run(_invalidate_cache())

    print({"ok": True, "created": created})


if __name__ == "__main__":
    main()
