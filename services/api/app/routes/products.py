"""Product page endpoints.

GET  /v1/products                    - Storefront product listing
GET  /v1/products/{slug}             - Product page bootstrap (auto-select applied)
POST /v1/products/{slug}/selection   - Apply a choice, return pruned selections + state

Routers are thin: the variation engine is pure and the selection endpoint is
stateless, so the client always sends the selections it currently holds.
"""

from fastapi import APIRouter, HTTPException, Path

from app.schemas import (
    ErrorResponse,
    Product,
    ProductPageResponse,
    SelectionRequest,
    SelectionResponse,
)
from app.services.catalog import CatalogError, get_product, list_products
from app.services.stripe_gateway import StripeNotConfiguredError
from app.services.variation_engine import (
    create_variation_state,
    get_current_variation_image,
    initial_selections,
    update_selection,
)

router = APIRouter()


def catalog_unavailable(exc: Exception) -> HTTPException:
    """Map a catalog failure to a structured 502/503 error."""
    if isinstance(exc, StripeNotConfiguredError):
        return HTTPException(
            status_code=503,
            detail={
                "error": {
                    "code": "CATALOG_NOT_CONFIGURED",
                    "message": "Payments platform is not configured",
                    "detail": None,
                }
            },
        )
    return HTTPException(
        status_code=502,
        detail={
            "error": {
                "code": "CATALOG_UNAVAILABLE",
                "message": "Products could not be loaded",
                "detail": None,
            }
        },
    )


async def _load_product(slug: str) -> Product:
    try:
        product = await get_product(slug)
    except (CatalogError, StripeNotConfiguredError) as e:
        raise catalog_unavailable(e) from e

    if product is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error": {
                    "code": "PRODUCT_NOT_FOUND",
                    "message": f"Product {slug} not found",
                    "detail": {"slug": slug},
                }
            },
        )
    return product


@router.get("", response_model=list[Product], responses={502: {"model": ErrorResponse}})
async def get_products() -> list[Product]:
    """List active storefront products."""
    try:
        return await list_products()
    except (CatalogError, StripeNotConfiguredError) as e:
        raise catalog_unavailable(e) from e


@router.get("/{slug}", response_model=ProductPageResponse, responses={404: {"model": ErrorResponse}})
async def get_product_page(
    slug: str = Path(
        description="Product slug",
        min_length=1,
        max_length=200,
        pattern=r"^[\w-]+$",
        examples=["bodega-cat-tshirt"],
    ),
) -> ProductPageResponse:
    """Get product page data with its initial variation state.

    Returns:
        ProductPageResponse with product, selections, variationState and displayPrice.
    """
    product = await _load_product(slug)
    definitions = product.variation_definitions

    selections = initial_selections(definitions)
    state = create_variation_state(definitions, selections)

    return ProductPageResponse(
        product=product,
        selections=selections,
        variation_state=state,
        display_price=product.base_price + state.total_price,
        image=get_current_variation_image(definitions, selections, product.images),
    )


@router.post(
    "/{slug}/selection",
    response_model=SelectionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def select_option(
    request: SelectionRequest,
    slug: str = Path(
        description="Product slug",
        min_length=1,
        max_length=200,
        pattern=r"^[\w-]+$",
    ),
) -> SelectionResponse:
    """Apply the user's choice and rebuild the variation state.

    Direct dependents of the changed variation are dropped when their stored
    option is no longer visible.
    """
    product = await _load_product(slug)
    definitions = product.variation_definitions

    selections = update_selection(
        definitions,
        request.selections,
        request.variation_id,
        request.option_id,
    )
    state = create_variation_state(definitions, selections)

    return SelectionResponse(
        selections=selections,
        variation_state=state,
        display_price=product.base_price + state.total_price,
        image=get_current_variation_image(definitions, selections, product.images),
    )
