"""Checkout endpoints.

POST /v1/checkout/session       - Hosted checkout session (single item or cart)
POST /v1/checkout/payment-link  - Payment link for a single item

Every line is checked against the variation engine first: checkout is refused
while a required variation has no selection.
"""

import logging
from collections.abc import Mapping

from fastapi import APIRouter, HTTPException, Request

from app.schemas import CheckoutRequest, CheckoutResponse, ErrorResponse, PaymentLinkRequest
from app.services.catalog import CatalogError, get_product_by_id
from app.services.checkout import (
    CheckoutError,
    create_cart_checkout_session,
    create_checkout_session,
    create_payment_link,
)
from app.services.stripe_gateway import StripeNotConfiguredError
from app.services.variation_engine import create_variation_state

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


async def _require_complete_selection(product_id: str, selections: Mapping[str, str]) -> None:
    """Raise 404/422 unless the product exists and its selections are valid.

    CatalogError from the product lookup propagates to the caller.
    """
    product = await get_product_by_id(product_id)
    if product is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error": {
                    "code": "PRODUCT_NOT_FOUND",
                    "message": f"Product {product_id} not found",
                    "detail": {"productId": product_id},
                }
            },
        )

    state = create_variation_state(product.variation_definitions, selections)
    if not state.is_valid:
        raise HTTPException(
            status_code=422,
            detail={
                "error": {
                    "code": "INCOMPLETE_SELECTION",
                    "message": "Required variations are missing a selection",
                    "detail": {
                        "productId": product_id,
                        "missingRequired": state.missing_required,
                    },
                }
            },
        )


def _checkout_failed(exc: Exception) -> HTTPException:
    if isinstance(exc, StripeNotConfiguredError):
        return HTTPException(
            status_code=503,
            detail={
                "error": {
                    "code": "CHECKOUT_NOT_CONFIGURED",
                    "message": "Payments platform is not configured",
                    "detail": None,
                }
            },
        )
    return HTTPException(
        status_code=502,
        detail={
            "error": {
                "code": "CHECKOUT_FAILED",
                "message": str(exc),
                "detail": None,
            }
        },
    )


@router.post(
    "/session",
    response_model=CheckoutResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def post_checkout_session(body: CheckoutRequest, request: Request) -> CheckoutResponse:
    """Create a checkout session.

    Cart checkout when `items` is set, single-item checkout otherwise.

    Raises:
        HTTPException 400: If neither items nor productId is given.
        HTTPException 422: If a required variation has no selection.
    """
    request_url = str(request.url)

    try:
        if body.items:
            for item in body.items:
                await _require_complete_selection(item.product_id, item.selected_variations)
            url = await create_cart_checkout_session(body.items, request_url=request_url)
            return CheckoutResponse(url=url)

        if not body.product_id:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": {
                        "code": "PRODUCT_ID_REQUIRED",
                        "message": "Product ID is required",
                        "detail": None,
                    }
                },
            )

        selections = body.selected_variations or {}
        await _require_complete_selection(body.product_id, selections)
        url = await create_checkout_session(
            body.product_id,
            quantity=body.quantity or 1,
            selected_variations=selections,
            request_url=request_url,
        )
    except (CatalogError, CheckoutError, StripeNotConfiguredError) as e:
        logger.error(f"Checkout failed: {e}")
        raise _checkout_failed(e) from e

    return CheckoutResponse(url=url)


@router.post(
    "/payment-link",
    response_model=CheckoutResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def post_payment_link(body: PaymentLinkRequest) -> CheckoutResponse:
    """Create a payment link for a single product and its selections."""
    try:
        await _require_complete_selection(body.product_id, body.selected_variations)
        url = await create_payment_link(
            body.product_id,
            quantity=body.quantity,
            selected_variations=body.selected_variations,
        )
    except (CatalogError, CheckoutError, StripeNotConfiguredError) as e:
        logger.error(f"Payment link failed: {e}")
        raise _checkout_failed(e) from e

    return CheckoutResponse(url=url)
