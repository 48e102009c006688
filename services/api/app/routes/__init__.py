"""API routes."""

from fastapi import APIRouter

from app.routes import checkout, products

api_router = APIRouter()

# Product page endpoints (catalog + variation state)
api_router.include_router(products.router, prefix="/v1/products", tags=["products"])

# Checkout endpoints (Stripe sessions / payment links)
api_router.include_router(checkout.router, prefix="/v1/checkout", tags=["checkout"])
