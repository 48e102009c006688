"""Business logic services.

Services contain all business logic and are called by routes.
The variation engine is pure; Stripe-facing services accept a gateway explicitly.
"""
