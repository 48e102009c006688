"""Data stores (Redis cache).

Stores handle connection lifecycle and caching only.
No business logic should live here.
"""
