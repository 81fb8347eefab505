"""Rate limiting adapters.

This package keeps the per-client counter store behind a small abstraction
so the in-memory limiter can later be swapped for a shared store (e.g.
Redis) without changing the edge middleware's decision logic.
"""
