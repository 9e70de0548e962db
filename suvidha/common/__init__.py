"""Shared helpers used across layers."""

from .rate_limiter import RateLimiter

__all__ = ["RateLimiter"]
