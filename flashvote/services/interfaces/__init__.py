"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .rate_limit import RateLimitStore, vote_rate_limit_key
from .memory_rate_limit import InMemoryRateLimitStore

__all__ = ['RateLimitStore', 'InMemoryRateLimitStore', 'vote_rate_limit_key']
