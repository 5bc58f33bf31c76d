"""Infrastructure API module."""
from .rate_limiter import RateLimiter
from .gateway import RateLimitedGateway
from .riot_client import RiotAPIClient

__all__ = [
    'RateLimiter',
    'RateLimitedGateway',
    'RiotAPIClient',
]
