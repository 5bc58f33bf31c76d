"""Domain enumerations."""
from .region import Region
from .queue_type import QueueType
from .tier import Tier

__all__ = [
    'Region',
    'QueueType',
    'Tier',
]
