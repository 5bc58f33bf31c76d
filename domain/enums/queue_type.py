"""Queue type enumeration for ranked matches."""
from enum import Enum


class QueueType(Enum):
    """Ranked queues that count towards decay. Flex games never do."""

    RANKED_SOLO_5x5 = 420  # Solo/Duo Queue

    @property
    def queue_id(self) -> int:
        """Queue id used by match-v5 filters."""
        return self.value

    @property
    def api_queue_name(self) -> str:
        """Queue name string used by league-v4 entries."""
        return self.name
