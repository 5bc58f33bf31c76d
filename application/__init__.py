"""Application layer - decay rules, batch passes and scheduling."""
from .services import (
    AccountRegistrationService,
    BatchProcessor,
    BatchResult,
    CancellationToken,
    ReconciliationService,
)
from .scheduling import ScheduleTrigger

__all__ = [
    'AccountRegistrationService',
    'BatchProcessor',
    'BatchResult',
    'CancellationToken',
    'ReconciliationService',
    'ScheduleTrigger',
]
