"""Application services root exports."""
from . import decay_engine
from .decay_engine import ReconcileResult
from .reconciliation_service import ReconciliationService
from .batch_processor import BatchProcessor, BatchResult, BatchError, CancellationToken
from .account_registration import AccountRegistrationService, UserStats

__all__ = [
    "decay_engine",
    "ReconcileResult",
    "ReconciliationService",
    "BatchProcessor",
    "BatchResult",
    "BatchError",
    "CancellationToken",
    "AccountRegistrationService",
    "UserStats",
]
