"""Scheduled batch triggers."""
from .schedule_trigger import ScheduleTrigger, next_daily_run

__all__ = [
    'ScheduleTrigger',
    'next_daily_run',
]
