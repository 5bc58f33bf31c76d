"""Presentation layer - User interfaces."""
from .cli import AccountsCommand, DecayCommand, SchedulerCommand

__all__ = [
    "AccountsCommand",
    "DecayCommand",
    "SchedulerCommand",
]
