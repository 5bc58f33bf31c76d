"""Presentation CLI exports."""
from .accounts_command import AccountsCommand
from .decay_command import DecayCommand
from .scheduler_command import SchedulerCommand

__all__ = [
    "AccountsCommand",
    "DecayCommand",
    "SchedulerCommand",
]
