"""
Core module for the priority engine
Contains configuration and model definitions
"""

from .config import Config, PriorityConfig, PriorityConfigError, ScoringWeights
from .models import (
    SourceType,
    WorkItem,
    PrioritySignal,
    Task,
    InboxItem,
    CalendarEvent,
    PortfolioCompany,
    PipelineCompany,
    ReadingItem,
    RecurringCommitment,
)

__all__ = [
    'Config', 'PriorityConfig', 'PriorityConfigError', 'ScoringWeights',
    'SourceType', 'WorkItem', 'PrioritySignal',
    'Task', 'InboxItem', 'CalendarEvent', 'PortfolioCompany',
    'PipelineCompany', 'ReadingItem', 'RecurringCommitment',
]
