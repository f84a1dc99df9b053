"""
Priority module for the unified priority engine.

Provides source adapters, dimension scoring, rules, diversity-constrained
selection, explainability and the engine facade.
"""

from .scoring import (
    DimensionScores,
    compute_priority_score,
    compute_task_urgency_score,
    compute_task_importance_score,
    compute_recency_score,
    compute_inbox_urgency_score,
    compute_company_staleness_score,
    compute_calendar_urgency_score,
)
from .adapters import adapt_entity, generate_work_item_id
from .explain import generate_reasoning, generate_signals, explain_item
from .rules import (
    should_exclude_from_priority,
    is_always_include,
    apply_score_threshold,
    validate_priority_item,
)
from .selector import select_top_priority_items, apply_all_rules, get_source_type_distribution
from .sources import SourceSnapshot, JsonSnapshotSource, fetch_all_sources
from .engine import PriorityEngine, PriorityResult, PriorityStats

__all__ = [
    # Scoring
    'DimensionScores',
    'compute_priority_score',
    'compute_task_urgency_score',
    'compute_task_importance_score',
    'compute_recency_score',
    'compute_inbox_urgency_score',
    'compute_company_staleness_score',
    'compute_calendar_urgency_score',
    # Adapters
    'adapt_entity',
    'generate_work_item_id',
    # Explainability
    'generate_reasoning',
    'generate_signals',
    'explain_item',
    # Rules
    'should_exclude_from_priority',
    'is_always_include',
    'apply_score_threshold',
    'validate_priority_item',
    # Selection
    'select_top_priority_items',
    'apply_all_rules',
    'get_source_type_distribution',
    # Sources
    'SourceSnapshot',
    'JsonSnapshotSource',
    'fetch_all_sources',
    # Engine
    'PriorityEngine',
    'PriorityResult',
    'PriorityStats',
]
