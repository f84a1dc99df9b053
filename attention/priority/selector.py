"""
Diversity-constrained top-K selection.

Mandatory (always-include) items are kept first and count against their
source's cap; the rest are admitted greedily by score while their
source has cap room and the global cap is not reached. Among
discretionary items diversity beats raw score order.

Equal scores keep their input order (Python's sort is stable); this is
an implementation detail, not a contract.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from attention.core.config import PriorityConfig, DEFAULT_PRIORITY_CONFIG
from attention.core.models import SourceType, WorkItem
from attention.priority.rules import apply_score_threshold, is_always_include

logger = logging.getLogger(__name__)


def _by_score(items: List[WorkItem]) -> List[WorkItem]:
    return sorted(items, key=lambda item: item.priority_score, reverse=True)


def select_top_priority_items(
    items: List[WorkItem],
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> List[WorkItem]:
    """
    Select a bounded, source-diverse ranked list.

    Algorithm:
        1. Split into always-include and remaining items
        2. Sort remaining by priority_score, descending
        3. Seed per-source counts from the always-include items
        4. Admit remaining items while their source is under its cap,
           stopping once max_items are selected
        5. Re-sort the selection by priority_score

    Always-include items are never dropped for the global cap unless
    config.strict_max_items is set. A source whose cap is zero or
    negative is removed entirely, mandatory items included.

    Args:
        items: Scored items that passed exclusion and threshold
        config: Caps and cap policy
        now: Current datetime for the time-based include rules

    Returns:
        Ranked list of selected items
    """
    if now is None:
        now = datetime.now(timezone.utc)

    always_included: List[WorkItem] = []
    remaining: List[WorkItem] = []
    for item in items:
        if config.cap_for(item.source_type) <= 0:
            logger.debug("Source %s disabled by cap, dropping %s", item.source_type.value, item.id)
            continue
        if is_always_include(item, now):
            always_included.append(item)
        else:
            remaining.append(item)

    selected = list(always_included)
    source_counts: Dict[SourceType, int] = {}
    for item in always_included:
        source_counts[item.source_type] = source_counts.get(item.source_type, 0) + 1

    for item in _by_score(remaining):
        if len(selected) >= config.max_items:
            break

        count = source_counts.get(item.source_type, 0)
        if count < config.cap_for(item.source_type):
            selected.append(item)
            source_counts[item.source_type] = count + 1
        else:
            logger.debug("Source cap reached for %s, skipping %s", item.source_type.value, item.id)

    ranked = _by_score(selected)

    if config.strict_max_items:
        ranked = ranked[:max(0, config.max_items)]

    return ranked


def apply_all_rules(
    items: List[WorkItem],
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> List[WorkItem]:
    """Threshold then select: the full post-scoring rule pipeline"""
    if now is None:
        now = datetime.now(timezone.utc)
    return select_top_priority_items(apply_score_threshold(items, config, now), config, now)


def get_source_type_distribution(items: List[WorkItem]) -> Dict[SourceType, int]:
    """Count items per source type; every source type is present, 0 when absent"""
    distribution = {source_type: 0 for source_type in SourceType}
    for item in items:
        distribution[item.source_type] += 1
    return distribution
