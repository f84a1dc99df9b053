"""
Priority rules: exclusion, always-include overrides, score threshold
and item validation.

Applied in a fixed order:
    1. Exclusion (on the raw source entity) - is the item eligible at all?
    2. Always-include (on the WorkItem) - is it mandatory whatever its score?
    3. Threshold - is everything else worth surfacing?

Lifecycle state always wins: a snoozed or completed item is excluded
even when it would otherwise be mandatory.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, List, Optional

from attention.core.config import PriorityConfig, DEFAULT_PRIORITY_CONFIG
from attention.core.models import (
    CalendarEvent,
    InboxItem,
    PipelineCompany,
    PortfolioCompany,
    ReadingItem,
    RecurringCommitment,
    SourceType,
    Task,
    WorkItem,
)
from attention.priority import scoring

logger = logging.getLogger(__name__)

# Calendar events that started longer ago than this are over
PAST_EVENT_GRACE_HOURS = 1.0

# Events starting within this forward window are mandatory
IMMINENT_EVENT_WINDOW_HOURS = 2.0

OVERDUE_IMPORTANCE_THRESHOLD = 0.8
COMMITMENT_URGENCY_THRESHOLD = 0.5


def exclusion_reason(entity: Any, source_type: SourceType, now: Optional[datetime] = None) -> Optional[str]:
    """
    Explain why a raw entity is ineligible, or None if it is eligible.

    Exclusion criteria:
        - Snoozed (snoozed_until in the future)
        - Completed task / resolved inbox message
        - Archived portfolio company / passed pipeline company
        - Archived reading item
        - Inactive recurring commitment
        - Calendar event that started more than an hour ago
    """
    if now is None:
        now = datetime.now(timezone.utc)
    source_type = SourceType(source_type)

    snoozed_until = getattr(entity, "snoozed_until", None)
    if snoozed_until is not None:
        hours = scoring.hours_until(snoozed_until, now)
        if hours is not None and hours > 0:
            return f"snoozed until {snoozed_until.isoformat()}"

    if source_type == SourceType.TASK and isinstance(entity, Task) and entity.completed:
        return "completed"
    if source_type == SourceType.INBOX and isinstance(entity, InboxItem) and entity.is_resolved:
        return "resolved"
    if (source_type == SourceType.PORTFOLIO_COMPANY and isinstance(entity, PortfolioCompany)
            and entity.status == "archived"):
        return "archived"
    if (source_type == SourceType.PIPELINE_COMPANY and isinstance(entity, PipelineCompany)
            and entity.status == "passed"):
        return "passed"
    if source_type == SourceType.READING_ITEM and isinstance(entity, ReadingItem) and entity.is_archived:
        return "archived"
    if (source_type == SourceType.RECURRING_COMMITMENT and isinstance(entity, RecurringCommitment)
            and not entity.is_active):
        return "inactive"

    if source_type == SourceType.CALENDAR_EVENT and isinstance(entity, CalendarEvent):
        hours = scoring.hours_until(entity.start_time, now)
        if hours is not None and -hours > PAST_EVENT_GRACE_HOURS:
            return "started more than an hour ago"

    return None


def should_exclude_from_priority(entity: Any, source_type: SourceType, now: Optional[datetime] = None) -> bool:
    """
    Check whether a raw source entity must never appear in the list.

    Evaluated against the source entity rather than the WorkItem because
    snooze and completion state live on the source.
    """
    return exclusion_reason(entity, source_type, now) is not None


def is_always_include(item: WorkItem, now: Optional[datetime] = None) -> bool:
    """
    Check whether an item bypasses the score threshold.

    Always-include criteria:
        - Overdue task with importance >= 0.8
        - Calendar event starting within the next 2 hours
          (an event that has already started does not qualify)
        - Recurring commitment with urgency >= 0.5

    Exclusion is not bypassed; it has already been applied.
    """
    if item.source_type == SourceType.TASK:
        return item.is_overdue and item.importance_score >= OVERDUE_IMPORTANCE_THRESHOLD

    if item.source_type == SourceType.CALENDAR_EVENT:
        hours = scoring.hours_until(item.event_start_at, now)
        return hours is not None and 0 <= hours < IMMINENT_EVENT_WINDOW_HOURS

    if item.source_type == SourceType.RECURRING_COMMITMENT:
        return item.urgency_score >= COMMITMENT_URGENCY_THRESHOLD

    return False


def apply_score_threshold(
    items: List[WorkItem],
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> List[WorkItem]:
    """
    Drop items scoring below config.min_score unless they are always-include.

    Args:
        items: Scored, eligible items
        config: Configuration carrying min_score
        now: Current datetime for the time-based include rules

    Returns:
        Items that pass, in their original order
    """
    kept = []
    for item in items:
        if item.priority_score >= config.min_score or is_always_include(item, now):
            kept.append(item)
        else:
            logger.debug(
                "Below threshold: %s (%.3f < %.3f)", item.id, item.priority_score, config.min_score
            )
    return kept


def _score_in_range(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if math.isnan(value):
        return False
    return 0.0 <= value <= 1.0


def find_validation_errors(item: WorkItem) -> List[str]:
    """List every reason item is invalid (empty when valid)"""
    errors = []

    for name in ("id", "source_id", "title"):
        if not getattr(item, name, None):
            errors.append(f"missing {name}")

    if not isinstance(item.source_type, SourceType):
        errors.append(f"unknown source_type {item.source_type!r}")

    scores = {
        "urgency_score": item.urgency_score,
        "importance_score": item.importance_score,
        "recency_score": item.recency_score,
        "commitment_score": item.commitment_score,
        "priority_score": item.priority_score,
    }
    if item.effort_score is not None:
        scores["effort_score"] = item.effort_score

    for name, value in scores.items():
        if not _score_in_range(value):
            errors.append(f"{name} out of range: {value!r}")

    return errors


def validate_priority_item(item: WorkItem) -> bool:
    """Check required identity fields are present and every score lies in [0, 1]"""
    return not find_validation_errors(item)
