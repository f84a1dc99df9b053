"""
Priority scoring algorithm for the unified priority engine.

Scores every source on four independent dimensions, each on a closed
[0, 1] scale:

    urgency     - time pressure (deadlines, meeting proximity, email age, staleness)
    importance  - explicit priority, stakes, company linkage
    recency     - how recently the item was touched
    commitment  - how explicitly the item was promised (meetings, habits)

plus an optional effort score (0 = quick, 1 = large).

Score formula:
    score = (urgency * w_u) + (importance * w_i) + (recency * w_r)
            + (commitment * w_c) [+ (1 - effort) * w_e]

Every scorer is total: a missing or unparseable timestamp falls into a
defined default branch instead of raising.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from attention.core.config import PriorityConfig, DEFAULT_PRIORITY_CONFIG


@dataclass(frozen=True)
class DimensionScores:
    """Dimension scores for one item, input to the composer."""
    urgency: float
    importance: float
    recency: float
    commitment: float
    effort: Optional[float] = None


def _now_utc(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(target: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Calendar days from now until target (negative when target is in the past)."""
    target = _as_utc(target)
    if target is None:
        return None
    return (target.date() - _now_utc(now).date()).days


def days_since(value: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Calendar days elapsed since value (0 for today or a future value)."""
    elapsed = days_until(value, now)
    if elapsed is None:
        return None
    return max(0, -elapsed)


def hours_until(target: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """Fractional hours from now until target (negative once it has passed)."""
    target = _as_utc(target)
    if target is None:
        return None
    return (target - _now_utc(now)).total_seconds() / 3600.0


def compute_priority_score(
    scores: DimensionScores,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG
) -> float:
    """
    Combine dimension scores into one priority score.

    The effort term is inverted so quick wins are not penalized relative
    to large items of equal importance. It only applies when an effort
    score is present and the effort weight is positive. The result is
    clamped to [0, 1] whatever the weights sum to.

    Args:
        scores: Dimension scores for the item
        config: Configuration carrying the weights

    Returns:
        Priority score between 0.0 and 1.0
    """
    weights = config.weights

    score = (
        scores.urgency * weights.urgency +
        scores.importance * weights.importance +
        scores.recency * weights.recency +
        scores.commitment * weights.commitment
    )

    if scores.effort is not None and weights.effort > 0:
        score += (1.0 - scores.effort) * weights.effort

    return max(0.0, min(1.0, score))


# ============================================================================
# Shared scorers
# ============================================================================

def compute_task_urgency_score(
    scheduled_for: Optional[datetime],
    now: Optional[datetime] = None
) -> float:
    """
    Calculate task urgency (0.0-1.0) from deadline proximity.

    Scoring:
        - Overdue: 0.9 + 0.02 per day overdue, capped at 1.0
        - Due today: 0.9
        - Due tomorrow: 0.7
        - Due within 3 days: 0.5
        - Due within 7 days: 0.3
        - Due later: 0.1
        - No due date: 0.2

    Args:
        scheduled_for: Task due date
        now: Current datetime (defaults to utcnow)

    Returns:
        Urgency score between 0.0 and 1.0
    """
    days = days_until(scheduled_for, now)

    if days is None:
        return 0.2

    if days < 0:
        return min(1.0, round(0.9 + 0.02 * abs(days), 4))
    elif days == 0:
        return 0.9
    elif days == 1:
        return 0.7
    elif days <= 3:
        return 0.5
    elif days <= 7:
        return 0.3
    else:
        return 0.1


def compute_task_importance_score(priority: Optional[str], has_company_link: bool) -> float:
    """
    Calculate task importance (0.0-1.0) from explicit priority.

    Priority mapping:
        - high: 0.9
        - medium: 0.6
        - low / unset: 0.3
        - +0.2 when linked to a company, capped at 1.0
    """
    priority_map = {
        "high": 0.9,
        "medium": 0.6,
        "low": 0.3,
    }
    score = priority_map.get(priority or "", 0.3)

    if has_company_link:
        score += 0.2

    return min(1.0, round(score, 4))


def compute_recency_score(updated_at: Optional[datetime], now: Optional[datetime] = None) -> float:
    """
    Calculate recency (0.0-1.0) from the last update.

    Scoring:
        - Updated today: 1.0
        - Yesterday: 0.8
        - Within 3 days: 0.5
        - Within 7 days: 0.3
        - Older or unknown: 0.1
    """
    days = days_since(updated_at, now)

    if days is None:
        return 0.1
    if days == 0:
        return 1.0
    elif days == 1:
        return 0.8
    elif days <= 3:
        return 0.5
    elif days <= 7:
        return 0.3
    return 0.1


def compute_task_effort_score(effort_minutes: Optional[int]) -> Optional[float]:
    """
    Bucket an effort estimate into an effort score.

    quick (<= 15 min) -> 0.2, medium (<= 60 min) -> 0.5, deep -> 0.9.
    Returns None when there is no usable estimate.
    """
    if isinstance(effort_minutes, bool) or not isinstance(effort_minutes, (int, float)):
        return None
    if effort_minutes < 0:
        return None
    if effort_minutes <= 15:
        return 0.2
    if effort_minutes <= 60:
        return 0.5
    return 0.9


# ============================================================================
# Inbox
# ============================================================================

def compute_inbox_urgency_score(received_at: Optional[datetime], now: Optional[datetime] = None) -> float:
    """
    Calculate inbox urgency (0.0-1.0) from message age.

    Scoring:
        - < 4 hours: 1.0
        - < 24 hours: 0.8
        - < 48 hours: 0.6
        - < 72 hours: 0.4
        - Older or unknown: 0.2
    """
    until = hours_until(received_at, now)
    if until is None:
        return 0.2

    hours_old = -until
    if hours_old < 4:
        return 1.0
    elif hours_old < 24:
        return 0.8
    elif hours_old < 48:
        return 0.6
    elif hours_old < 72:
        return 0.4
    return 0.2


def compute_inbox_importance_score(is_read: bool, has_company_link: bool) -> float:
    """Unread 0.9, read 0.7, +0.1 when linked to a company (cap 1.0)."""
    score = 0.7 if is_read else 0.9
    if has_company_link:
        score = min(1.0, round(score + 0.1, 4))
    return score


def compute_inbox_commitment_score(is_read: bool) -> float:
    """An unread message implies a pending reply."""
    return 0.3 if is_read else 0.6


# ============================================================================
# Calendar
# ============================================================================

def compute_calendar_urgency_score(event_start_at: Optional[datetime], now: Optional[datetime] = None) -> float:
    """
    Calculate calendar urgency (0.0-1.0) from proximity to start.

    Scoring:
        - Already started: 0.5 (post-meeting follow-up)
        - < 1 hour: 1.0
        - < 4 hours: 0.9
        - < 24 hours: 0.7
        - < 48 hours: 0.5
        - Later or unknown start: 0.3
    """
    hours = hours_until(event_start_at, now)

    if hours is None:
        return 0.3
    if hours < 0:
        return 0.5
    elif hours < 1:
        return 1.0
    elif hours < 4:
        return 0.9
    elif hours < 24:
        return 0.7
    elif hours < 48:
        return 0.5
    return 0.3


def compute_calendar_commitment_score(attendee_count: int) -> float:
    """Meetings are commitments; more attendees means a firmer one."""
    if attendee_count >= 5:
        return 1.0
    if attendee_count >= 2:
        return 0.9
    return 0.8


# ============================================================================
# Companies
# ============================================================================

def compute_company_staleness_score(
    last_interaction_at: Optional[datetime],
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> float:
    """
    Calculate company urgency (0.0-1.0) from interaction staleness.

    Scoring:
        - Never contacted: 0.9
        - > 60 days: 0.8
        - > 30 days: 0.6
        - > company_stale_threshold days: 0.4
        - Recent: 0.2
    """
    days = days_since(last_interaction_at, now)

    if days is None:
        return 0.9
    if days > 60:
        return 0.8
    elif days > 30:
        return 0.6
    elif days > config.company_stale_threshold:
        return 0.4
    return 0.2


def compute_portfolio_importance_score(status: str, open_task_count: int = 0) -> float:
    """Importance by portfolio status, +0.1 when the company has open tasks."""
    status_map = {
        "active": 0.8,
        "watching": 0.5,
        "exited": 0.2,
        "archived": 0.2,
    }
    score = status_map.get(status, 0.5)

    if open_task_count > 0:
        score = min(1.0, round(score + 0.1, 4))

    return score


def compute_pipeline_urgency_score(
    last_interaction_at: Optional[datetime],
    close_date: Optional[datetime],
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> float:
    """
    Calculate pipeline urgency: the stronger of staleness and close-date pressure.

    Close-date pressure:
        - Past close date: 0.95
        - Closing within 7 days: 0.85
        - Closing within 14 days: 0.7
    """
    urgency = compute_company_staleness_score(last_interaction_at, config, now)

    days = days_until(close_date, now)
    if days is not None:
        if days < 0:
            urgency = max(urgency, 0.95)
        elif days <= 7:
            urgency = max(urgency, 0.85)
        elif days <= 14:
            urgency = max(urgency, 0.7)

    return urgency


def compute_pipeline_importance_score(status: str, is_top_of_mind: bool) -> float:
    """Importance by deal status, +0.2 when flagged top of mind."""
    if status == "passed":
        return 0.1

    status_map = {
        "active": 0.8,
        "interesting": 0.8,
        "new": 0.6,
        "to_share": 0.6,
    }
    score = status_map.get(status, 0.5)

    if is_top_of_mind:
        score = min(1.0, round(score + 0.2, 4))

    return score


# ============================================================================
# Reading list
# ============================================================================

def compute_reading_urgency_score(has_project: bool) -> float:
    """Reading is rarely urgent unless a project depends on it."""
    return 0.4 if has_project else 0.2


def compute_reading_importance_score(has_project: bool) -> float:
    return 0.6 if has_project else 0.3


def compute_reading_commitment_score(has_project: bool) -> float:
    return 0.4 if has_project else 0.2


# ============================================================================
# Recurring commitments
# ============================================================================

def _reminder_today(reminder_time: Optional[str], now: datetime) -> Optional[datetime]:
    """
    Resolve an 'HH:MM' reminder to today's datetime, None if unparseable.

    The wall-clock time is read in UTC, like every other naive time the
    engine sees. Callers with local-time reminders should convert them
    to UTC before building the row.
    """
    if not reminder_time or not isinstance(reminder_time, str):
        return None
    try:
        hour_str, minute_str = reminder_time.strip().split(":")[:2]
        return now.replace(hour=int(hour_str), minute=int(minute_str), second=0, microsecond=0)
    except ValueError:
        return None


def compute_recurring_commitment_urgency_score(
    reminder_time: Optional[str],
    frequency: Optional[str],
    now: Optional[datetime] = None
) -> float:
    """
    Calculate urgency for a recurring commitment from today's reminder time.

    Scoring:
        - Reminder passed within the last 4 hours: 0.9
        - Reminder due within 2 hours: 0.8
        - Reminder due within 6 hours: 0.5
        - Otherwise: daily 0.6, any other frequency 0.4

    reminder_time is an 'HH:MM' UTC wall-clock time.
    """
    now = _now_utc(now)
    reminder = _reminder_today(reminder_time, now)

    if reminder is not None:
        hours = (reminder - now).total_seconds() / 3600.0
        if -4 < hours < 0:
            return 0.9
        elif 0 <= hours < 2:
            return 0.8
        elif 0 <= hours < 6:
            return 0.5

    if frequency == "daily":
        return 0.6
    return 0.4
