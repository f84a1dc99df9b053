"""
Source adapters: map each raw source snapshot to a scored WorkItem.

Each adapter reads only the fields of its own source type, runs the
dimension scorers, composes the priority score and records the facts
the explainability layer needs. Reasoning and signals are filled in
later by attention.priority.explain.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from attention.core.config import PriorityConfig, DEFAULT_PRIORITY_CONFIG
from attention.core.models import (
    SOURCE_MODELS,
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
from attention.priority.scoring import DimensionScores

logger = logging.getLogger(__name__)

SourceEntity = Union[
    Task, InboxItem, CalendarEvent, PortfolioCompany,
    PipelineCompany, ReadingItem, RecurringCommitment,
]


def generate_work_item_id(source_type: SourceType, source_id: Any) -> str:
    """Globally unique item ID: {source_type}-{source_id}"""
    return f"{SourceType(source_type).value}-{source_id}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _build_item(
    source_type: SourceType,
    source_id: Optional[str],
    title: str,
    scores: DimensionScores,
    config: PriorityConfig,
    **fields: Any
) -> WorkItem:
    source_id = source_id or ""
    return WorkItem(
        id=generate_work_item_id(source_type, source_id),
        source_type=source_type,
        source_id=source_id,
        title=title,
        urgency_score=scores.urgency,
        importance_score=scores.importance,
        recency_score=scores.recency,
        commitment_score=scores.commitment,
        effort_score=scores.effort,
        priority_score=scoring.compute_priority_score(scores, config),
        **fields
    )


def _due_subtitle(days: Optional[int]) -> Optional[str]:
    if days is None:
        return None
    if days < 0:
        return f"Overdue by {_plural(abs(days), 'day')}"
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    return f"Due in {days} days"


def map_task(
    task: Task,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> WorkItem:
    """
    Map a Task to a WorkItem.

    Urgency from deadline proximity, importance from explicit priority
    and company linkage, recency from the last update, a fixed implicit
    commitment of 0.4 and effort from the estimate when one exists.
    """
    days = scoring.days_until(task.scheduled_for, now)
    days_since_update = scoring.days_since(task.updated_at, now)

    scores = DimensionScores(
        urgency=scoring.compute_task_urgency_score(task.scheduled_for, now),
        importance=scoring.compute_task_importance_score(task.priority, task.has_company_link()),
        recency=scoring.compute_recency_score(task.updated_at, now),
        commitment=0.4,
        effort=scoring.compute_task_effort_score(task.effort_minutes),
    )

    labels = []
    if task.priority:
        labels.append(f"{task.priority.capitalize()} priority")
    if task.company_name:
        labels.append(task.company_name)
    if task.project_name:
        labels.append(task.project_name)

    return _build_item(
        SourceType.TASK,
        task.id,
        task.content or "Untitled task",
        scores,
        config,
        subtitle=_due_subtitle(days),
        description=task.content or None,
        context_labels=tuple(labels),
        due_at=task.scheduled_for,
        created_at=task.created_at,
        last_touched_at=task.updated_at,
        is_overdue=days is not None and days < 0,
        is_due_today=days == 0,
        is_due_soon=days is not None and 1 <= days <= 3,
        company_id=task.company_id or task.pipeline_company_id,
        company_name=task.company_name,
        company_logo_url=task.company_logo_url,
        project_id=task.project_id,
        project_name=task.project_name,
        signal_context={
            "days_overdue": abs(days) if days is not None and days < 0 else None,
            "priority": task.priority,
            "days_since_update": days_since_update,
            "commitment_description": "Tasks are implicit commitments",
            "effort_description": (
                f"{task.effort_minutes} min estimated" if scores.effort is not None else None
            ),
        },
    )


def map_inbox_item(
    item: InboxItem,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> WorkItem:
    """
    Map an InboxItem to a WorkItem.

    Freshness drives both urgency and recency; unread mail carries more
    importance and an implied reply commitment.
    """
    urgency = scoring.compute_inbox_urgency_score(item.received_at, now)
    scores = DimensionScores(
        urgency=urgency,
        importance=scoring.compute_inbox_importance_score(item.is_read, bool(item.related_company_id)),
        recency=urgency,
        commitment=scoring.compute_inbox_commitment_score(item.is_read),
    )

    sender = item.sender_name or item.sender_email or "unknown sender"
    hours = scoring.hours_until(item.received_at, now)
    if hours is None:
        received = "Received at an unknown time"
    elif -hours < 1:
        received = "Received within the hour"
    else:
        received = f"Received {_plural(int(-hours), 'hour')} ago"

    return _build_item(
        SourceType.INBOX,
        item.id,
        item.subject or "No subject",
        scores,
        config,
        subtitle=item.sender_name or item.sender_email,
        description=item.preview,
        context_labels=("Inbox",) if item.is_read else ("Inbox", "Unread"),
        created_at=item.received_at,
        last_touched_at=item.received_at,
        company_id=item.related_company_id,
        company_name=item.related_company_name,
        signal_context={
            "reasoning_hints": [f"{'Read' if item.is_read else 'Unread'} email from {sender}"],
            "urgency_description": received,
            "importance_description": "Read" if item.is_read else "Unread",
            "recency_description": received,
            "commitment_description": "Reply pending" if not item.is_read else "Already read",
        },
    )


def _starts_hint(hours: Optional[float]) -> Optional[str]:
    if hours is None:
        return None
    if hours < 0:
        return f"Started {_plural(int(round(-hours * 60)), 'minute')} ago"
    if hours < 1:
        return f"Starts in {_plural(int(round(hours * 60)), 'minute')}"
    if hours < 24:
        return f"Starts in {_plural(int(hours), 'hour')}"
    return f"Starts in {_plural(int(hours // 24), 'day')}"


def map_calendar_event(
    event: CalendarEvent,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> WorkItem:
    """
    Map a CalendarEvent to a WorkItem.

    Meetings are explicit commitments; urgency tracks how soon the event
    starts. Recency does not apply to future events and stays neutral.
    """
    attendee_count = len(event.attendees)
    scores = DimensionScores(
        urgency=scoring.compute_calendar_urgency_score(event.start_time, now),
        importance=0.8,
        recency=0.5,
        commitment=scoring.compute_calendar_commitment_score(attendee_count),
    )

    subtitle = None
    if event.start_time:
        subtitle = event.start_time.strftime("%H:%M")
        if event.location:
            subtitle = f"{subtitle} • {event.location}"

    starts = _starts_hint(scoring.hours_until(event.start_time, now))

    return _build_item(
        SourceType.CALENDAR_EVENT,
        event.id,
        event.title or "Untitled event",
        scores,
        config,
        subtitle=subtitle,
        description=event.description,
        context_labels=("Calendar",),
        event_start_at=event.start_time,
        signal_context={
            "reasoning_hints": [starts] if starts else [],
            "urgency_description": starts or "No start time",
            "importance_description": "Calendar commitment",
            "recency_description": "Not applicable to scheduled events",
            "commitment_description": (
                f"{_plural(attendee_count, 'attendee')}" if attendee_count else "Personal event"
            ),
        },
    )


def map_portfolio_company(
    company: PortfolioCompany,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> WorkItem:
    """
    Map a PortfolioCompany to a WorkItem.

    Staleness of the relationship drives urgency; status and open tasks
    drive importance. Portfolio companies are ongoing commitments.
    """
    days = scoring.days_since(company.last_interaction_at, now)
    scores = DimensionScores(
        urgency=scoring.compute_company_staleness_score(company.last_interaction_at, config, now),
        importance=scoring.compute_portfolio_importance_score(company.status, company.open_task_count),
        recency=scoring.compute_recency_score(company.last_interaction_at, now),
        commitment=0.6,
    )

    hints = []
    if days is None:
        hints.append("Never contacted")
    elif days >= 30:
        hints.append(f"Critical: {days} days without contact")
    elif days > config.company_stale_threshold:
        hints.append(f"Needs attention: {days} days since last contact")
    if company.open_task_count > 0:
        hints.append(f"{_plural(company.open_task_count, 'open task')}")

    return _build_item(
        SourceType.PORTFOLIO_COMPANY,
        company.id,
        company.name or "Unnamed company",
        scores,
        config,
        subtitle=f"Last contact: {_plural(days, 'day')} ago" if days is not None else "Never contacted",
        description=company.next_task,
        context_labels=tuple(label for label in ("Portfolio", company.status) if label),
        last_touched_at=company.last_interaction_at,
        company_id=company.id,
        company_name=company.name or None,
        company_logo_url=company.logo_url,
        signal_context={
            "reasoning_hints": hints,
            "urgency_description": (
                f"{_plural(days, 'day')} since contact" if days is not None else "Never contacted"
            ),
            "importance_description": f"{company.status} portfolio company",
            "days_since_update": days,
            "commitment_description": "Ongoing portfolio relationship",
        },
    )


def map_pipeline_company(
    company: PipelineCompany,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> WorkItem:
    """
    Map a PipelineCompany to a WorkItem.

    Like portfolio companies, plus close-date pressure on urgency and a
    top-of-mind boost on importance.
    """
    days_to_close = scoring.days_until(company.close_date, now)
    days = scoring.days_since(company.last_interaction_at, now)
    scores = DimensionScores(
        urgency=scoring.compute_pipeline_urgency_score(
            company.last_interaction_at, company.close_date, config, now
        ),
        importance=scoring.compute_pipeline_importance_score(company.status, company.is_top_of_mind),
        recency=scoring.compute_recency_score(company.last_interaction_at, now),
        commitment=0.6,
    )

    hints = []
    if days_to_close is not None:
        if days_to_close < 0:
            hints.append(f"Past close date by {_plural(abs(days_to_close), 'day')}")
        elif days_to_close <= 7:
            hints.append(f"Closing in {_plural(days_to_close, 'day')}")
    if company.is_top_of_mind:
        hints.append("Top of mind")
    if company.next_steps:
        hints.append(f"Next: {company.next_steps}")

    subtitle = company.next_steps or f"{company.current_round or 'Unknown round'} • {company.sector or 'No sector'}"

    return _build_item(
        SourceType.PIPELINE_COMPANY,
        company.id,
        company.company_name or "Unnamed company",
        scores,
        config,
        subtitle=subtitle,
        description=company.next_steps,
        context_labels=tuple(
            label for label in ("Pipeline", company.current_round, company.status) if label
        ),
        due_at=company.close_date,
        last_touched_at=company.last_interaction_at,
        company_id=company.id,
        company_name=company.company_name or None,
        company_logo_url=company.logo_url,
        signal_context={
            "reasoning_hints": hints,
            "urgency_description": (
                f"Closes in {days_to_close} days" if days_to_close is not None else "No close date"
            ),
            "importance_description": "Top of mind" if company.is_top_of_mind else f"{company.status} deal",
            "days_since_update": days,
            "commitment_description": "Active deal",
        },
    )


def map_reading_item(
    item: ReadingItem,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> WorkItem:
    """
    Map a ReadingItem to a WorkItem.

    Reading stays low-stakes unless a project depends on it; freshly
    saved items are more relevant. Reading is treated as quick effort.
    """
    has_project = bool(item.project_id)
    days_old = scoring.days_since(item.created_at, now)
    scores = DimensionScores(
        urgency=scoring.compute_reading_urgency_score(has_project),
        importance=scoring.compute_reading_importance_score(has_project),
        recency=scoring.compute_recency_score(item.created_at, now),
        commitment=scoring.compute_reading_commitment_score(has_project),
        effort=0.2,
    )

    state = "Read" if item.is_read else "Unread"
    saved = f"saved {_plural(days_old, 'day')} ago" if days_old is not None else "saved at an unknown time"

    return _build_item(
        SourceType.READING_ITEM,
        item.id,
        item.title or item.url or "Untitled",
        scores,
        config,
        subtitle=item.hostname or item.url or None,
        description=item.description,
        context_labels=("Reading List", state),
        created_at=item.created_at,
        project_id=item.project_id,
        project_name=item.project_name,
        signal_context={
            "reasoning_hints": [f"{state} article {saved}"],
            "urgency_description": "Project reading" if has_project else "No deadline",
            "importance_description": "Linked to a project" if has_project else state,
            "days_since_update": days_old,
            "effort_description": "Quick read",
        },
    )


def map_recurring_commitment(
    commitment: RecurringCommitment,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> WorkItem:
    """
    Map a RecurringCommitment to a WorkItem.

    Commitments to self carry maximal commitment; urgency follows
    today's reminder time.
    """
    scores = DimensionScores(
        urgency=scoring.compute_recurring_commitment_urgency_score(
            commitment.reminder_time, commitment.frequency, now
        ),
        importance=0.7,
        recency=0.5,
        commitment=1.0,
    )

    if commitment.frequency:
        subtitle = commitment.frequency
        if commitment.reminder_time:
            subtitle = f"{subtitle} at {commitment.reminder_time}"
    else:
        subtitle = "Recurring habit"

    return _build_item(
        SourceType.RECURRING_COMMITMENT,
        commitment.id,
        commitment.title or "Untitled commitment",
        scores,
        config,
        subtitle=subtitle,
        description=commitment.description,
        context_labels=("Nonnegotiable", commitment.frequency or "habit"),
        project_id=commitment.project_id,
        signal_context={
            "reasoning_hints": [f"{(commitment.frequency or 'recurring').capitalize()} habit"],
            "urgency_description": (
                f"Reminder at {commitment.reminder_time}" if commitment.reminder_time else "No specific time"
            ),
            "importance_description": "Active habit" if commitment.is_active else "Inactive habit",
            "recency_description": "Not applicable to recurring habits",
            "commitment_description": "Commitment to self",
        },
    )


ADAPTERS: Dict[SourceType, Callable[..., WorkItem]] = {
    SourceType.TASK: map_task,
    SourceType.INBOX: map_inbox_item,
    SourceType.CALENDAR_EVENT: map_calendar_event,
    SourceType.PORTFOLIO_COMPANY: map_portfolio_company,
    SourceType.PIPELINE_COMPANY: map_pipeline_company,
    SourceType.READING_ITEM: map_reading_item,
    SourceType.RECURRING_COMMITMENT: map_recurring_commitment,
}


def coerce_entity(source_type: SourceType, entity: Any) -> SourceEntity:
    """Accept a raw row dictionary or an already-typed snapshot"""
    model = SOURCE_MODELS[SourceType(source_type)]
    if isinstance(entity, model):
        return entity
    if isinstance(entity, dict):
        return model.from_dict(entity)
    raise TypeError(
        f"Expected {model.__name__} or dict for {SourceType(source_type).value}, "
        f"got {type(entity).__name__}"
    )


def adapt_entity(
    source_type: SourceType,
    entity: Any,
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> WorkItem:
    """Map one raw entity of the given source type to a WorkItem"""
    source_type = SourceType(source_type)
    return ADAPTERS[source_type](coerce_entity(source_type, entity), config, now)


def adapt_entities(
    source_type: SourceType,
    entities: List[Any],
    config: PriorityConfig = DEFAULT_PRIORITY_CONFIG,
    now: Optional[datetime] = None
) -> List[WorkItem]:
    """
    Map a source's entities, skipping any that fail to map.

    A single bad row is logged and dropped so the rest of the pass can
    still rank.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    items = []
    for entity in entities:
        try:
            items.append(adapt_entity(source_type, entity, config, now))
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            logger.warning("Skipping %s entity that could not be mapped: %s", SourceType(source_type).value, e)
    return items
