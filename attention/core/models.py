"""
Data models for the priority engine
Defines raw source snapshots (one strict type per source) and the
normalized WorkItem every source is mapped into.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, Mapping, Tuple

from dateutil import parser as date_parser


class SourceType(str, Enum):
    """Closed set of sources a WorkItem can originate from"""
    TASK = "task"
    INBOX = "inbox"
    CALENDAR_EVENT = "calendar_event"
    PORTFOLIO_COMPANY = "portfolio_company"
    PIPELINE_COMPANY = "pipeline_company"
    READING_ITEM = "reading_item"
    RECURRING_COMMITMENT = "recurring_commitment"


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a timestamp from a source row, returning aware UTC or None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.isoparse(str(value))
        except (ValueError, TypeError, OverflowError):
            try:
                dt = date_parser.parse(str(value))
            except (ValueError, TypeError, OverflowError):
                return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except (ValueError, TypeError, OverflowError):
        # e.g. 0001-01-01T00:00:00+05:00 falls before datetime.min in UTC
        return None


def _parse_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


_TRUE_STRINGS = {"true", "yes", "y", "on", "1"}
_FALSE_STRINGS = {"false", "no", "n", "off", "0", ""}


def parse_bool(value: Any, default: bool = False) -> bool:
    """
    Parse a flag from a source row or settings value.

    Accepts JSON booleans, numbers and the usual string spellings
    ("true"/"false", "yes"/"no", "1"/"0"). None and unrecognized
    strings give the default.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return default


@dataclass(frozen=True)
class Task:
    """Task row snapshot"""
    id: Optional[str] = None
    content: str = ""
    priority: Optional[str] = None  # 'low', 'medium', 'high'
    scheduled_for: Optional[datetime] = None
    completed: bool = False
    snoozed_until: Optional[datetime] = None
    company_id: Optional[str] = None
    pipeline_company_id: Optional[str] = None
    company_name: Optional[str] = None
    company_logo_url: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    effort_minutes: Optional[int] = None
    is_top_priority: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        """Create Task from a source row dictionary"""
        priority = data.get('priority')
        return cls(
            id=_parse_id(data.get('id')),
            content=data.get('content') or data.get('title') or '',
            priority=priority.lower() if isinstance(priority, str) else None,
            scheduled_for=_parse_datetime(data.get('scheduled_for')),
            completed=parse_bool(data.get('completed')),
            snoozed_until=_parse_datetime(data.get('snoozed_until')),
            company_id=_parse_id(data.get('company_id')),
            pipeline_company_id=_parse_id(data.get('pipeline_company_id')),
            company_name=data.get('company_name'),
            company_logo_url=data.get('company_logo_url'),
            project_id=_parse_id(data.get('project_id')),
            project_name=data.get('project_name'),
            effort_minutes=data.get('effort_minutes'),
            is_top_priority=parse_bool(data.get('is_top_priority')),
            created_at=_parse_datetime(data.get('created_at')),
            updated_at=_parse_datetime(data.get('updated_at')),
        )

    def has_company_link(self) -> bool:
        """Check if task is linked to a portfolio or pipeline company"""
        return bool(self.company_id or self.pipeline_company_id)


@dataclass(frozen=True)
class InboxItem:
    """Inbox message snapshot"""
    id: Optional[str] = None
    subject: str = ""
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    preview: Optional[str] = None
    received_at: Optional[datetime] = None
    is_read: bool = False
    is_resolved: bool = False
    snoozed_until: Optional[datetime] = None
    related_company_id: Optional[str] = None
    related_company_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InboxItem':
        """Create InboxItem from a source row dictionary"""
        return cls(
            id=_parse_id(data.get('id')),
            subject=data.get('subject') or '',
            sender_name=data.get('sender_name'),
            sender_email=data.get('sender_email'),
            preview=data.get('preview'),
            received_at=_parse_datetime(data.get('received_at')),
            is_read=parse_bool(data.get('is_read')),
            is_resolved=parse_bool(data.get('is_resolved')),
            snoozed_until=_parse_datetime(data.get('snoozed_until')),
            related_company_id=_parse_id(data.get('related_company_id')),
            related_company_name=data.get('related_company_name'),
        )


@dataclass(frozen=True)
class CalendarEvent:
    """Calendar event snapshot"""
    id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    attendees: Tuple[str, ...] = ()
    snoozed_until: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CalendarEvent':
        """Create CalendarEvent from a source row dictionary"""
        attendees = data.get('attendees') or []
        return cls(
            id=_parse_id(data.get('id')),
            title=data.get('title') or '',
            description=data.get('description'),
            location=data.get('location'),
            start_time=_parse_datetime(data.get('start_time')),
            end_time=_parse_datetime(data.get('end_time')),
            attendees=tuple(str(a) for a in attendees) if isinstance(attendees, list) else (),
            snoozed_until=_parse_datetime(data.get('snoozed_until')),
        )


@dataclass(frozen=True)
class PortfolioCompany:
    """Portfolio company snapshot"""
    id: Optional[str] = None
    name: str = ""
    status: str = "active"  # 'active', 'watching', 'exited', 'archived'
    last_interaction_at: Optional[datetime] = None
    open_task_count: int = 0
    next_task: Optional[str] = None
    logo_url: Optional[str] = None
    snoozed_until: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PortfolioCompany':
        """Create PortfolioCompany from a source row dictionary"""
        return cls(
            id=_parse_id(data.get('id')),
            name=data.get('name') or '',
            status=data.get('status') or 'active',
            last_interaction_at=_parse_datetime(data.get('last_interaction_at')),
            open_task_count=int(data.get('open_task_count') or 0),
            next_task=data.get('next_task'),
            logo_url=data.get('logo_url'),
            snoozed_until=_parse_datetime(data.get('snoozed_until')),
        )


@dataclass(frozen=True)
class PipelineCompany:
    """Pipeline (deal flow) company snapshot"""
    id: Optional[str] = None
    company_name: str = ""
    status: str = "new"  # 'new', 'active', 'interesting', 'to_share', 'passed'
    last_interaction_at: Optional[datetime] = None
    close_date: Optional[datetime] = None
    next_steps: Optional[str] = None
    is_top_of_mind: bool = False
    current_round: Optional[str] = None
    sector: Optional[str] = None
    logo_url: Optional[str] = None
    snoozed_until: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PipelineCompany':
        """Create PipelineCompany from a source row dictionary"""
        return cls(
            id=_parse_id(data.get('id')),
            company_name=data.get('company_name') or data.get('name') or '',
            status=data.get('status') or 'new',
            last_interaction_at=_parse_datetime(data.get('last_interaction_at')),
            close_date=_parse_datetime(data.get('close_date')),
            next_steps=data.get('next_steps'),
            is_top_of_mind=parse_bool(data.get('is_top_of_mind')),
            current_round=data.get('current_round'),
            sector=data.get('sector'),
            logo_url=data.get('logo_url'),
            snoozed_until=_parse_datetime(data.get('snoozed_until')),
        )


@dataclass(frozen=True)
class ReadingItem:
    """Reading list entry snapshot"""
    id: Optional[str] = None
    title: str = ""
    url: str = ""
    hostname: Optional[str] = None
    description: Optional[str] = None
    is_read: bool = False
    is_archived: bool = False
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    created_at: Optional[datetime] = None
    snoozed_until: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReadingItem':
        """Create ReadingItem from a source row dictionary"""
        return cls(
            id=_parse_id(data.get('id')),
            title=data.get('title') or '',
            url=data.get('url') or '',
            hostname=data.get('hostname'),
            description=data.get('description'),
            is_read=parse_bool(data.get('is_read')),
            is_archived=parse_bool(data.get('is_archived')),
            project_id=_parse_id(data.get('project_id')),
            project_name=data.get('project_name'),
            created_at=_parse_datetime(data.get('created_at')),
            snoozed_until=_parse_datetime(data.get('snoozed_until')),
        )


@dataclass(frozen=True)
class RecurringCommitment:
    """Recurring commitment (nonnegotiable habit) snapshot"""
    id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    frequency: Optional[str] = None  # 'daily', 'weekly', ...
    reminder_time: Optional[str] = None  # 'HH:MM'
    is_active: bool = True
    project_id: Optional[str] = None
    snoozed_until: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RecurringCommitment':
        """Create RecurringCommitment from a source row dictionary"""
        is_active = data.get('is_active')
        return cls(
            id=_parse_id(data.get('id')),
            title=data.get('title') or '',
            description=data.get('description'),
            frequency=data.get('frequency'),
            reminder_time=data.get('reminder_time'),
            is_active=parse_bool(is_active, default=True),
            project_id=_parse_id(data.get('project_id')),
            snoozed_until=_parse_datetime(data.get('snoozed_until')),
        )


# Raw row class per source type
SOURCE_MODELS = {
    SourceType.TASK: Task,
    SourceType.INBOX: InboxItem,
    SourceType.CALENDAR_EVENT: CalendarEvent,
    SourceType.PORTFOLIO_COMPANY: PortfolioCompany,
    SourceType.PIPELINE_COMPANY: PipelineCompany,
    SourceType.READING_ITEM: ReadingItem,
    SourceType.RECURRING_COMMITMENT: RecurringCommitment,
}


@dataclass(frozen=True)
class PrioritySignal:
    """One contributor to an item's score, for display and debugging"""
    source: str
    weight: float
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "weight": self.weight, "description": self.description}


@dataclass(frozen=True)
class WorkItem:
    """
    Normalized, scored unit of outstanding attention.

    Produced fresh on every ranking pass by a source adapter and never
    mutated afterwards; later stages derive new values with
    dataclasses.replace().
    """
    id: str
    source_type: SourceType
    source_id: str
    title: str

    urgency_score: float
    importance_score: float
    recency_score: float
    commitment_score: float
    priority_score: float = 0.0
    effort_score: Optional[float] = None

    subtitle: Optional[str] = None
    description: Optional[str] = None
    context_labels: Tuple[str, ...] = ()

    reasoning: str = ""
    signals: Tuple[PrioritySignal, ...] = ()

    due_at: Optional[datetime] = None
    event_start_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    last_touched_at: Optional[datetime] = None
    is_overdue: bool = False
    is_due_today: bool = False
    is_due_soon: bool = False

    company_id: Optional[str] = None
    company_name: Optional[str] = None
    company_logo_url: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None

    # Adapter-supplied facts for signal descriptions; never read by scoring
    signal_context: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def dimension_scores(self) -> Dict[str, Optional[float]]:
        """Return the dimension scores keyed by dimension name"""
        return {
            "urgency": self.urgency_score,
            "importance": self.importance_score,
            "recency": self.recency_score,
            "commitment": self.commitment_score,
            "effort": self.effort_score,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output"""
        def _iso(dt: Optional[datetime]) -> Optional[str]:
            return dt.isoformat() if dt else None

        return {
            "id": self.id,
            "source_type": self.source_type.value,
            "source_id": self.source_id,
            "title": self.title,
            "subtitle": self.subtitle,
            "description": self.description,
            "context_labels": list(self.context_labels),
            "urgency_score": self.urgency_score,
            "importance_score": self.importance_score,
            "recency_score": self.recency_score,
            "commitment_score": self.commitment_score,
            "effort_score": self.effort_score,
            "priority_score": self.priority_score,
            "reasoning": self.reasoning,
            "signals": [s.to_dict() for s in self.signals],
            "due_at": _iso(self.due_at),
            "event_start_at": _iso(self.event_start_at),
            "created_at": _iso(self.created_at),
            "last_touched_at": _iso(self.last_touched_at),
            "is_overdue": self.is_overdue,
            "is_due_today": self.is_due_today,
            "is_due_soon": self.is_due_soon,
            "company_id": self.company_id,
            "company_name": self.company_name,
            "company_logo_url": self.company_logo_url,
            "project_id": self.project_id,
            "project_name": self.project_name,
        }
