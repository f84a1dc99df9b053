"""
Unit tests for the core data models.
Tests source row parsing and WorkItem serialization.
"""

import pytest
from datetime import datetime, timezone

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from attention.core.models import (
    SOURCE_MODELS,
    CalendarEvent,
    InboxItem,
    PipelineCompany,
    PortfolioCompany,
    PrioritySignal,
    ReadingItem,
    RecurringCommitment,
    SourceType,
    Task,
    WorkItem,
    parse_bool,
)


class TestSourceType:
    """Tests for the SourceType enum."""

    def test_values_are_wire_names(self):
        """Source types should serialize to their snake_case names."""
        assert SourceType.TASK.value == "task"
        assert SourceType.CALENDAR_EVENT.value == "calendar_event"
        assert SourceType("recurring_commitment") == SourceType.RECURRING_COMMITMENT

    def test_every_source_type_has_a_model(self):
        """Every source type should map to a raw row model."""
        assert set(SOURCE_MODELS) == set(SourceType)

    def test_unknown_source_type_raises(self):
        """Unknown source names should be rejected."""
        with pytest.raises(ValueError):
            SourceType("newsletter")


class TestTaskFromDict:
    """Tests for parsing task rows."""

    def test_parses_iso_timestamps_as_utc(self):
        """ISO timestamps should become aware UTC datetimes."""
        task = Task.from_dict({
            "id": 7,
            "content": "Send term sheet",
            "scheduled_for": "2024-06-12T09:00:00+02:00",
        })
        assert task.id == "7"
        assert task.scheduled_for == datetime(2024, 6, 12, 7, 0, tzinfo=timezone.utc)

    def test_naive_timestamp_assumed_utc(self):
        """Timestamps without an offset should be treated as UTC."""
        task = Task.from_dict({"id": 1, "scheduled_for": "2024-06-12T09:00:00"})
        assert task.scheduled_for.tzinfo == timezone.utc
        assert task.scheduled_for.hour == 9

    def test_malformed_timestamp_becomes_none(self):
        """Unparseable timestamps should not raise."""
        task = Task.from_dict({"id": 1, "scheduled_for": "not a date"})
        assert task.scheduled_for is None

    @pytest.mark.parametrize("value", [
        "0001-01-01T00:00:00+05:00",
        "9999-12-31T23:00:00-05:00",
    ])
    def test_timestamp_out_of_range_in_utc_becomes_none(self, value):
        """Valid offsets that leave the datetime range in UTC should not raise."""
        task = Task.from_dict({"id": 1, "scheduled_for": value})
        assert task.scheduled_for is None

    def test_string_false_flags(self):
        """String flags like "false" should not read as set."""
        task = Task.from_dict({"id": 1, "completed": "false", "is_top_priority": "no"})
        assert task.completed is False
        assert task.is_top_priority is False
        assert Task.from_dict({"id": 1, "completed": "True"}).completed is True

    def test_priority_is_lowercased(self):
        """Priority strings should be normalized to lowercase."""
        task = Task.from_dict({"id": 1, "priority": "HIGH"})
        assert task.priority == "high"

    def test_title_falls_back_to_content(self):
        """A title key should be accepted when content is missing."""
        task = Task.from_dict({"id": 1, "title": "Review deck"})
        assert task.content == "Review deck"

    def test_has_company_link(self):
        """Either a portfolio or pipeline company link counts."""
        assert Task(id="1", company_id="c1").has_company_link()
        assert Task(id="1", pipeline_company_id="p1").has_company_link()
        assert not Task(id="1").has_company_link()


class TestOtherSourceRows:
    """Tests for parsing the remaining source rows."""

    def test_inbox_item(self):
        """Inbox rows should keep flags and the related company."""
        item = InboxItem.from_dict({
            "id": "m1",
            "subject": "Quick question",
            "received_at": "2024-06-12T12:00:00Z",
            "is_read": True,
            "related_company_id": 42,
        })
        assert item.is_read is True
        assert item.is_resolved is False
        assert item.related_company_id == "42"

    def test_calendar_event_attendees(self):
        """Attendees should be stored as a tuple of strings."""
        event = CalendarEvent.from_dict({
            "id": "e1",
            "title": "Board meeting",
            "attendees": ["a@example.com", "b@example.com"],
        })
        assert event.attendees == ("a@example.com", "b@example.com")

    def test_calendar_event_ignores_bad_attendees(self):
        """A non-list attendees value should be treated as no attendees."""
        event = CalendarEvent.from_dict({"id": "e1", "attendees": "everyone"})
        assert event.attendees == ()

    def test_portfolio_company_defaults(self):
        """Missing status should default to active."""
        company = PortfolioCompany.from_dict({"id": "c1", "name": "Acme"})
        assert company.status == "active"
        assert company.open_task_count == 0

    def test_pipeline_company_name_fallback(self):
        """Pipeline rows may use name instead of company_name."""
        company = PipelineCompany.from_dict({"id": "p1", "name": "Globex"})
        assert company.company_name == "Globex"
        assert company.status == "new"

    def test_reading_item(self):
        """Reading rows should keep the archive flag."""
        item = ReadingItem.from_dict({"id": "r1", "url": "https://example.com", "is_archived": True})
        assert item.is_archived is True
        assert item.title == ""

    def test_recurring_commitment_active_by_default(self):
        """A missing is_active flag should mean active."""
        assert RecurringCommitment.from_dict({"id": "h1"}).is_active is True
        assert RecurringCommitment.from_dict({"id": "h1", "is_active": False}).is_active is False

    def test_recurring_commitment_string_flag(self):
        """is_active given as a string should be parsed."""
        assert RecurringCommitment.from_dict({"id": "h1", "is_active": "false"}).is_active is False

    def test_inbox_string_flags(self):
        """Inbox flags accept string spellings."""
        item = InboxItem.from_dict({"id": "m1", "is_read": "1", "is_resolved": "0"})
        assert item.is_read is True
        assert item.is_resolved is False


class TestParseBool:
    """Tests for flag parsing."""

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        (False, False),
        (1, True),
        (0, False),
        ("true", True),
        ("Yes", True),
        ("false", False),
        (" off ", False),
        ("", False),
    ])
    def test_values(self, value, expected):
        """JSON booleans, numbers and common strings are understood."""
        assert parse_bool(value) is expected

    def test_default(self):
        """None and unknown strings give the default."""
        assert parse_bool(None, default=True) is True
        assert parse_bool("maybe") is False
        assert parse_bool("maybe", default=True) is True


class TestWorkItem:
    """Tests for the normalized WorkItem."""

    def _item(self, **overrides):
        values = dict(
            id="task-1",
            source_type=SourceType.TASK,
            source_id="1",
            title="Send term sheet",
            urgency_score=0.9,
            importance_score=0.6,
            recency_score=1.0,
            commitment_score=0.4,
            priority_score=0.67,
        )
        values.update(overrides)
        return WorkItem(**values)

    def test_is_immutable(self):
        """WorkItems should be frozen."""
        item = self._item()
        with pytest.raises(AttributeError):
            item.priority_score = 1.0

    def test_dimension_scores(self):
        """dimension_scores should key every dimension by name."""
        scores = self._item(effort_score=0.2).dimension_scores()
        assert scores == {
            "urgency": 0.9,
            "importance": 0.6,
            "recency": 1.0,
            "commitment": 0.4,
            "effort": 0.2,
        }

    def test_to_dict(self):
        """to_dict should produce JSON-friendly values."""
        due = datetime(2024, 6, 12, 17, 0, tzinfo=timezone.utc)
        item = self._item(
            due_at=due,
            signals=(PrioritySignal("urgency", 0.9, "Due today"),),
            context_labels=("High priority",),
        )
        data = item.to_dict()
        assert data["source_type"] == "task"
        assert data["due_at"] == due.isoformat()
        assert data["event_start_at"] is None
        assert data["context_labels"] == ["High priority"]
        assert data["signals"] == [{"source": "urgency", "weight": 0.9, "description": "Due today"}]

    def test_signal_context_not_compared(self):
        """Adapter context should not affect equality."""
        assert self._item(signal_context={"priority": "high"}) == self._item()
