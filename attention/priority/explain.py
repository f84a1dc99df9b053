"""
Explainability for ranked work items.

Turns an item's flags and dimension scores into a short reasoning
string and a list of weighted signals. Signals are output only: nothing
in scoring or selection reads them.
"""

from dataclasses import replace
from typing import Any, List, Mapping, Optional

from attention.core.models import PrioritySignal, WorkItem
from attention.priority.scoring import DimensionScores

DEFAULT_REASONING = "Needs attention."

HIGH_IMPORTANCE_THRESHOLD = 0.8


def generate_reasoning(item: WorkItem) -> str:
    """
    Build a clause list such as "Overdue. High priority. Linked to Acme."

    Clauses, in order:
        - Deadline state: Overdue / Due today / Due soon
        - "High priority" when importance > 0.8
        - "Linked to <company>" when a company is attached
        - Source-specific hints supplied by the adapter

    Returns:
        Reasoning string, never empty
    """
    parts: List[str] = []

    if item.is_overdue:
        parts.append("Overdue")
    elif item.is_due_today:
        parts.append("Due today")
    elif item.is_due_soon:
        parts.append("Due soon")

    if item.importance_score > HIGH_IMPORTANCE_THRESHOLD:
        parts.append("High priority")

    if item.company_name:
        parts.append(f"Linked to {item.company_name}")

    for hint in item.signal_context.get("reasoning_hints", ()):
        if hint and hint not in parts:
            parts.append(hint)

    return ". ".join(parts) + "." if parts else DEFAULT_REASONING


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _urgency_description(context: Mapping[str, Any]) -> str:
    if context.get("urgency_description"):
        return context["urgency_description"]
    days_overdue = context.get("days_overdue")
    if days_overdue:
        return f"Overdue by {_plural(days_overdue, 'day')}"
    return f"Urgency based on {context.get('source_type', 'item')}"


def _importance_description(context: Mapping[str, Any]) -> str:
    if context.get("importance_description"):
        return context["importance_description"]
    priority = context.get("priority")
    return f"{priority} priority" if priority else "Default importance"


def _recency_description(context: Mapping[str, Any]) -> str:
    if context.get("recency_description"):
        return context["recency_description"]
    days = context.get("days_since_update")
    if days is None:
        return "No recent activity recorded"
    if days == 0:
        return "Updated today"
    return f"Last updated {_plural(days, 'day')} ago"


def generate_signals(
    scores: DimensionScores,
    context: Optional[Mapping[str, Any]] = None
) -> List[PrioritySignal]:
    """
    Emit one signal per dimension, plus effort when an effort score exists.

    Args:
        scores: Dimension scores (the raw weights carried by the signals)
        context: Facts for the descriptions (source_type, days_overdue,
            priority, days_since_update, or explicit *_description overrides)

    Returns:
        Ordered list of PrioritySignal
    """
    context = context or {}

    signals = [
        PrioritySignal("urgency", scores.urgency, _urgency_description(context)),
        PrioritySignal("importance", scores.importance, _importance_description(context)),
        PrioritySignal("recency", scores.recency, _recency_description(context)),
        PrioritySignal(
            "commitment",
            scores.commitment,
            context.get("commitment_description") or "Commitment level",
        ),
    ]

    if scores.effort is not None:
        signals.append(PrioritySignal(
            "effort",
            scores.effort,
            context.get("effort_description") or "Effort estimate",
        ))

    return signals


def explain_item(item: WorkItem) -> WorkItem:
    """Return a copy of item with reasoning and signals filled in."""
    scores = DimensionScores(
        urgency=item.urgency_score,
        importance=item.importance_score,
        recency=item.recency_score,
        commitment=item.commitment_score,
        effort=item.effort_score,
    )
    context = {"source_type": item.source_type.value, **item.signal_context}
    return replace(
        item,
        reasoning=generate_reasoning(item),
        signals=tuple(generate_signals(scores, context)),
    )
