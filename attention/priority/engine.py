"""
Priority engine facade.

Sequences one ranking pass:

    fetch -> exclude -> adapt/score/compose -> validate -> threshold
          -> select -> explain

Everything after the fetch is a pure function of the snapshot, the
configuration and `now`, so passes are reproducible and safe to run
concurrently for different users.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from attention.core.config import PriorityConfig, DEFAULT_PRIORITY_CONFIG
from attention.core.models import SourceType, WorkItem
from attention.priority.adapters import adapt_entity, coerce_entity
from attention.priority.explain import explain_item
from attention.priority.rules import (
    apply_score_threshold,
    exclusion_reason,
    find_validation_errors,
)
from attention.priority.selector import get_source_type_distribution, select_top_priority_items
from attention.priority.sources import (
    DEFAULT_FETCH_TIMEOUT,
    SourceFetcher,
    SourceSnapshot,
    fetch_all_sources,
)

logger = logging.getLogger(__name__)


@dataclass
class PriorityStats:
    """Aggregate statistics for one ranking pass."""
    total_candidates: int = 0
    excluded: int = 0
    invalid: int = 0
    below_threshold: int = 0
    distribution: Dict[SourceType, int] = field(default_factory=dict)
    avg_score: float = 0.0
    min_score: float = 0.0
    max_score: float = 0.0
    failed_sources: List[SourceType] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_candidates": self.total_candidates,
            "excluded": self.excluded,
            "invalid": self.invalid,
            "below_threshold": self.below_threshold,
            "distribution": {k.value: v for k, v in self.distribution.items()},
            "avg_score": self.avg_score,
            "min_score": self.min_score,
            "max_score": self.max_score,
            "failed_sources": [s.value for s in self.failed_sources],
        }


@dataclass
class PriorityResult:
    """Ranked items plus the statistics of the pass that produced them."""
    items: List[WorkItem]
    stats: PriorityStats
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "items": [item.to_dict() for item in self.items],
            "stats": self.stats.to_dict(),
        }


def compute_stats(items: List[WorkItem], **counts: Any) -> PriorityStats:
    """
    Build PriorityStats for a final ranked list.

    Args:
        items: The ranked list
        **counts: Pass counters (total_candidates, excluded, invalid,
            below_threshold, failed_sources)
    """
    scores = [item.priority_score for item in items]
    return PriorityStats(
        distribution=get_source_type_distribution(items),
        avg_score=sum(scores) / len(scores) if scores else 0.0,
        min_score=min(scores) if scores else 0.0,
        max_score=max(scores) if scores else 0.0,
        **counts
    )


class PriorityEngine:
    """
    Unified priority engine.

    Merges every configured source into one ranked, bounded,
    source-diverse list of what needs attention now.
    """

    def __init__(
        self,
        sources: Optional[Mapping[SourceType, SourceFetcher]] = None,
        config: Optional[PriorityConfig] = None,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    ):
        """
        Initialize engine.

        Args:
            sources: One zero-argument fetcher per source type
            config: Default configuration for ranking passes
            fetch_timeout: Seconds to wait for all sources together
        """
        self.sources = dict(sources or {})
        self.config = config if config else DEFAULT_PRIORITY_CONFIG
        self.fetch_timeout = fetch_timeout

    def fetch(self) -> SourceSnapshot:
        """Fetch all sources concurrently"""
        return fetch_all_sources(self.sources, timeout=self.fetch_timeout)

    def _candidates(
        self,
        snapshot: SourceSnapshot,
        config: PriorityConfig,
        now: datetime
    ) -> Dict[str, Any]:
        """Exclude, adapt and validate every raw entity in the snapshot"""
        candidates: List[WorkItem] = []
        total = excluded = invalid = 0

        for source_type in SourceType:
            for raw in snapshot.get(source_type):
                total += 1
                try:
                    entity = coerce_entity(source_type, raw)
                    reason = exclusion_reason(entity, source_type, now)
                    if reason:
                        excluded += 1
                        logger.debug("Excluded %s %s: %s", source_type.value, getattr(entity, "id", None), reason)
                        continue
                    item = adapt_entity(source_type, entity, config, now)
                except (TypeError, ValueError, AttributeError, KeyError) as e:
                    invalid += 1
                    logger.warning("Dropping %s entity that could not be mapped: %s", source_type.value, e)
                    continue

                errors = find_validation_errors(item)
                if errors:
                    invalid += 1
                    logger.warning("Dropping invalid item %s: %s", item.id, "; ".join(errors))
                    continue

                candidates.append(item)

        return {"items": candidates, "total": total, "excluded": excluded, "invalid": invalid}

    def rank(
        self,
        snapshot: Union[SourceSnapshot, Mapping[Any, Any]],
        now: Optional[datetime] = None,
        config: Optional[PriorityConfig] = None
    ) -> PriorityResult:
        """
        Rank a snapshot of raw source entities.

        Args:
            snapshot: SourceSnapshot or {source_type: rows} mapping
            now: Current datetime (defaults to utcnow)
            config: Per-call configuration override

        Returns:
            PriorityResult with the explained, ranked items and stats
        """
        if now is None:
            now = datetime.now(timezone.utc)
        if config is None:
            config = self.config
        if not isinstance(snapshot, SourceSnapshot):
            snapshot = SourceSnapshot.from_mapping(snapshot)

        candidates = self._candidates(snapshot, config, now)
        eligible = candidates["items"]

        above_threshold = apply_score_threshold(eligible, config, now)
        selected = select_top_priority_items(above_threshold, config, now)
        ranked = [explain_item(item) for item in selected]

        stats = compute_stats(
            ranked,
            total_candidates=candidates["total"],
            excluded=candidates["excluded"],
            invalid=candidates["invalid"],
            below_threshold=len(eligible) - len(above_threshold),
            failed_sources=list(snapshot.failed_sources),
        )

        logger.info(
            "Ranked %d of %d candidates (excluded %d, invalid %d, below threshold %d); "
            "score min %.3f avg %.3f max %.3f",
            len(ranked), stats.total_candidates, stats.excluded, stats.invalid,
            stats.below_threshold, stats.min_score, stats.avg_score, stats.max_score,
        )

        return PriorityResult(items=ranked, stats=stats, generated_at=now)

    def run(
        self,
        now: Optional[datetime] = None,
        config: Optional[PriorityConfig] = None
    ) -> PriorityResult:
        """
        Fetch all sources and rank them.

        Main entry point for a ranking pass.
        """
        return self.rank(self.fetch(), now=now, config=config)
