"""
Concurrent source fetching.

Runs one fetcher per source type in parallel and merges the results.
A fetcher that raises or misses the deadline contributes nothing; the
pass continues with whatever succeeded.
"""

import concurrent.futures
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from attention.core.models import SourceType

logger = logging.getLogger(__name__)

SourceFetcher = Callable[[], Iterable[Any]]

DEFAULT_FETCH_TIMEOUT = 5.0


@dataclass
class SourceSnapshot:
    """Raw entities per source type from one fetch round."""
    entities: Dict[SourceType, List[Any]] = field(default_factory=dict)
    failed_sources: List[SourceType] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Iterable[Any]]) -> 'SourceSnapshot':
        """Build a snapshot from {source_type: rows}; unknown keys are ignored"""
        entities: Dict[SourceType, List[Any]] = {}
        for key, rows in data.items():
            try:
                source_type = SourceType(key)
            except ValueError:
                logger.warning("Ignoring unknown source type %r in snapshot", key)
                continue
            entities[source_type] = list(rows or [])
        return cls(entities=entities)

    def get(self, source_type: SourceType) -> List[Any]:
        return self.entities.get(source_type, [])


def fetch_all_sources(
    sources: Mapping[SourceType, SourceFetcher],
    timeout: float = DEFAULT_FETCH_TIMEOUT
) -> SourceSnapshot:
    """
    Fetch every source concurrently and fan the results in.

    Args:
        sources: One zero-argument fetcher per source type
        timeout: Seconds to wait for all fetchers together

    Returns:
        SourceSnapshot; failed or timed-out sources are empty and listed
        in failed_sources
    """
    snapshot = SourceSnapshot()
    if not sources:
        return snapshot

    ex = concurrent.futures.ThreadPoolExecutor(
        max_workers=len(sources), thread_name_prefix="attention-source"
    )
    try:
        futures = {
            ex.submit(lambda fetch=fetch: list(fetch())): SourceType(source_type)
            for source_type, fetch in sources.items()
        }
        done, not_done = concurrent.futures.wait(futures, timeout=timeout)

        for future in not_done:
            source_type = futures[future]
            future.cancel()
            logger.warning("Source %s timed out after %.1fs", source_type.value, timeout)
            snapshot.failed_sources.append(source_type)
            snapshot.entities[source_type] = []

        for future in done:
            source_type = futures[future]
            try:
                snapshot.entities[source_type] = future.result()
            except Exception as e:
                logger.warning("Source %s failed: %s", source_type.value, e)
                snapshot.failed_sources.append(source_type)
                snapshot.entities[source_type] = []
    finally:
        # Do not block the ranking pass on stragglers
        ex.shutdown(wait=False, cancel_futures=True)

    # Stable order for observability output
    snapshot.failed_sources.sort(key=lambda s: list(SourceType).index(s))
    fetched = sum(len(rows) for rows in snapshot.entities.values())
    logger.info(
        "Fetched %d entities from %d sources (%d failed)",
        fetched, len(sources), len(snapshot.failed_sources),
    )
    return snapshot


class JsonSnapshotSource:
    """
    Source fetchers backed by a JSON snapshot file.

    The document is an object keyed by source type value, each holding a
    list of raw rows:

        {"task": [{"id": 1, "content": "..."}], "inbox": [...]}
    """

    def __init__(self, path: Path):
        """
        Load the snapshot file.

        Args:
            path: Path to the JSON document

        Raises:
            OSError: the file cannot be read
            ValueError: the file is not a JSON object
        """
        self.path = Path(path)
        with open(self.path, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Snapshot {self.path} must contain a JSON object")
        self.data = data

    def _rows(self, source_type: SourceType) -> List[Any]:
        rows = self.data.get(source_type.value) or []
        if not isinstance(rows, list):
            raise ValueError(f"Snapshot section {source_type.value!r} must be a list")
        return rows

    def sources(self, only: Optional[Iterable[SourceType]] = None) -> Dict[SourceType, SourceFetcher]:
        """One fetcher per source type (all types unless restricted)"""
        selected = list(only) if only is not None else list(SourceType)
        return {
            source_type: (lambda source_type=source_type: self._rows(source_type))
            for source_type in selected
        }
