"""
Explicit cache around schedule_work.

Keyed by a SHA-256 hash of the scheduling inputs and bounded by a TTL.
Callers own the instance; nothing here is process-global.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import time
from dataclasses import asdict
from datetime import date
from typing import Any, Callable, Iterable, Optional, Sequence

import cachetools

from .config import get_config
from .scheduler import default_start_date, schedule_work
from .schema import ExistingAssignment, ScheduleResult, WorkUnit, Worker, coerce_date

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    raise TypeError(f"Cannot hash value of type {type(value).__name__}")


def schedule_cache_key(
    work_units: Sequence[WorkUnit],
    workers: Sequence[Worker],
    start_date: date,
    existing_assignments: Sequence[ExistingAssignment] = (),
    horizon_days: Optional[int] = None,
) -> str:
    """Content hash of everything that influences a scheduling run."""
    payload = {
        "work_units": [asdict(u) for u in work_units],
        "workers": [asdict(w) for w in workers],
        "start_date": start_date.isoformat(),
        "existing": [asdict(e) for e in existing_assignments],
        "horizon_days": horizon_days,
    }
    encoded = json.dumps(payload, sort_keys=True, default=_json_default)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class ScheduleCache:
    """
    TTL cache of ScheduleResults.

    Results are deep-copied on the way in and out so callers can mutate
    what they get back. `timer` is the clock entries expire against (seconds).
    """

    def __init__(
        self,
        maxsize: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        cfg = get_config()
        self._cache: cachetools.TTLCache = cachetools.TTLCache(
            maxsize=maxsize if maxsize is not None else cfg.cache_maxsize,
            ttl=ttl_seconds if ttl_seconds is not None else cfg.cache_ttl_seconds,
            timer=timer,
        )
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    def schedule(
        self,
        work_units: Iterable[WorkUnit],
        workers: Iterable[Worker],
        start_date: Optional[Any] = None,
        *,
        existing_assignments: Iterable[ExistingAssignment] = (),
        horizon_days: Optional[int] = None,
    ) -> ScheduleResult:
        units = list(work_units)
        roster = list(workers)
        existing = list(existing_assignments)
        # Resolve the default here so the key does not go stale across midnight
        start = coerce_date(start_date) if start_date is not None else default_start_date()
        if horizon_days is None:
            horizon_days = get_config().horizon_days

        key = schedule_cache_key(units, roster, start, existing, horizon_days)
        cached = self._cache.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug("Schedule cache hit %s", key[:12])
            return copy.deepcopy(cached)

        self.misses += 1
        result = schedule_work(
            units,
            roster,
            start,
            existing_assignments=existing,
            horizon_days=horizon_days,
        )
        self._cache[key] = copy.deepcopy(result)
        return result
