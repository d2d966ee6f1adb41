"""
Greedy availability scheduler.

Assigns work units to workers over a fixed horizon of calendar days:

- highest priority, then highest required skill, is placed first
- only workers at or above the required skill are eligible
- the closest skill match wins, then the cheaper worker, then the one
  with the most unallocated hours left
- each worker's dates are filled chronologically; a unit may be split
  across days and workers
- per-day hour caps and the consecutive-working-day cap are hard limits
- professional ("pro") units go to a contractor list, not the team

Units are attempted exactly once, in order, with no backtracking.
Infeasibility (no eligible worker, not enough hours in the horizon) is
reported in the result, never raised.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .config import get_config
from .schema import (
    Assignment,
    ExistingAssignment,
    ProfessionalTask,
    ScheduleResult,
    SkillLevel,
    UnscheduledItem,
    WorkUnit,
    Worker,
    coerce_date,
)

logger = logging.getLogger(__name__)

EPSILON = 1e-9
SKILL_MATCH_BASE = 3
ONE_DAY = timedelta(days=1)

NO_WORKERS_WARNING = "No team members available. Add people to enable scheduling."
PROFESSIONAL_WARNING = (
    "{count} professional task(s) require contractor/pro - see Professional Tasks section"
)


def default_start_date(today: Optional[date] = None) -> date:
    """Tomorrow, local time."""
    return (today or date.today()) + ONE_DAY


def skill_match_score(worker: Worker, required: SkillLevel) -> int:
    """3 for an exact match, 2 when one level over-qualified, 1 for two."""
    gap = worker.skill_level.rank - required.rank
    return max(0, SKILL_MATCH_BASE - gap)


class WorkerAvailabilityState:
    """
    Remaining hours and worked dates of every worker for one run.

    Capacity is an index (worker_id, date) -> remaining hours, seeded
    with the worker's daily hours on each date they are available.
    Built fresh from the roster by each schedule_work call.
    """

    def __init__(
        self,
        workers: Iterable[Worker],
        start_date: date,
        horizon_days: int,
    ) -> None:
        self.start_date = start_date
        self.horizon_days = horizon_days
        self._workers: Dict[str, Worker] = {}
        self._dates: Dict[str, List[date]] = {}
        self._worked: Dict[str, Set[date]] = {}
        self._remaining: Dict[Tuple[str, date], float] = {}

        horizon = [start_date + timedelta(days=offset) for offset in range(horizon_days)]
        for worker in workers:
            days = [d for d in horizon if worker.works_on(d)]
            self._workers[worker.id] = worker
            self._dates[worker.id] = days
            self._worked[worker.id] = set()
            for d in days:
                self._remaining[(worker.id, d)] = worker.available_hours_per_day

    def worker(self, worker_id: str) -> Optional[Worker]:
        return self._workers.get(worker_id)

    def dates_for(self, worker_id: str) -> List[date]:
        """The worker's available dates in chronological order."""
        return self._dates.get(worker_id, [])

    def remaining(self, worker_id: str, day: date) -> float:
        return self._remaining.get((worker_id, day), 0.0)

    def total_remaining(self, worker_id: str) -> float:
        return sum(self.remaining(worker_id, d) for d in self.dates_for(worker_id))

    def last_work_day(self, worker_id: str) -> Optional[date]:
        worked = self._worked.get(worker_id)
        return max(worked) if worked else None

    def consecutive_days_worked(self, worker_id: str) -> int:
        """Length of the run of worked dates ending at the last work day."""
        day = self.last_work_day(worker_id)
        worked = self._worked.get(worker_id, set())
        count = 0
        while day is not None and day in worked:
            count += 1
            day -= ONE_DAY
        return count

    def can_work(self, worker_id: str, day: date) -> bool:
        """
        Whether working on `day` keeps every run of consecutive worked
        dates within the worker's cap.

        A date already worked is always allowed.
        """
        worked = self._worked[worker_id]
        if day in worked:
            return True

        run = 1
        cursor = day - ONE_DAY
        while cursor in worked:
            run += 1
            cursor -= ONE_DAY
        cursor = day + ONE_DAY
        while cursor in worked:
            run += 1
            cursor += ONE_DAY
        return run <= self._workers[worker_id].max_consecutive_days

    def consume(self, worker_id: str, day: date, hours: float) -> None:
        key = (worker_id, day)
        if key in self._remaining:
            self._remaining[key] = max(0.0, self._remaining[key] - hours)
        self._worked[worker_id].add(day)

    def snapshot(self) -> Dict[Tuple[str, date], float]:
        return dict(self._remaining)


def order_work_units(work_units: Iterable[WorkUnit]) -> List[WorkUnit]:
    """
    Priority first, then required skill, both descending; professional
    work ahead of other high-skill work. Stable otherwise.
    """
    return sorted(
        work_units,
        key=lambda u: (-u.priority.rank, -u.required_skill_level.rank, not u.professional),
    )


def rank_candidates(
    unit: WorkUnit,
    workers: Sequence[Worker],
    state: WorkerAvailabilityState,
) -> List[Worker]:
    """Eligible workers, best first. Ties keep roster order."""
    eligible = [w for w in workers if w.can_perform(unit.required_skill_level)]
    return sorted(
        eligible,
        key=lambda w: (
            -skill_match_score(w, unit.required_skill_level),
            w.hourly_rate or 0.0,
            -state.total_remaining(w.id),
        ),
    )


def _apply_existing(
    existing_assignments: Iterable[ExistingAssignment],
    units: Sequence[WorkUnit],
    state: WorkerAvailabilityState,
    result: ScheduleResult,
) -> Set[str]:
    units_by_id = {u.id: u for u in units}
    preassigned: Set[str] = set()

    for existing in existing_assignments:
        unit = units_by_id.get(existing.work_unit_id)
        worker = state.worker(existing.worker_id)
        if unit is None or worker is None:
            logger.debug(
                "Ignoring existing assignment %s -> %s: unknown unit or worker",
                existing.work_unit_id,
                existing.worker_id,
            )
            continue

        state.consume(worker.id, existing.date, existing.hours)
        result.assignments.append(
            Assignment(
                work_unit_id=unit.id,
                worker_id=worker.id,
                date=existing.date,
                hours_assigned=existing.hours,
                parent_task_id=unit.parent_task_id,
                title=unit.title,
                worker_name=worker.name,
            )
        )
        preassigned.add(unit.id)

    return preassigned


def _place_unit(
    unit: WorkUnit,
    workers: Sequence[Worker],
    state: WorkerAvailabilityState,
    result: ScheduleResult,
) -> None:
    if unit.estimated_hours <= EPSILON:
        logger.debug("Skipping work unit %s with no hours", unit.id)
        return

    candidates = rank_candidates(unit, workers, state)
    if not candidates:
        result.unassigned.append(
            UnscheduledItem(
                work_unit_id=unit.id,
                reason=(
                    f"No person with {unit.required_skill_level.value} "
                    "skill level or higher available"
                ),
                remaining_hours=unit.estimated_hours,
                parent_task_id=unit.parent_task_id,
                title=unit.title,
            )
        )
        return

    remaining = unit.estimated_hours
    for worker in candidates:
        for day in state.dates_for(worker.id):
            if remaining <= EPSILON:
                break
            capacity = state.remaining(worker.id, day)
            if capacity <= EPSILON:
                continue
            if not state.can_work(worker.id, day):
                continue

            hours = min(remaining, capacity)
            state.consume(worker.id, day, hours)
            result.assignments.append(
                Assignment(
                    work_unit_id=unit.id,
                    worker_id=worker.id,
                    date=day,
                    hours_assigned=hours,
                    parent_task_id=unit.parent_task_id,
                    title=unit.title,
                    worker_name=worker.name,
                )
            )
            remaining -= hours

        if remaining <= EPSILON:
            return

    result.unassigned.append(
        UnscheduledItem(
            work_unit_id=unit.id,
            reason=f"Insufficient availability ({remaining:.1f}h remaining)",
            remaining_hours=remaining,
            parent_task_id=unit.parent_task_id,
            title=unit.title,
        )
    )


def schedule_work(
    work_units: Iterable[WorkUnit],
    workers: Iterable[Worker],
    start_date: Optional[Any] = None,
    *,
    existing_assignments: Iterable[ExistingAssignment] = (),
    horizon_days: Optional[int] = None,
) -> ScheduleResult:
    """
    Build a day-by-day assignment plan.

    Args:
        work_units: flat units with resolved hour estimates.
        workers: the roster; not modified.
        start_date: first day of the horizon (date, datetime or ISO
            string). Defaults to tomorrow.
        existing_assignments: committed assignments to keep. They are
            emitted first, consume capacity, and their units are not
            scheduled again.
        horizon_days: number of calendar days to plan over. Defaults to
            Config.horizon_days.

    Returns:
        ScheduleResult with assignments, unassigned items, professional
        tasks and warnings.
    """
    result = ScheduleResult()
    workers = list(workers)
    units = list(work_units)

    if not workers:
        result.warnings.append(NO_WORKERS_WARNING)
        return result

    start = coerce_date(start_date) if start_date is not None else default_start_date()
    if horizon_days is None:
        horizon_days = get_config().horizon_days

    state = WorkerAvailabilityState(workers, start, horizon_days)
    preassigned = _apply_existing(existing_assignments, units, state, result)

    pending = [u for u in units if u.id not in preassigned]
    for unit in order_work_units(pending):
        if unit.professional:
            result.professional_tasks.append(
                ProfessionalTask(
                    work_unit_id=unit.id,
                    estimated_hours=unit.estimated_hours,
                    parent_task_id=unit.parent_task_id,
                    title=unit.title,
                    parent_task_title=unit.parent_task_title,
                    due_date=unit.due_date,
                )
            )
            continue
        _place_unit(unit, workers, state, result)

    if result.unassigned:
        result.warnings.append(
            f"{len(result.unassigned)} work item(s) could not be fully scheduled"
        )
    if result.professional_tasks:
        result.warnings.append(
            PROFESSIONAL_WARNING.format(count=len(result.professional_tasks))
        )

    logger.info(
        "Scheduled %d unit(s) from %s over %d day(s): %d assignment(s), %d unassigned, %d professional",
        len(units),
        start.isoformat(),
        horizon_days,
        len(result.assignments),
        len(result.unassigned),
        len(result.professional_tasks),
    )
    return result
