"""
Schedule and estimate evaluation.

Responsibilities:
- Summarize a ScheduleResult (hours placed / left over, daily load).
- Evaluate duration estimates against actual hours (MAE, RMSE, etc.).
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Sequence, Tuple

import numpy as np

from .schema import ScheduleResult, TimeRange


def worker_load(result: ScheduleResult) -> Dict[str, float]:
    """Total hours assigned to each worker."""
    load: Dict[str, float] = defaultdict(float)
    for a in result.assignments:
        load[a.worker_id] += a.hours_assigned
    return dict(load)


def schedule_summary(result: ScheduleResult) -> Dict[str, float]:
    """
    Summarize a schedule.

    Returns a dict with:
    - n_assignments:    number of (unit, worker, date) assignments
    - hours_assigned:   total hours placed
    - hours_unassigned: total hours left unscheduled
    - completion_rate:  hours_assigned / (assigned + unassigned), 1.0 if nothing to do
    - workers_used:     distinct workers with at least one assignment
    - days_used:        distinct calendar dates with at least one assignment
    - mean_daily_hours: mean hours per (worker, date) pair worked
    - max_daily_hours:  max hours on any (worker, date) pair
    """
    per_worker_day: Dict[Tuple[str, str], float] = defaultdict(float)
    for a in result.assignments:
        per_worker_day[(a.worker_id, a.date.isoformat())] += a.hours_assigned

    assigned = float(sum(a.hours_assigned for a in result.assignments))
    unassigned = float(sum(u.remaining_hours for u in result.unassigned))
    total = assigned + unassigned

    daily = np.asarray(list(per_worker_day.values()), dtype=float)

    return {
        "n_assignments": float(len(result.assignments)),
        "hours_assigned": assigned,
        "hours_unassigned": unassigned,
        "completion_rate": assigned / total if total > 0.0 else 1.0,
        "workers_used": float(len({a.worker_id for a in result.assignments})),
        "days_used": float(len({a.date for a in result.assignments})),
        "mean_daily_hours": float(daily.mean()) if daily.size > 0 else 0.0,
        "max_daily_hours": float(daily.max()) if daily.size > 0 else 0.0,
    }


def evaluate_estimates(
    estimates: Sequence[TimeRange],
    actual_hours: Sequence[float],
) -> Dict[str, float]:
    """
    Evaluate duration estimates against actual hours.

    The medium value is the point estimate.

    Returns a dict with:
    - n:        number of pairs used
    - mae:      mean absolute error
    - rmse:     root mean squared error
    - mape:     mean absolute percentage error (pairs with actual 0 skipped)
    - coverage: share of actuals within [low, high]
    """
    if len(estimates) != len(actual_hours):
        raise ValueError(
            f"Got {len(estimates)} estimates but {len(actual_hours)} actual values."
        )
    if not estimates:
        raise ValueError("No estimates to evaluate.")

    low = np.asarray([e.low for e in estimates], dtype=float)
    medium = np.asarray([e.medium for e in estimates], dtype=float)
    high = np.asarray([e.high for e in estimates], dtype=float)
    actual = np.asarray(actual_hours, dtype=float)

    errors = medium - actual
    abs_errors = np.abs(errors)
    mse = float((errors**2).mean())

    # MAPE: be careful with zeros
    with np.errstate(divide="ignore", invalid="ignore"):
        perc_errors = abs_errors / actual
        perc_errors = perc_errors[~np.isnan(perc_errors) & ~np.isinf(perc_errors)]
        mape = float(perc_errors.mean()) if perc_errors.size > 0 else 0.0

    covered = (actual >= low) & (actual <= high)

    return {
        "n": float(actual.size),
        "mae": float(abs_errors.mean()),
        "rmse": float(np.sqrt(mse)),
        "mape": mape,
        "coverage": float(covered.mean()),
    }
