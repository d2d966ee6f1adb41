"""
Pure math for duration estimation.

No I/O, no scheduling. Just:
- Resolving a step's low/medium/high range into absolute hours,
  scaled by project size where the step is a per-unit rate
- Summing resolved ranges up the step -> operation -> phase -> project tree
- Formatting hours for display

Nothing here raises on malformed numbers: missing or invalid values
count as zero so that an estimate can always be shown.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

from .schema import (
    Operation,
    Phase,
    Project,
    ScalingMode,
    SpaceSize,
    TimeRange,
    WorkflowStep,
    coerce_float,
)

logger = logging.getLogger(__name__)


def total_space_size(spaces: Iterable[SpaceSize]) -> float:
    """
    Sum the sizes of all spaces.

    Unit labels are not checked; a mix of e.g. sq ft and linear ft is
    summed as-is and only reported in the log.
    """
    spaces = list(spaces)
    units = {(s.unit or "").strip().lower() for s in spaces}
    units.discard("")
    if len(units) > 1:
        logger.warning(
            "Summing spaces with mixed units %s; result may be meaningless",
            sorted(units),
        )
    return sum(coerce_float(s.size) for s in spaces)


def resolve_unit_time(
    time_range: Any,
    scaling_mode: Any = None,
    spaces: Optional[Sequence[SpaceSize]] = None,
    scaling_unit: Optional[str] = None,
    source_scaling_unit: Optional[str] = None,
) -> TimeRange:
    """
    Convert a raw time range into absolute hours.

    - fixed (or unspecified) mode: the range is returned unchanged.
    - scaled mode: each value is a per-unit rate and is multiplied by
      the total size of `spaces`. If no scaling unit is known or no
      spaces are given, the raw range is returned unscaled.

    `source_scaling_unit` takes precedence over `scaling_unit`; it is
    used for phases incorporated from another project.
    """
    base = TimeRange.coerce(time_range)

    if ScalingMode.parse(scaling_mode) is not ScalingMode.SCALED:
        return base

    unit = source_scaling_unit or scaling_unit
    if not unit or not spaces:
        return base

    return base.scale(total_space_size(spaces))


def aggregate(ranges: Iterable[Any]) -> TimeRange:
    """
    Element-wise sum of low, medium and high.

    Order-independent, so any branch of the hierarchy can be
    re-aggregated on its own when one leaf changes.
    """
    total = TimeRange()
    for r in ranges:
        total = total + TimeRange.coerce(r)
    return total


def calculate_step_time(
    step: WorkflowStep,
    spaces: Optional[Sequence[SpaceSize]] = None,
    scaling_unit: Optional[str] = None,
    source_scaling_unit: Optional[str] = None,
) -> TimeRange:
    return resolve_unit_time(
        step.time_range,
        step.scaling_mode,
        spaces,
        scaling_unit,
        source_scaling_unit,
    )


def calculate_operation_time(
    steps: Iterable[WorkflowStep],
    spaces: Optional[Sequence[SpaceSize]] = None,
    scaling_unit: Optional[str] = None,
    source_scaling_unit: Optional[str] = None,
) -> TimeRange:
    """Total time for an operation: the sum of its steps."""
    return aggregate(
        calculate_step_time(step, spaces, scaling_unit, source_scaling_unit)
        for step in steps
    )


def calculate_phase_time(
    phase: Phase,
    spaces: Optional[Sequence[SpaceSize]] = None,
    scaling_unit: Optional[str] = None,
) -> TimeRange:
    """Total time for a phase; incorporated phases scale by their source unit."""
    return aggregate(
        calculate_operation_time(
            operation.steps,
            spaces,
            scaling_unit,
            phase.source_scaling_unit,
        )
        for operation in phase.operations
    )


def calculate_project_time(
    project: Project,
    spaces: Optional[Sequence[SpaceSize]] = None,
) -> TimeRange:
    return aggregate(
        calculate_phase_time(phase, spaces, project.scaling_unit)
        for phase in project.phases
    )


def format_time_estimate(hours: float) -> str:
    """
    Human-readable duration.

    < 1 h  -> "45 min"
    < 24 h -> "3.5 hrs"
    else   -> "2 days" or "1d 6h"
    """
    if hours < 1:
        return f"{round(hours * 60)} min"
    if hours < 24:
        return f"{hours:.1f} hrs"

    days = int(hours // 24)
    remaining_hours = round(hours % 24)
    if remaining_hours == 24:
        days += 1
        remaining_hours = 0
    if remaining_hours == 0:
        return f"{days} day{'s' if days != 1 else ''}"
    return f"{days}d {remaining_hours}h"
