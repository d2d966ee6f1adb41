"""
Flatten a task / subtask tree into schedulable work units.

Each subtask becomes one WorkUnit; a task without subtasks becomes a
single unit of `default_task_hours`. Subtasks without an hour estimate
take the medium value of their resolved time range.
Units keep the task's due date and the "pro" (contractor) flag of
the task or subtask they came from.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .config import get_config
from .schema import SpaceSize, Task, WorkUnit
from .time_scaling import resolve_unit_time

logger = logging.getLogger(__name__)


def flatten_tasks(
    tasks: Iterable[Task],
    spaces: Optional[Sequence[SpaceSize]] = None,
    scaling_unit: Optional[str] = None,
    default_task_hours: Optional[float] = None,
) -> List[WorkUnit]:
    if default_task_hours is None:
        default_task_hours = get_config().default_task_hours

    units: List[WorkUnit] = []
    for task in tasks:
        if not task.subtasks:
            units.append(
                WorkUnit(
                    id=task.id,
                    parent_task_id=task.id,
                    title=task.title,
                    required_skill_level=task.skill_level,
                    estimated_hours=default_task_hours,
                    priority=task.priority,
                    parent_task_title=task.title,
                    professional=task.professional,
                    due_date=task.due_date,
                )
            )
            continue

        for subtask in task.subtasks:
            hours = subtask.estimated_hours
            if hours is None:
                hours = resolve_unit_time(
                    subtask.time_range,
                    subtask.scaling_mode,
                    spaces,
                    scaling_unit,
                ).medium

            if hours <= 0:
                logger.warning(
                    "Dropping subtask %s of task %s: no positive hour estimate",
                    subtask.id,
                    task.id,
                )
                continue

            units.append(
                WorkUnit(
                    id=subtask.id,
                    parent_task_id=task.id,
                    title=subtask.title,
                    required_skill_level=subtask.skill_level,
                    estimated_hours=hours,
                    priority=task.priority,
                    parent_task_title=task.title,
                    professional=subtask.professional,
                    due_date=task.due_date,
                )
            )

    return units
