"""
FastAPI app for the home task scheduler.

Endpoints:
- POST /estimate/step
- POST /estimate/aggregate
- POST /estimate/project
- POST /schedule

This is what you deploy to Azure App Service / Container Apps.
"""

from __future__ import annotations

import datetime as dt
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from home_scheduler.analysis import schedule_summary
from home_scheduler.cache import ScheduleCache
from home_scheduler.decomposition import flatten_tasks
from home_scheduler.schema import (
    ExistingAssignment,
    Operation,
    Phase,
    Project,
    SpaceSize,
    Subtask,
    Task,
    TimeRange,
    WorkflowStep,
    WorkUnit,
    Worker,
)
from home_scheduler.time_scaling import (
    aggregate,
    calculate_phase_time,
    calculate_project_time,
    format_time_estimate,
    resolve_unit_time,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Home Task Scheduler API")
app.state.schedule_cache = ScheduleCache()


# --- Request / Response schemas ----------------------------------------------


class TimeRangePayload(BaseModel):
    low: Optional[float] = None
    medium: Optional[float] = None
    high: Optional[float] = None


class SpacePayload(BaseModel):
    space_id: str = ""
    space_name: str = ""
    size: Optional[float] = None
    unit: str = ""


class StepPayload(BaseModel):
    """
    Input payload for /estimate/step.

    Example:
    {
      "time_range": {"low": 0.01, "medium": 0.02, "high": 0.03},
      "scaling_mode": "scaled",
      "scaling_unit": "per square foot",
      "spaces": [{"space_name": "Kitchen", "size": 120, "unit": "sq ft"}]
    }
    """

    id: str = "step"
    title: str = ""
    time_range: Optional[TimeRangePayload] = None
    scaling_mode: Optional[str] = None
    spaces: List[SpacePayload] = Field(default_factory=list)
    scaling_unit: Optional[str] = None
    source_scaling_unit: Optional[str] = None


class AggregatePayload(BaseModel):
    ranges: List[TimeRangePayload] = Field(default_factory=list)


class OperationPayload(BaseModel):
    id: str
    title: str = ""
    steps: List[StepPayload] = Field(default_factory=list)


class PhasePayload(BaseModel):
    id: str
    title: str = ""
    operations: List[OperationPayload] = Field(default_factory=list)
    source_scaling_unit: Optional[str] = None


class ProjectPayload(BaseModel):
    id: str
    title: str = ""
    scaling_unit: Optional[str] = None
    phases: List[PhasePayload] = Field(default_factory=list)
    spaces: List[SpacePayload] = Field(default_factory=list)


class EstimateResponse(BaseModel):
    low: float
    medium: float
    high: float
    formatted: str


class ProjectEstimateResponse(BaseModel):
    project_id: str
    total: EstimateResponse
    phases: Dict[str, EstimateResponse]


class WorkUnitPayload(BaseModel):
    id: str
    parent_task_id: Optional[str] = None
    title: str = ""
    required_skill_level: str
    estimated_hours: float
    priority: Optional[str] = None
    due_date: Optional[dt.date] = None


class SubtaskPayload(BaseModel):
    id: str
    title: str = ""
    skill_level: str = "low"
    estimated_hours: Optional[float] = None
    time_range: Optional[TimeRangePayload] = None
    scaling_mode: Optional[str] = None


class TaskPayload(BaseModel):
    id: str
    title: str = ""
    skill_level: str = "low"
    priority: Optional[str] = None
    subtasks: List[SubtaskPayload] = Field(default_factory=list)
    due_date: Optional[dt.date] = None


class WorkerPayload(BaseModel):
    id: str
    name: str = ""
    skill_level: str
    available_hours_per_day: float
    available_days: List[str]
    max_consecutive_days: int = 7
    hourly_rate: Optional[float] = None
    not_available_dates: List[dt.date] = Field(default_factory=list)


class ExistingAssignmentPayload(BaseModel):
    work_unit_id: str
    worker_id: str
    date: dt.date
    hours: float


class SchedulePayload(BaseModel):
    """
    Input payload for /schedule.

    Supply flat `work_units`, a `tasks` tree (flattened server-side,
    using `spaces` / `scaling_unit` for subtasks without hours), or both.
    """

    work_units: List[WorkUnitPayload] = Field(default_factory=list)
    tasks: List[TaskPayload] = Field(default_factory=list)
    workers: List[WorkerPayload] = Field(default_factory=list)
    start_date: Optional[dt.date] = None
    existing_assignments: List[ExistingAssignmentPayload] = Field(default_factory=list)
    spaces: List[SpacePayload] = Field(default_factory=list)
    scaling_unit: Optional[str] = None


class AssignmentOut(BaseModel):
    work_unit_id: str
    worker_id: str
    date: dt.date
    hours_assigned: float
    parent_task_id: Optional[str] = None
    title: str = ""
    worker_name: str = ""


class UnscheduledOut(BaseModel):
    work_unit_id: str
    reason: str
    remaining_hours: float
    parent_task_id: Optional[str] = None
    title: str = ""


class ProfessionalTaskOut(BaseModel):
    work_unit_id: str
    estimated_hours: float
    parent_task_id: Optional[str] = None
    title: str = ""
    parent_task_title: str = ""
    due_date: Optional[dt.date] = None


class ScheduleResponse(BaseModel):
    assignments: List[AssignmentOut]
    unassigned: List[UnscheduledOut]
    professional_tasks: List[ProfessionalTaskOut]
    warnings: List[str]
    summary: Dict[str, float]


# --- Helpers -----------------------------------------------------------------


def _time_range(payload: Optional[TimeRangePayload]) -> Optional[TimeRange]:
    if payload is None:
        return None
    return TimeRange.coerce(
        {"low": payload.low, "medium": payload.medium, "high": payload.high}
    )


def _spaces(payloads: List[SpacePayload]) -> List[SpaceSize]:
    return [
        SpaceSize(space_id=s.space_id, space_name=s.space_name, size=s.size, unit=s.unit)
        for s in payloads
    ]


def _step(payload: StepPayload) -> WorkflowStep:
    return WorkflowStep(
        id=payload.id,
        title=payload.title,
        time_range=_time_range(payload.time_range),
        scaling_mode=payload.scaling_mode,
    )


def _estimate(time_range: TimeRange) -> EstimateResponse:
    return EstimateResponse(
        low=time_range.low,
        medium=time_range.medium,
        high=time_range.high,
        formatted=format_time_estimate(time_range.medium),
    )


def _project(payload: ProjectPayload) -> Project:
    return Project(
        id=payload.id,
        title=payload.title,
        scaling_unit=payload.scaling_unit,
        phases=[
            Phase(
                id=phase.id,
                title=phase.title,
                source_scaling_unit=phase.source_scaling_unit,
                operations=[
                    Operation(
                        id=op.id,
                        title=op.title,
                        steps=[_step(s) for s in op.steps],
                    )
                    for op in phase.operations
                ],
            )
            for phase in payload.phases
        ],
    )


def _tasks(payloads: List[TaskPayload]) -> List[Task]:
    return [
        Task(
            id=t.id,
            title=t.title,
            skill_level=t.skill_level,
            priority=t.priority,
            due_date=t.due_date,
            subtasks=[
                Subtask(
                    id=s.id,
                    title=s.title,
                    skill_level=s.skill_level,
                    estimated_hours=s.estimated_hours,
                    time_range=_time_range(s.time_range),
                    scaling_mode=s.scaling_mode,
                )
                for s in t.subtasks
            ],
        )
        for t in payloads
    ]


# --- Endpoints ---------------------------------------------------------------


@app.post("/estimate/step", response_model=EstimateResponse)
def estimate_step(payload: StepPayload) -> EstimateResponse:
    """Resolve one step's time range into absolute hours."""
    resolved = resolve_unit_time(
        _time_range(payload.time_range),
        payload.scaling_mode,
        _spaces(payload.spaces),
        payload.scaling_unit,
        payload.source_scaling_unit,
    )
    return _estimate(resolved)


@app.post("/estimate/aggregate", response_model=EstimateResponse)
def estimate_aggregate(payload: AggregatePayload) -> EstimateResponse:
    return _estimate(aggregate(_time_range(r) for r in payload.ranges))


@app.post("/estimate/project", response_model=ProjectEstimateResponse)
def estimate_project(payload: ProjectPayload) -> ProjectEstimateResponse:
    """Total project time, with a breakdown per phase."""
    project = _project(payload)
    spaces = _spaces(payload.spaces)

    return ProjectEstimateResponse(
        project_id=project.id,
        total=_estimate(calculate_project_time(project, spaces)),
        phases={
            phase.id: _estimate(calculate_phase_time(phase, spaces, project.scaling_unit))
            for phase in project.phases
        },
    )


@app.post("/schedule", response_model=ScheduleResponse)
def schedule(payload: SchedulePayload) -> ScheduleResponse:
    """
    Assign work to the household team.

    Unscheduled work is part of a normal response, not an error.
    Units labelled "pro" are listed under `professional_tasks` for a
    contractor and are not assigned to the team.

    Body example:
    {
      "work_units": [
        {"id": "paint", "required_skill_level": "medium", "estimated_hours": 6}
      ],
      "workers": [
        {"id": "alex", "skill_level": "high", "available_hours_per_day": 4,
         "available_days": ["saturday", "sunday"], "max_consecutive_days": 2}
      ],
      "start_date": "2026-05-01"
    }
    """
    try:
        units = [
            WorkUnit(
                id=u.id,
                parent_task_id=u.parent_task_id,
                title=u.title,
                required_skill_level=u.required_skill_level,
                estimated_hours=u.estimated_hours,
                priority=u.priority,
                due_date=u.due_date,
            )
            for u in payload.work_units
        ]
        units.extend(
            flatten_tasks(
                _tasks(payload.tasks),
                spaces=_spaces(payload.spaces),
                scaling_unit=payload.scaling_unit,
            )
        )
        workers = [
            Worker(
                id=w.id,
                name=w.name or w.id,
                skill_level=w.skill_level,
                available_hours_per_day=w.available_hours_per_day,
                available_days=frozenset(w.available_days),
                max_consecutive_days=w.max_consecutive_days,
                hourly_rate=w.hourly_rate,
                not_available_dates=frozenset(w.not_available_dates),
            )
            for w in payload.workers
        ]
    except ValueError as e:
        logger.warning("Rejected schedule request: %s", e)
        raise HTTPException(status_code=422, detail=str(e))

    existing = [
        ExistingAssignment(
            work_unit_id=x.work_unit_id,
            worker_id=x.worker_id,
            date=x.date,
            hours=x.hours,
        )
        for x in payload.existing_assignments
    ]

    result = app.state.schedule_cache.schedule(
        units,
        workers,
        payload.start_date,
        existing_assignments=existing,
    )
    logger.debug(
        "Schedule cache: %d hit(s), %d miss(es)",
        app.state.schedule_cache.hits,
        app.state.schedule_cache.misses,
    )

    return ScheduleResponse(
        assignments=[AssignmentOut(**a.to_dict()) for a in result.assignments],
        unassigned=[UnscheduledOut(**u.to_dict()) for u in result.unassigned],
        professional_tasks=[
            ProfessionalTaskOut(**p.to_dict()) for p in result.professional_tasks
        ],
        warnings=result.warnings,
        summary=schedule_summary(result),
    )


# Convenience for local dev:
# uvicorn app.api:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.api:app", host="0.0.0.0", port=8000, reload=True)
