"""
Data schemas for the home task scheduler.

Defines:
- SkillLevel / Priority: ordered three-level enums
- TimeRange, ScalingMode, SpaceSize: inputs of the duration estimator
- WorkflowStep / Operation / Phase / Project: estimation hierarchy
- Subtask / Task: caller-side task tree, flattened into WorkUnits
- WorkUnit / Worker: scheduler inputs (immutable for a run)
- Assignment / UnscheduledItem / ScheduleResult: scheduler outputs
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

# Index matches date.weekday()
WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_LEVEL_RANKS = {"low": 1, "medium": 2, "high": 3}

# Labels used by the DIY project catalog
_SKILL_ALIASES = {
    "beginner": "low",
    "intermediate": "medium",
    "advanced": "high",
    "pro": "high",
}


def is_professional_label(value: Any) -> bool:
    """Whether a skill label marks work for a contractor rather than the team."""
    return isinstance(value, str) and value.strip().lower() == "pro"


def coerce_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result):
        return default
    return result


def _split_labels(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.replace(";", ",").split(",")
    return [str(v).strip().lower() for v in value if str(v).strip()]


def coerce_date(value: Any) -> date:
    if isinstance(value, date):
        # datetime is a date subclass; keep the calendar day only
        return date(value.year, value.month, value.day)
    return date.fromisoformat(str(value).strip()[:10])


class SkillLevel(str, Enum):
    """Ordinal capability rating. A worker may do any work at or below their level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self.value]

    @classmethod
    def parse(cls, value: Any) -> "SkillLevel":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = _SKILL_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown skill level: {value!r}") from None


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self.value]

    @classmethod
    def parse(cls, value: Any) -> "Priority":
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return cls.MEDIUM
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown priority: {value!r}") from None


class ScalingMode(str, Enum):
    """
    How a step's time estimate relates to project size.

    FIXED: per-occurrence work, used as-is.
    SCALED: a per-unit rate (per square foot, per linear foot, ...)
    multiplied by the aggregate size of the project's spaces.
    """

    FIXED = "fixed"
    SCALED = "scaled"

    @classmethod
    def parse(cls, value: Any) -> "ScalingMode":
        # Unknown modes (including the catalog's "prime" and
        # "quality_control" step types) do not scale.
        if isinstance(value, cls):
            return value
        if value is not None and str(value).strip().lower() == cls.SCALED.value:
            return cls.SCALED
        return cls.FIXED


# --- Duration estimation -----------------------------------------------------


@dataclass(frozen=True)
class TimeRange:
    """
    Low / medium / high hour estimates.

    No ordering between the three values is enforced; keeping
    low <= medium <= high is the caller's responsibility.
    """

    low: float = 0.0
    medium: float = 0.0
    high: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> "TimeRange":
        """
        Build a TimeRange from a TimeRange, a mapping or None.

        Missing or non-numeric fields become 0.0.
        """
        if value is None:
            return cls()
        if isinstance(value, Mapping):
            get = value.get
        else:
            def get(key: str) -> Any:
                return getattr(value, key, None)
        return cls(
            low=coerce_float(get("low")),
            medium=coerce_float(get("medium")),
            high=coerce_float(get("high")),
        )

    def __add__(self, other: object) -> "TimeRange":
        if not isinstance(other, TimeRange):
            return NotImplemented
        return TimeRange(
            low=self.low + other.low,
            medium=self.medium + other.medium,
            high=self.high + other.high,
        )

    def scale(self, factor: float) -> "TimeRange":
        return TimeRange(
            low=self.low * factor,
            medium=self.medium * factor,
            high=self.high * factor,
        )

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class SpaceSize:
    """A named space of the project and its size (e.g. 120 sq ft)."""

    space_id: str = ""
    space_name: str = ""
    size: float = 0.0
    unit: str = ""

    def __post_init__(self) -> None:
        self.size = coerce_float(self.size)


@dataclass
class WorkflowStep:
    id: str
    title: str = ""
    time_range: Optional[TimeRange] = None
    scaling_mode: Optional[ScalingMode] = None


@dataclass
class Operation:
    id: str
    title: str = ""
    steps: List[WorkflowStep] = field(default_factory=list)


@dataclass
class Phase:
    """
    A project phase.

    source_scaling_unit is set on phases incorporated from another
    project; their scaled steps keep the source project's unit.
    """

    id: str
    title: str = ""
    operations: List[Operation] = field(default_factory=list)
    source_scaling_unit: Optional[str] = None


@dataclass
class Project:
    id: str
    title: str = ""
    phases: List[Phase] = field(default_factory=list)
    scaling_unit: Optional[str] = None


# --- Caller task tree --------------------------------------------------------


@dataclass
class Subtask:
    """
    A subtask of a home task.

    estimated_hours may be left empty; it is then resolved from
    time_range / scaling_mode by the duration estimator. A "pro" skill
    label sets `professional`.
    """

    id: str
    title: str = ""
    skill_level: SkillLevel = SkillLevel.LOW
    estimated_hours: Optional[float] = None
    time_range: Optional[TimeRange] = None
    scaling_mode: Optional[ScalingMode] = None
    professional: bool = False

    def __post_init__(self) -> None:
        self.professional = self.professional or is_professional_label(self.skill_level)
        self.skill_level = SkillLevel.parse(self.skill_level)
        if self.estimated_hours is not None:
            self.estimated_hours = float(self.estimated_hours)


@dataclass
class Task:
    id: str
    title: str = ""
    skill_level: SkillLevel = SkillLevel.LOW
    priority: Priority = Priority.MEDIUM
    subtasks: List[Subtask] = field(default_factory=list)
    due_date: Optional[date] = None
    professional: bool = False

    def __post_init__(self) -> None:
        self.professional = self.professional or is_professional_label(self.skill_level)
        self.skill_level = SkillLevel.parse(self.skill_level)
        self.priority = Priority.parse(self.priority)
        if self.due_date is not None:
            self.due_date = coerce_date(self.due_date)


# --- Scheduler inputs --------------------------------------------------------


@dataclass(frozen=True)
class WorkUnit:
    """
    The smallest schedulable piece of work, derived from a task or subtask.

    estimated_hours is expected to be positive and is not changed by a
    scheduling run. Professional units are handed to a contractor
    instead of the team.
    """

    id: str
    parent_task_id: Optional[str] = None
    title: str = ""
    required_skill_level: SkillLevel = SkillLevel.LOW
    estimated_hours: float = 0.0
    priority: Priority = Priority.MEDIUM
    parent_task_title: str = ""
    professional: bool = False
    due_date: Optional[date] = None

    def __post_init__(self) -> None:
        if is_professional_label(self.required_skill_level):
            object.__setattr__(self, "professional", True)
        if self.due_date is not None:
            object.__setattr__(self, "due_date", coerce_date(self.due_date))
        object.__setattr__(
            self, "required_skill_level", SkillLevel.parse(self.required_skill_level)
        )
        object.__setattr__(self, "priority", Priority.parse(self.priority))
        object.__setattr__(self, "estimated_hours", float(self.estimated_hours))


@dataclass(frozen=True)
class Worker:
    """
    A person who can be assigned work.

    available_days holds lowercase weekday names; not_available_dates
    are one-off blackout dates on top of the weekly pattern.
    """

    id: str
    name: str = ""
    skill_level: SkillLevel = SkillLevel.LOW
    available_hours_per_day: float = 0.0
    available_days: FrozenSet[str] = frozenset(WEEKDAYS)
    max_consecutive_days: int = 7
    hourly_rate: Optional[float] = None
    not_available_dates: FrozenSet[date] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "skill_level", SkillLevel.parse(self.skill_level))
        object.__setattr__(
            self, "available_hours_per_day", float(self.available_hours_per_day)
        )
        object.__setattr__(
            self, "available_days", frozenset(_split_labels(self.available_days))
        )
        object.__setattr__(self, "max_consecutive_days", int(self.max_consecutive_days))
        if self.hourly_rate is not None:
            object.__setattr__(self, "hourly_rate", float(self.hourly_rate))
        object.__setattr__(
            self,
            "not_available_dates",
            frozenset(coerce_date(d) for d in self.not_available_dates),
        )

    def can_perform(self, level: SkillLevel) -> bool:
        return self.skill_level.rank >= SkillLevel.parse(level).rank

    def works_on(self, day: date) -> bool:
        return (
            WEEKDAYS[day.weekday()] in self.available_days
            and day not in self.not_available_dates
        )


@dataclass(frozen=True)
class ExistingAssignment:
    """A committed (e.g. manually made) assignment that scheduling keeps."""

    work_unit_id: str
    worker_id: str
    date: date
    hours: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", coerce_date(self.date))
        object.__setattr__(self, "hours", float(self.hours))


# --- Scheduler outputs -------------------------------------------------------


@dataclass
class Assignment:
    work_unit_id: str
    worker_id: str
    date: date
    hours_assigned: float
    parent_task_id: Optional[str] = None
    title: str = ""
    worker_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        row = asdict(self)
        row["date"] = self.date.isoformat()
        return row


@dataclass
class UnscheduledItem:
    work_unit_id: str
    reason: str
    remaining_hours: float
    parent_task_id: Optional[str] = None
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProfessionalTask:
    """Work routed to a contractor; never assigned to the team."""

    work_unit_id: str
    estimated_hours: float
    parent_task_id: Optional[str] = None
    title: str = ""
    parent_task_title: str = ""
    due_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        row = asdict(self)
        row["due_date"] = self.due_date.isoformat() if self.due_date else None
        return row


@dataclass
class ScheduleResult:
    assignments: List[Assignment] = field(default_factory=list)
    unassigned: List[UnscheduledItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    professional_tasks: List[ProfessionalTask] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assignments": [a.to_dict() for a in self.assignments],
            "unassigned": [u.to_dict() for u in self.unassigned],
            "professional_tasks": [p.to_dict() for p in self.professional_tasks],
            "warnings": list(self.warnings),
        }


def parse_dates(values: Iterable[Any]) -> FrozenSet[date]:
    """Parse ISO date strings (or dates) into a frozenset of dates."""
    return frozenset(coerce_date(v) for v in values if v not in (None, ""))
