import logging
from datetime import date

import pytest

from home_scheduler.config import get_config
from home_scheduler.decomposition import flatten_tasks
from home_scheduler.scheduler import schedule_work
from home_scheduler.schema import (
    Priority,
    ScalingMode,
    SkillLevel,
    SpaceSize,
    Subtask,
    Task,
    TimeRange,
    Worker,
)


def test_subtasks_become_units_with_task_context():
    task = Task(
        id="bath",
        title="Re-grout bathroom",
        priority="high",
        subtasks=[
            Subtask(id="scrape", title="Scrape old grout", skill_level="low", estimated_hours=3),
            Subtask(id="grout", title="Apply grout", skill_level="medium", estimated_hours=2.5),
        ],
    )

    units = flatten_tasks([task])

    assert [u.id for u in units] == ["scrape", "grout"]
    assert all(u.parent_task_id == "bath" for u in units)
    assert all(u.parent_task_title == "Re-grout bathroom" for u in units)
    assert all(u.priority is Priority.HIGH for u in units)
    assert units[1].required_skill_level is SkillLevel.MEDIUM
    assert units[1].estimated_hours == 2.5


def test_task_without_subtasks_uses_default_hours():
    task = Task(id="filter", title="Replace HVAC filter", skill_level="medium")

    [unit] = flatten_tasks([task], default_task_hours=0.5)
    assert unit.id == "filter"
    assert unit.parent_task_id == "filter"
    assert unit.estimated_hours == 0.5
    assert unit.required_skill_level is SkillLevel.MEDIUM

    [unit] = flatten_tasks([task])
    assert unit.estimated_hours == get_config().default_task_hours


def test_missing_hours_come_from_the_estimator():
    task = Task(
        id="floor",
        subtasks=[
            Subtask(
                id="sand",
                time_range=TimeRange(0.01, 0.02, 0.03),
                scaling_mode=ScalingMode.SCALED,
            )
        ],
    )
    spaces = [SpaceSize(space_name="Living room", size=200, unit="sq ft")]

    [unit] = flatten_tasks([task], spaces=spaces, scaling_unit="per square foot")

    assert unit.estimated_hours == pytest.approx(4.0)


def test_subtasks_without_hours_are_dropped(caplog):
    task = Task(id="t", subtasks=[Subtask(id="empty"), Subtask(id="ok", estimated_hours=1)])

    with caplog.at_level(logging.WARNING, logger="home_scheduler.decomposition"):
        units = flatten_tasks([task])

    assert [u.id for u in units] == ["ok"]
    assert "empty" in caplog.text


def test_catalog_skill_labels_are_accepted():
    task = Task(
        id="t",
        skill_level="beginner",
        subtasks=[Subtask(id="s", skill_level="advanced", estimated_hours=1)],
    )

    assert task.skill_level is SkillLevel.LOW
    assert flatten_tasks([task])[0].required_skill_level is SkillLevel.HIGH


def test_unknown_skill_label_raises():
    with pytest.raises(ValueError, match="Unknown skill level"):
        Subtask(id="s", skill_level="wizard")


def test_pro_subtasks_are_flagged_and_scheduled_for_a_contractor():
    task = Task(
        id="roof",
        title="Replace roof",
        due_date="2026-09-01",
        subtasks=[
            Subtask(id="tearoff", skill_level="pro", estimated_hours=16),
            Subtask(id="gutters", skill_level="advanced", estimated_hours=4),
        ],
    )
    workers = [Worker(id="ace", skill_level="advanced", available_hours_per_day=8)]

    units = flatten_tasks([task])
    result = schedule_work(units, workers, date(2026, 6, 1), horizon_days=5)

    assert [u.professional for u in units] == [True, False]
    assert all(u.due_date == date(2026, 9, 1) for u in units)
    assert [a.work_unit_id for a in result.assignments] == ["gutters"]
    [pro] = result.professional_tasks
    assert (pro.work_unit_id, pro.parent_task_id, pro.parent_task_title) == ("tearoff", "roof", "Replace roof")
    assert pro.due_date == date(2026, 9, 1)


def test_pro_task_without_subtasks_is_flagged():
    [unit] = flatten_tasks([Task(id="septic", skill_level="pro")], default_task_hours=2)

    assert unit.professional
    assert unit.required_skill_level is SkillLevel.HIGH
