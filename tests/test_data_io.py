import csv
from datetime import date

import pytest

from home_scheduler import data_io
from home_scheduler.config import Config
from home_scheduler.data_io import (
    load_estimate_log_from_csv,
    load_existing_assignments_from_csv,
    load_work_units_from_csv,
    load_workers_from_azure_blob,
    load_workers_from_csv,
    save_assignments_to_azure_blob,
    save_assignments_to_csv,
    save_professional_tasks_to_csv,
    save_unscheduled_to_csv,
)
from home_scheduler.schema import (
    Assignment,
    Priority,
    ProfessionalTask,
    SkillLevel,
    TimeRange,
    UnscheduledItem,
)

WORKERS_CSV = """id,name,skill_level,available_hours_per_day,available_days,max_consecutive_days,hourly_rate,not_available_dates
sam,Sam,high,4,saturday;sunday,2,25,2026-06-06;2026-06-13
kim,,beginner,2.5,Monday; Wednesday,,,
"""

UNITS_CSV = """id,parent_task_id,title,required_skill_level,estimated_hours,priority
paint,room,Paint walls,medium,6,high
sweep,,Sweep,low,1.5,
"""


@pytest.fixture
def assignments():
    return [
        Assignment(
            work_unit_id="paint",
            worker_id="sam",
            date=date(2026, 6, 6),
            hours_assigned=4,
            parent_task_id="room",
            title="Paint walls",
            worker_name="Sam",
        ),
        Assignment(work_unit_id="paint", worker_id="sam", date=date(2026, 6, 7), hours_assigned=2),
    ]


def test_load_workers_from_csv(tmp_path):
    path = tmp_path / "workers.csv"
    path.write_text(WORKERS_CSV, encoding="utf-8")

    sam, kim = load_workers_from_csv(str(path))

    assert sam.skill_level is SkillLevel.HIGH
    assert sam.available_hours_per_day == 4
    assert sam.available_days == frozenset({"saturday", "sunday"})
    assert sam.max_consecutive_days == 2
    assert sam.hourly_rate == 25
    assert sam.not_available_dates == frozenset({date(2026, 6, 6), date(2026, 6, 13)})

    assert kim.name == "kim"
    assert kim.skill_level is SkillLevel.LOW
    assert kim.available_days == frozenset({"monday", "wednesday"})
    assert kim.max_consecutive_days == 7
    assert kim.hourly_rate is None
    assert kim.not_available_dates == frozenset()


def test_load_workers_rejects_unknown_skill(tmp_path):
    path = tmp_path / "workers.csv"
    path.write_text(
        "id,skill_level,available_hours_per_day,available_days\nsam,guru,4,monday\n",
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="Unknown skill level"):
        load_workers_from_csv(str(path))


def test_load_work_units_from_csv(tmp_path):
    path = tmp_path / "units.csv"
    path.write_text(UNITS_CSV, encoding="utf-8")

    paint, sweep = load_work_units_from_csv(str(path))

    assert paint.parent_task_id == "room"
    assert paint.required_skill_level is SkillLevel.MEDIUM
    assert paint.estimated_hours == 6
    assert paint.priority is Priority.HIGH
    assert sweep.parent_task_id is None
    assert sweep.priority is Priority.MEDIUM


def test_saved_assignments_load_back_as_existing(tmp_path, assignments):
    path = tmp_path / "assignments.csv"
    save_assignments_to_csv(assignments, str(path))

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["date"] == "2026-06-06"
    assert rows[0]["worker_name"] == "Sam"

    existing = load_existing_assignments_from_csv(str(path))
    assert [(e.work_unit_id, e.worker_id, e.date, e.hours) for e in existing] == [
        ("paint", "sam", date(2026, 6, 6), 4.0),
        ("paint", "sam", date(2026, 6, 7), 2.0),
    ]


def test_existing_assignments_accept_hours_column(tmp_path):
    path = tmp_path / "manual.csv"
    path.write_text("work_unit_id,worker_id,date,hours\nsweep,kim,2026-06-03,1\n", encoding="utf-8")

    [existing] = load_existing_assignments_from_csv(str(path))

    assert existing.hours == 1.0
    assert existing.date == date(2026, 6, 3)


def test_save_unscheduled_to_csv(tmp_path):
    path = tmp_path / "unscheduled.csv"
    save_unscheduled_to_csv(
        [UnscheduledItem(work_unit_id="wiring", reason="No person with high skill level or higher available", remaining_hours=6)],
        str(path),
    )

    with open(path, newline="", encoding="utf-8") as f:
        [row] = list(csv.DictReader(f))
    assert row["work_unit_id"] == "wiring"
    assert row["remaining_hours"] == "6"
    assert "skill" in row["reason"]


def test_load_estimate_log_skips_rows_without_actuals(tmp_path):
    path = tmp_path / "log.csv"
    path.write_text("low,medium,high,actual_hours\n1,2,3,2.5\n1,2,3,\n,4,,5\n", encoding="utf-8")

    estimates, actuals = load_estimate_log_from_csv(str(path))

    assert estimates == [TimeRange(1, 2, 3), TimeRange(0, 4, 0)]
    assert actuals == [2.5, 5.0]


class FakeDownload:
    def __init__(self, data: bytes):
        self._data = data

    def readall(self) -> bytes:
        return self._data


class FakeBlobClient:
    def __init__(self, store, key):
        self.store = store
        self.key = key

    def download_blob(self):
        return FakeDownload(self.store[self.key])

    def upload_blob(self, data, overwrite=False):
        assert overwrite
        self.store[self.key] = data


class FakeBlobService:
    store = {}

    @classmethod
    def from_connection_string(cls, conn_str):
        assert conn_str == "UseDevelopmentStorage=true"
        return cls()

    def get_blob_client(self, container, blob):
        return FakeBlobClient(self.store, (container, blob))


@pytest.fixture
def fake_blob(monkeypatch):
    FakeBlobService.store = {}
    monkeypatch.setattr(data_io, "BlobServiceClient", FakeBlobService)
    return FakeBlobService.store


@pytest.fixture
def azure_config():
    return Config(
        azure_blob_connection_string="UseDevelopmentStorage=true",
        azure_blob_container_name="household",
    )


def test_workers_round_trip_through_azure_blob(fake_blob, azure_config):
    fake_blob[("household", "roster/workers.csv")] = WORKERS_CSV.encode("utf-8")

    workers = load_workers_from_azure_blob("roster/workers.csv", config=azure_config)

    assert [w.id for w in workers] == ["sam", "kim"]


def test_save_assignments_to_azure_blob(fake_blob, azure_config, assignments):
    save_assignments_to_azure_blob(
        assignments, "plans/june.csv", container_name="archive", config=azure_config
    )

    text = fake_blob[("archive", "plans/june.csv")].decode("utf-8")
    assert text.splitlines()[0] == ",".join(data_io.ASSIGNMENT_FIELDS)
    assert "2026-06-07" in text


def test_azure_blob_requires_configuration(fake_blob):
    with pytest.raises(ValueError, match="connection string"):
        load_workers_from_azure_blob("workers.csv", config=Config())

    with pytest.raises(ValueError, match="container name"):
        load_workers_from_azure_blob(
            "workers.csv",
            config=Config(azure_blob_connection_string="UseDevelopmentStorage=true"),
        )


def test_azure_blob_requires_sdk(monkeypatch):
    monkeypatch.setattr(data_io, "BlobServiceClient", None)

    with pytest.raises(ImportError, match="azure-storage-blob"):
        load_workers_from_azure_blob("workers.csv", config=Config())


def test_pro_units_and_professional_tasks_csv(tmp_path):
    units_path = tmp_path / "units.csv"
    units_path.write_text(
        "id,title,required_skill_level,estimated_hours,due_date\n"
        "septic,Pump septic,pro,3,2026-08-15\n"
        "mow,Mow lawn,low,1,\n",
        encoding="utf-8",
    )

    septic, mow = load_work_units_from_csv(str(units_path))
    assert septic.professional
    assert septic.due_date == date(2026, 8, 15)
    assert not mow.professional
    assert mow.due_date is None

    out = tmp_path / "professional.csv"
    save_professional_tasks_to_csv(
        [ProfessionalTask(work_unit_id="septic", estimated_hours=3, title="Pump septic", due_date=septic.due_date)],
        str(out),
    )
    with open(out, newline="", encoding="utf-8") as f:
        [row] = list(csv.DictReader(f))
    assert row["work_unit_id"] == "septic"
    assert row["due_date"] == "2026-08-15"
    assert list(row) == data_io.PROFESSIONAL_FIELDS
