"""
Data I/O utilities.

Provides thin helpers to:
- Load workers, work units and committed assignments from local CSV
- Save assignments / unscheduled items / professional tasks to CSV
- Load an estimate log (low, medium, high, actual_hours) from CSV
- Load workers from / save assignments to Azure Blob Storage as CSV

List-valued columns (available_days, not_available_dates) are
separated by ';'.

Dependencies:
- Standard library only for local CSV.
- For Azure Blob: `azure-storage-blob` package is required.
"""

from __future__ import annotations

import csv
from io import StringIO
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, TextIO, Tuple

from .config import Config, get_config
from .schema import (
    Assignment,
    ExistingAssignment,
    ProfessionalTask,
    TimeRange,
    UnscheduledItem,
    WorkUnit,
    Worker,
    parse_dates,
)

try:
    from azure.storage.blob import BlobServiceClient  # type: ignore[import]
except ImportError:  # pragma: no cover - optional dependency
    BlobServiceClient = None  # type: ignore[assignment]


WORKER_FIELDS = [
    "id",
    "name",
    "skill_level",
    "available_hours_per_day",
    "available_days",
    "max_consecutive_days",
    "hourly_rate",
    "not_available_dates",
]

WORK_UNIT_FIELDS = [
    "id",
    "parent_task_id",
    "title",
    "required_skill_level",
    "estimated_hours",
    "priority",
    "due_date",
]

ASSIGNMENT_FIELDS = [
    "work_unit_id",
    "parent_task_id",
    "title",
    "worker_id",
    "worker_name",
    "date",
    "hours_assigned",
]

UNSCHEDULED_FIELDS = [
    "work_unit_id",
    "parent_task_id",
    "title",
    "remaining_hours",
    "reason",
]

PROFESSIONAL_FIELDS = [
    "work_unit_id",
    "parent_task_id",
    "title",
    "parent_task_title",
    "estimated_hours",
    "due_date",
]


# --- Row parsing -------------------------------------------------------------


def _f(row: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    val = row.get(key)
    if val in (None, ""):
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _split(row: Mapping[str, Any], key: str) -> List[str]:
    val = row.get(key) or ""
    return [part.strip() for part in val.split(";") if part.strip()]


def _workers_from_rows(rows: Iterable[Dict[str, Any]]) -> List[Worker]:
    workers: List[Worker] = []
    for row in rows:
        if not row or not row.get("id"):
            continue
        workers.append(
            Worker(
                id=row["id"],
                name=row.get("name") or row["id"],
                skill_level=row.get("skill_level") or "",
                available_hours_per_day=_f(row, "available_hours_per_day"),
                available_days=frozenset(_split(row, "available_days")),
                max_consecutive_days=int(_f(row, "max_consecutive_days", default=7)),
                hourly_rate=_f(row, "hourly_rate")
                if row.get("hourly_rate") not in (None, "")
                else None,
                not_available_dates=parse_dates(_split(row, "not_available_dates")),
            )
        )
    return workers


def _work_units_from_rows(rows: Iterable[Dict[str, Any]]) -> List[WorkUnit]:
    units: List[WorkUnit] = []
    for row in rows:
        if not row or not row.get("id"):
            continue
        units.append(
            WorkUnit(
                id=row["id"],
                parent_task_id=row.get("parent_task_id") or None,
                title=row.get("title") or "",
                required_skill_level=row.get("required_skill_level") or "",
                estimated_hours=_f(row, "estimated_hours"),
                priority=row.get("priority") or None,
                due_date=row.get("due_date") or None,
            )
        )
    return units


def _existing_from_rows(rows: Iterable[Dict[str, Any]]) -> List[ExistingAssignment]:
    existing: List[ExistingAssignment] = []
    for row in rows:
        if not row or not row.get("work_unit_id"):
            continue
        hours_key = "hours_assigned" if row.get("hours_assigned") not in (None, "") else "hours"
        existing.append(
            ExistingAssignment(
                work_unit_id=row["work_unit_id"],
                worker_id=row["worker_id"],
                date=row["date"],
                hours=_f(row, hours_key),
            )
        )
    return existing


def _write_assignments(assignments: Iterable[Assignment], stream: TextIO) -> None:
    writer = csv.DictWriter(stream, fieldnames=ASSIGNMENT_FIELDS)
    writer.writeheader()
    for assignment in assignments:
        row = assignment.to_dict()
        writer.writerow({key: row.get(key) for key in ASSIGNMENT_FIELDS})


# --- Local CSV helpers -----------------------------------------------------


def load_workers_from_csv(path: str) -> List[Worker]:
    """
    Load the worker roster from a CSV file.

    Expected columns:
    - Required: id, skill_level, available_hours_per_day, available_days
    - Optional: name, max_consecutive_days (default 7), hourly_rate,
      not_available_dates

    Extra columns are ignored.
    """
    with open(path, mode="r", newline="", encoding="utf-8") as f:
        return _workers_from_rows(csv.DictReader(f))


def load_work_units_from_csv(path: str) -> List[WorkUnit]:
    """
    Load flat work units from a CSV file.

    Expected columns:
    - Required: id, required_skill_level, estimated_hours
    - Optional: parent_task_id, title, priority, due_date

    A required_skill_level of "pro" marks the unit for a contractor.
    """
    with open(path, mode="r", newline="", encoding="utf-8") as f:
        return _work_units_from_rows(csv.DictReader(f))


def load_existing_assignments_from_csv(path: str) -> List[ExistingAssignment]:
    """
    Load committed assignments.

    Accepts the assignment CSV written by save_assignments_to_csv, or any
    CSV with work_unit_id, worker_id, date and hours columns.
    """
    with open(path, mode="r", newline="", encoding="utf-8") as f:
        return _existing_from_rows(csv.DictReader(f))


def load_estimate_log_from_csv(path: str) -> Tuple[List[TimeRange], List[float]]:
    """
    Load estimates and the hours actually spent.

    Columns: low, medium, high, actual_hours. Rows without an
    actual_hours value are skipped.
    """
    estimates: List[TimeRange] = []
    actuals: List[float] = []
    with open(path, mode="r", newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            if not row or row.get("actual_hours") in (None, ""):
                continue
            estimates.append(TimeRange.coerce(row))
            actuals.append(_f(row, "actual_hours"))
    return estimates, actuals


def save_assignments_to_csv(assignments: Iterable[Assignment], path: str) -> None:
    """
    Save assignments to a CSV file.

    Columns:
    work_unit_id, parent_task_id, title, worker_id, worker_name, date, hours_assigned
    """
    with open(path, mode="w", newline="", encoding="utf-8") as f:
        _write_assignments(assignments, f)


def save_unscheduled_to_csv(items: Iterable[UnscheduledItem], path: str) -> None:
    with open(path, mode="w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=UNSCHEDULED_FIELDS)
        writer.writeheader()
        for item in items:
            row = item.to_dict()
            writer.writerow({key: row.get(key) for key in UNSCHEDULED_FIELDS})


def save_professional_tasks_to_csv(items: Iterable[ProfessionalTask], path: str) -> None:
    """
    Save work routed to contractors.

    Columns:
    work_unit_id, parent_task_id, title, parent_task_title, estimated_hours, due_date
    """
    with open(path, mode="w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=PROFESSIONAL_FIELDS)
        writer.writeheader()
        for item in items:
            row = item.to_dict()
            writer.writerow({key: row.get(key) for key in PROFESSIONAL_FIELDS})


# --- Azure Blob helpers ----------------------------------------------------


def _get_blob_service(config: Optional[Config] = None):
    if BlobServiceClient is None:
        raise ImportError(
            "azure-storage-blob is required for Azure Blob operations. "
            "Install via `pip install azure-storage-blob`."
        )
    cfg = config or get_config()
    if not cfg.azure_blob_connection_string:
        raise ValueError(
            "Azure blob connection string is not configured. "
            "Set HTS_AZURE_BLOB_CONNECTION_STRING or pass Config explicitly."
        )
    return BlobServiceClient.from_connection_string(
        cfg.azure_blob_connection_string
    ), cfg


def _resolve_container(cfg: Config, container_name: Optional[str]) -> str:
    container = container_name or cfg.azure_blob_container_name
    if not container:
        raise ValueError(
            "Azure blob container name is not configured. "
            "Set HTS_AZURE_BLOB_CONTAINER_NAME or pass container_name."
        )
    return container


def load_workers_from_azure_blob(
    blob_name: str,
    *,
    container_name: Optional[str] = None,
    config: Optional[Config] = None,
) -> List[Worker]:
    """
    Load the worker roster from a CSV stored in Azure Blob Storage.

    - blob_name: name of the blob (e.g., 'household/workers.csv')
    - container_name: overrides Config.azure_blob_container_name if provided
    """
    service_client, cfg = _get_blob_service(config)
    container = _resolve_container(cfg, container_name)

    blob_client = service_client.get_blob_client(container=container, blob=blob_name)
    csv_text = blob_client.download_blob().readall().decode("utf-8")
    return _workers_from_rows(csv.DictReader(StringIO(csv_text)))


def save_assignments_to_azure_blob(
    assignments: Sequence[Assignment],
    blob_name: str,
    *,
    container_name: Optional[str] = None,
    config: Optional[Config] = None,
) -> None:
    """
    Save assignments as CSV into an Azure Blob.

    Overwrites the target blob.
    """
    service_client, cfg = _get_blob_service(config)
    container = _resolve_container(cfg, container_name)

    buffer = StringIO()
    _write_assignments(assignments, buffer)
    csv_bytes = buffer.getvalue().encode("utf-8")

    blob_client = service_client.get_blob_client(container=container, blob=blob_name)
    blob_client.upload_blob(csv_bytes, overwrite=True)
