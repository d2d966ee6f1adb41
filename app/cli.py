"""
CLI for the home task scheduler.

Usage examples:

    # Schedule work units onto the household roster
    python -m app.cli schedule data/work_units.csv data/workers.csv --start-date 2026-05-01

    # Estimate a single step or a whole project described in JSON
    python -m app.cli estimate project.json

    # Compare past estimates with the hours actually spent
    python -m app.cli evaluate data/estimate_log.csv
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from home_scheduler.analysis import evaluate_estimates, schedule_summary
from home_scheduler.config import get_config
from home_scheduler.data_io import (
    load_estimate_log_from_csv,
    load_existing_assignments_from_csv,
    load_work_units_from_csv,
    load_workers_from_csv,
    save_assignments_to_azure_blob,
    save_assignments_to_csv,
    save_professional_tasks_to_csv,
    save_unscheduled_to_csv,
)
from home_scheduler.scheduler import schedule_work
from home_scheduler.schema import (
    Operation,
    Phase,
    Project,
    SpaceSize,
    TimeRange,
    WorkflowStep,
    coerce_date,
)
from home_scheduler.time_scaling import (
    calculate_phase_time,
    calculate_project_time,
    format_time_estimate,
    resolve_unit_time,
)


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _format_range(time_range: TimeRange) -> str:
    return (
        f"low={time_range.low:.2f}h  medium={time_range.medium:.2f}h  "
        f"high={time_range.high:.2f}h  (~{format_time_estimate(time_range.medium)})"
    )


def _spaces_from_json(items: list) -> list:
    return [
        SpaceSize(
            space_id=s.get("space_id", ""),
            space_name=s.get("space_name", ""),
            size=s.get("size"),
            unit=s.get("unit", ""),
        )
        for s in items
    ]


def _step_from_json(data: dict) -> WorkflowStep:
    return WorkflowStep(
        id=data.get("id", "step"),
        title=data.get("title", ""),
        time_range=TimeRange.coerce(data.get("time_range")),
        scaling_mode=data.get("scaling_mode"),
    )


def _project_from_json(data: dict) -> Project:
    return Project(
        id=data.get("id", "project"),
        title=data.get("title", ""),
        scaling_unit=data.get("scaling_unit"),
        phases=[
            Phase(
                id=phase.get("id", ""),
                title=phase.get("title", ""),
                source_scaling_unit=phase.get("source_scaling_unit"),
                operations=[
                    Operation(
                        id=op.get("id", ""),
                        title=op.get("title", ""),
                        steps=[_step_from_json(s) for s in op.get("steps", [])],
                    )
                    for op in phase.get("operations", [])
                ],
            )
            for phase in data.get("phases", [])
        ],
    )


# --- Commands ----------------------------------------------------------------


def cmd_schedule(args: argparse.Namespace) -> None:
    """
    Schedule work units from CSV onto a worker roster from CSV.
    """
    units_path = Path(args.units_csv).resolve()
    workers_path = Path(args.workers_csv).resolve()

    for path in (units_path, workers_path):
        if not path.exists():
            raise SystemExit(f"[schedule] CSV file not found: {path}")

    try:
        units = load_work_units_from_csv(str(units_path))
        workers = load_workers_from_csv(str(workers_path))
        existing = (
            load_existing_assignments_from_csv(str(Path(args.existing).resolve()))
            if args.existing
            else []
        )
        start_date = coerce_date(args.start_date) if args.start_date else None
    except (OSError, ValueError, KeyError) as e:
        raise SystemExit(f"[schedule] Invalid input: {e}")

    print(f"[schedule] Loaded {len(units)} work units and {len(workers)} workers.")

    result = schedule_work(
        units,
        workers,
        start_date,
        existing_assignments=existing,
        horizon_days=args.horizon_days,
    )

    for a in result.assignments:
        print(
            f"  {a.date.isoformat()}  {a.worker_name or a.worker_id:<16} "
            f"{a.hours_assigned:5.1f}h  {a.title or a.work_unit_id}"
        )
    for item in result.unassigned:
        print(f"  UNSCHEDULED  {item.title or item.work_unit_id}: {item.reason}")
    for pro in result.professional_tasks:
        due = f" (due {pro.due_date.isoformat()})" if pro.due_date else ""
        print(f"  PROFESSIONAL  {pro.title or pro.work_unit_id}: {pro.estimated_hours:.1f}h{due}")
    for warning in result.warnings:
        print(f"[schedule] WARNING: {warning}")

    summary = schedule_summary(result)
    print(
        f"[schedule] {summary['hours_assigned']:.1f}h assigned, "
        f"{summary['hours_unassigned']:.1f}h unscheduled "
        f"({summary['completion_rate']:.0%} complete)."
    )

    if args.out:
        out_path = Path(args.out).resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        save_assignments_to_csv(result.assignments, str(out_path))
        print(f"[schedule] Saved assignments to {out_path}")

    if args.unscheduled_out:
        unscheduled_path = Path(args.unscheduled_out).resolve()
        unscheduled_path.parent.mkdir(parents=True, exist_ok=True)
        save_unscheduled_to_csv(result.unassigned, str(unscheduled_path))
        print(f"[schedule] Saved unscheduled items to {unscheduled_path}")

    if args.professional_out:
        professional_path = Path(args.professional_out).resolve()
        professional_path.parent.mkdir(parents=True, exist_ok=True)
        save_professional_tasks_to_csv(result.professional_tasks, str(professional_path))
        print(f"[schedule] Saved professional tasks to {professional_path}")

    if args.upload_blob:
        save_assignments_to_azure_blob(result.assignments, args.upload_blob)
        print(f"[schedule] Uploaded assignments to blob {args.upload_blob}")


def cmd_estimate(args: argparse.Namespace) -> None:
    """
    Estimate a single step or a whole project described in a JSON file.

    A JSON object with "phases" is treated as a project, anything else
    as a single step.
    """
    json_path = Path(args.json_path).resolve()
    if not json_path.exists():
        raise SystemExit(f"[estimate] JSON file not found: {json_path}")

    data = json.loads(json_path.read_text(encoding="utf-8"))
    spaces = _spaces_from_json(data.get("spaces", []))

    if "phases" in data:
        project = _project_from_json(data)
        for phase in project.phases:
            phase_time = calculate_phase_time(phase, spaces, project.scaling_unit)
            print(f"[estimate] Phase {phase.title or phase.id}: {_format_range(phase_time)}")
        total = calculate_project_time(project, spaces)
        print(f"[estimate] Project total: {_format_range(total)}")
        return

    resolved = resolve_unit_time(
        data.get("time_range"),
        data.get("scaling_mode"),
        spaces,
        data.get("scaling_unit"),
        data.get("source_scaling_unit"),
    )
    print(f"[estimate] Step: {_format_range(resolved)}")


def cmd_evaluate(args: argparse.Namespace) -> None:
    """
    Evaluate past estimates against actual hours from a CSV log.
    """
    csv_path = Path(args.csv_path).resolve()
    if not csv_path.exists():
        raise SystemExit(f"[evaluate] CSV file not found: {csv_path}")

    estimates, actuals = load_estimate_log_from_csv(str(csv_path))
    print(f"[evaluate] Loaded {len(estimates)} estimates with actual hours.")

    try:
        metrics = evaluate_estimates(estimates, actuals)
    except ValueError as e:
        raise SystemExit(f"[evaluate] {e}")

    for key, value in metrics.items():
        print(f"[evaluate] {key:<8} {value:.4f}")


# --- Main --------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Home Task Scheduler CLI – schedule work, estimate durations, evaluate estimates."
    )
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: HTS_LOG_LEVEL or INFO).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # schedule
    sched_p = subparsers.add_parser(
        "schedule",
        help="Assign work units to workers.",
    )
    sched_p.add_argument("units_csv", help="Path to CSV with work units.")
    sched_p.add_argument("workers_csv", help="Path to CSV with the worker roster.")
    sched_p.add_argument(
        "--start-date",
        default=None,
        help="First day of the schedule, YYYY-MM-DD (default: tomorrow).",
    )
    sched_p.add_argument(
        "--horizon-days",
        type=int,
        default=None,
        help="Number of days to plan over (default: HTS_HORIZON_DAYS or 90).",
    )
    sched_p.add_argument(
        "--existing",
        default=None,
        help="CSV of committed assignments to keep.",
    )
    sched_p.add_argument("--out", default=None, help="Where to save assignments CSV.")
    sched_p.add_argument(
        "--unscheduled-out",
        default=None,
        help="Where to save unscheduled items CSV.",
    )
    sched_p.add_argument(
        "--professional-out",
        default=None,
        help="Where to save the CSV of tasks needing a contractor.",
    )
    sched_p.add_argument(
        "--upload-blob",
        default=None,
        help="Also upload assignments CSV to this Azure blob name.",
    )
    sched_p.set_defaults(func=cmd_schedule)

    # estimate
    est_p = subparsers.add_parser(
        "estimate",
        help="Estimate a step or project defined in a JSON file.",
    )
    est_p.add_argument("json_path", help="Path to step or project JSON.")
    est_p.set_defaults(func=cmd_estimate)

    # evaluate
    eval_p = subparsers.add_parser(
        "evaluate",
        help="Evaluate estimates against actual hours.",
    )
    eval_p.add_argument(
        "csv_path",
        help="CSV with columns low, medium, high, actual_hours.",
    )
    eval_p.set_defaults(func=cmd_evaluate)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = (args.log_level or get_config().log_level).upper()
    if level not in LOG_LEVELS:
        raise SystemExit(f"[cli] Invalid log level: {level} (expected one of {', '.join(LOG_LEVELS)})")
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    args.func(args)


if __name__ == "__main__":
    main()
