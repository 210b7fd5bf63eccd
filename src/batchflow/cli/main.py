# main.py
# SPDX-License-Identifier: MIT

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..core.builder import build_job_from_config
from ..core.config import JobConfig, load_config_from_path
from ..core.log import configure_logging
from ..core.registries import load_entrypoint_plugins
from ..core.report import JobStatus, merge_reports

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_JOB_FAILED = 2


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level batchflow argument parser.

    Returns:
        argparse.ArgumentParser: Parser with ``run`` and ``merge-reports``
        subcommands.
    """
    parser = argparse.ArgumentParser(prog="batchflow", description="Batchflow CLI")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g., DEBUG, INFO, WARNING); overrides the config file.",
    )
    parser.add_argument(
        "--no-plugins",
        action="store_true",
        help="Skip loading reader/writer/processor plugins from entry points.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_p = subparsers.add_parser("run", help="Run a job from a config file")
    run_p.add_argument("-c", "--config", required=True, help="Path to config file (TOML or JSON).")
    run_p.add_argument("--name", help="Override parameters.name.")
    run_p.add_argument("--batch-size", type=int, help="Override parameters.batch_size.")
    run_p.add_argument(
        "--error-threshold",
        help="Override parameters.error_threshold (an integer, or 'unbounded').",
    )
    run_p.add_argument("--monitoring", action="store_true", help="Log report updates while running.")
    run_p.add_argument("--report", type=Path, help="Also write the report JSON to this file.")
    run_p.add_argument("--dry-run", action="store_true", help="Validate and print config, then exit.")

    merge_p = subparsers.add_parser("merge-reports", help="Merge job report JSON files.")
    merge_p.add_argument("report_files", nargs="+", type=Path, help="Paths to report JSON files.")
    merge_p.add_argument("--output", "-o", type=Path, help="Output file (defaults to stdout).")

    return parser


def _apply_overrides(cfg: JobConfig, args: argparse.Namespace) -> JobConfig:
    """Return ``cfg`` with parameter overrides from the command line applied."""
    changes = {}
    if args.name:
        changes["name"] = args.name
    if args.batch_size is not None:
        changes["batch_size"] = args.batch_size
    if args.error_threshold is not None:
        changes["error_threshold"] = args.error_threshold
    if args.monitoring:
        changes["monitoring"] = True
    return cfg.with_parameters(**changes) if changes else cfg


def _cmd_run(args: argparse.Namespace) -> int:
    cfg = _apply_overrides(load_config_from_path(args.config), args)
    if args.log_level:
        cfg.logging.level = args.log_level
    cfg.logging.apply()
    if args.dry_run:
        cfg.validate()
        print(json.dumps(cfg.to_dict(), indent=2))
        return EXIT_OK

    job = build_job_from_config(cfg)
    report = job.run()
    text = json.dumps(report.as_dict(), indent=2)
    if args.report:
        args.report.write_text(text + "\n", encoding="utf-8")
    print(text)
    return EXIT_OK if report.status is JobStatus.COMPLETED else EXIT_JOB_FAILED


def _cmd_merge_reports(args: argparse.Namespace) -> int:
    """Merge report JSON files and write to stdout or a file."""
    reports = [json.loads(path.read_text("utf-8")) for path in args.report_files]
    text = json.dumps(merge_reports(reports), indent=2, sort_keys=True)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return EXIT_OK


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch a parsed CLI command to its handler.

    Returns:
        int: 0 on success, 2 when a job ran and failed, 1 otherwise.
    """
    if not args.no_plugins:
        load_entrypoint_plugins()
    if args.command == "run":
        return _cmd_run(args)
    configure_logging(level=args.log_level or "INFO")
    if args.command == "merge-reports":
        return _cmd_merge_reports(args)
    print(f"Unknown command: {args.command}", file=sys.stderr)
    return EXIT_ERROR


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the batchflow command-line interface.

    Args:
        argv (Sequence[str] | None): Argument strings to parse instead of
            ``sys.argv[1:]``. Primarily useful for tests.

    Returns:
        int: Process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        return _dispatch(args)
    except Exception as exc:  # noqa: BLE001
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
