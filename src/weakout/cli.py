"""Command line entry point: find_weak_outputs_skein equivalent."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .errors import ConfigurationError
from .oracle import solver_is_available
from .stages import (
    DEFAULT_TIME_LIMITS,
    MAX_UNSAT_INST,
    PROGRESS_EVERY,
    TEMPLATE_PATTERN,
    SearchConfig,
    default_solver,
    format_time_limits,
    parse_time_limits,
)
from .worker import run_pool


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid count '{value}'") from exc
    if n <= 0:
        raise argparse.ArgumentTypeError(f"count must be positive, got {n}")
    return n


def _time_limits(value: str):
    try:
        return parse_time_limits(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weakout",
        description=(
            "Generate random regular outputs for the Skein-512 compression "
            "function and run a SAT solver on the preimage CNFs of the "
            "round-reduced function, keeping the output with the smallest "
            "total solving time."
        ),
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"version: {__version__}",
    )
    parser.add_argument(
        "cpunum",
        type=_positive_int,
        help="Number of parallel workers (CPU cores).",
    )
    parser.add_argument(
        "--template-dir",
        type=Path,
        default=Path("."),
        help="Directory holding the per-stage template CNFs.",
    )
    parser.add_argument(
        "--template-pattern",
        default=TEMPLATE_PATTERN,
        help="Template file name, with {stage} for the operation count.",
    )
    parser.add_argument(
        "--work-dir",
        type=Path,
        default=Path("."),
        help="Directory for generated CNFs and logs.",
    )
    parser.add_argument(
        "--solver",
        default=default_solver(),
        help="Solver command (default: $WEAKOUT_SOLVER or %(default)s).",
    )
    parser.add_argument(
        "--time-limits",
        type=_time_limits,
        default=dict(DEFAULT_TIME_LIMITS),
        help=(
            "Per-stage solver budgets in seconds "
            f"(default: {format_time_limits(DEFAULT_TIME_LIMITS)})."
        ),
    )
    parser.add_argument(
        "--max-unsat",
        type=int,
        default=MAX_UNSAT_INST,
        help="Abandon an output once more stages than this are UNSAT.",
    )
    parser.add_argument(
        "--progress-every",
        type=_positive_int,
        default=PROGRESS_EVERY,
        help="Log the checked output count every N outputs.",
    )
    parser.add_argument(
        "--keep-instances",
        action="store_true",
        help="Keep one CNF per checked output instead of overwriting.",
    )
    parser.add_argument(
        "--kill-grace",
        type=float,
        default=None,
        help="Kill the solver this many seconds after its budget (default: never).",
    )
    parser.add_argument(
        "--max-candidates",
        type=_positive_int,
        default=None,
        help="Stop each worker after this many outputs (default: run until signalled).",
    )
    parser.add_argument(
        "--best-file",
        type=Path,
        default=None,
        help="JSON file recording the best output found.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = SearchConfig(
            template_dir=args.template_dir,
            work_dir=args.work_dir,
            solver_cmd=args.solver,
            time_limits=args.time_limits,
            max_unsat=args.max_unsat,
            progress_every=args.progress_every,
            template_pattern=args.template_pattern,
            keep_instances=args.keep_instances,
            kill_grace=args.kill_grace,
            best_file=args.best_file,
        )
    except ValueError as exc:
        parser.print_usage(sys.stderr)
        print(f"[error] {exc}", file=sys.stderr)
        return 2

    if not solver_is_available(config.solver_cmd):
        print(
            f"[error] solver '{config.solver_cmd}' not found on PATH; "
            "pass --solver or set WEAKOUT_SOLVER.",
            file=sys.stderr,
        )
        return 1

    print(f"[weakout] version {__version__}")
    try:
        run_pool(
            args.cpunum,
            config=config,
            max_candidates=args.max_candidates,
        )
    except ConfigurationError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
