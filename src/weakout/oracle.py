"""SAT solver wrapper: bounded runs and verdict extraction from solver logs."""

from __future__ import annotations

import enum
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol

from .errors import ConfigurationError
from .stages import SearchConfig

SAT_MARKER = "s SATISFIABLE"
UNSAT_MARKER = "s UNSATISFIABLE"


class Verdict(enum.Enum):
    UNSAT = 0
    SAT = 1
    INCONCLUSIVE = 2


class Oracle(Protocol):
    def solve(self, instance: Path, time_limit: int, log_path: Path) -> Verdict:
        ...


def solver_is_available(solver_cmd: str) -> bool:
    """Return True if the solver binary is available on PATH."""
    return shutil.which(solver_cmd) is not None


def solver_log_path(
    config: SearchConfig,
    stage: int,
    worker_id: int,
    generation: Optional[int] = None,
) -> Path:
    name = f"log_solver_op{stage}_seed{worker_id}"
    if config.keep_instances and generation is not None:
        name += f"_gen{generation}"
    return config.work_dir / name


def read_solver_result(log_path: str | Path) -> Verdict:
    """Scan a solver log; the first status line decides the verdict."""
    try:
        with open(log_path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                if SAT_MARKER in line:
                    return Verdict.SAT
                if UNSAT_MARKER in line:
                    return Verdict.UNSAT
    except OSError as exc:
        raise ConfigurationError(
            f"Solver result file {log_path} could not be opened ({exc})."
        ) from exc
    return Verdict.INCONCLUSIVE


class SolverOracle:
    """Run a DIMACS solver with a --time budget, output captured to a log."""

    def __init__(self, solver_cmd: str, *, kill_grace: Optional[float] = None) -> None:
        self.solver_cmd = solver_cmd
        self.kill_grace = kill_grace

    def build_command(self, instance: Path, time_limit: int) -> List[str]:
        if time_limit <= 0:
            raise ValueError("time_limit must be positive.")
        return [self.solver_cmd, f"--time={int(time_limit)}", str(instance)]

    def solve(self, instance: Path, time_limit: int, log_path: Path) -> Verdict:
        cmd = self.build_command(instance, time_limit)
        timeout = None
        if self.kill_grace is not None:
            timeout = time_limit + self.kill_grace
        with open(log_path, "w", encoding="utf-8") as log_fh:
            try:
                subprocess.run(
                    cmd,
                    stdout=log_fh,
                    stderr=subprocess.STDOUT,
                    timeout=timeout,
                    check=False,
                )
            except FileNotFoundError as exc:
                raise ConfigurationError(
                    f"Solver not found on PATH (cmd='{self.solver_cmd}'). "
                    "Install it or pass --solver."
                ) from exc
            except subprocess.TimeoutExpired:
                log_fh.write(f"\n[TIMEOUT] exceeded {timeout:.1f}s, killed.\n")
                return Verdict.INCONCLUSIVE
        return read_solver_result(log_path)


__all__ = [
    "SAT_MARKER",
    "UNSAT_MARKER",
    "Verdict",
    "Oracle",
    "SolverOracle",
    "read_solver_result",
    "solver_is_available",
    "solver_log_path",
]
