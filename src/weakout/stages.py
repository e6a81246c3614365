"""Difficulty stages, their time budgets, and the search configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# Number of intermediate operations between the 1st and 2nd rounds.
STAGES: Tuple[int, ...] = (3, 4, 5, 6, 7)
DEFAULT_TIME_LIMITS: Dict[int, int] = {3: 3, 4: 4, 5: 5, 6: 20, 7: 30}
MAX_UNSAT_INST = 3
PROGRESS_EVERY = 10
HASH_LEN = 512
DEFAULT_SOLVER = "kissat4.0.1"
TEMPLATE_PATTERN = "cbmc_skein_1r_{stage}of12_template_explicit_output.cnf"


def parse_time_limits(s: str) -> Dict[int, int]:
    """Parse budget strings like '3:3,4:4,5:5,6:20,7:30' into a stage table."""
    if not s or not s.strip():
        raise ValueError("Empty time limit table; expected 'stage:seconds'.")
    limits: Dict[int, int] = {}
    for raw_part in s.split(","):
        part = raw_part.strip()
        if not part:
            raise ValueError("Empty time limit entry; expected 'stage:seconds'.")
        if ":" not in part:
            raise ValueError(
                f"Invalid time limit entry '{part}'; expected 'stage:seconds'."
            )
        key_str, val_str = part.split(":", 1)
        try:
            stage = int(key_str.strip())
            seconds = int(val_str.strip())
        except ValueError as exc:
            raise ValueError(
                f"Invalid time limit entry '{part}'; expected integers."
            ) from exc
        if stage in limits:
            raise ValueError(f"Duplicate time limit for stage {stage}.")
        limits[stage] = seconds
    return validate_time_limits(limits)


def validate_time_limits(limits: Dict[int, int]) -> Dict[int, int]:
    """Check that every stage has a positive, non-decreasing budget."""
    if sorted(limits) != list(STAGES):
        raise ValueError(
            f"Time limits must cover exactly stages {STAGES[0]}..{STAGES[-1]}; "
            f"got {sorted(limits)}."
        )
    prev = 0
    for stage in STAGES:
        seconds = limits[stage]
        if seconds <= 0:
            raise ValueError(f"Time limit for stage {stage} must be positive.")
        if seconds < prev:
            raise ValueError("Time limits must be non-decreasing with the stage.")
        prev = seconds
    return {stage: limits[stage] for stage in STAGES}


def format_time_limits(limits: Dict[int, int]) -> str:
    return ",".join(f"{stage}:{limits[stage]}" for stage in STAGES)


def default_solver() -> str:
    return os.environ.get("WEAKOUT_SOLVER") or DEFAULT_SOLVER


@dataclass(frozen=True)
class SearchConfig:
    template_dir: Path = Path(".")
    work_dir: Path = Path(".")
    solver_cmd: str = DEFAULT_SOLVER
    time_limits: Dict[int, int] = field(
        default_factory=lambda: dict(DEFAULT_TIME_LIMITS)
    )
    max_unsat: int = MAX_UNSAT_INST
    progress_every: int = PROGRESS_EVERY
    template_pattern: str = TEMPLATE_PATTERN
    keep_instances: bool = False
    kill_grace: Optional[float] = None
    best_file: Optional[Path] = None

    def __post_init__(self) -> None:
        validate_time_limits(self.time_limits)
        if self.max_unsat < 0:
            raise ValueError("max_unsat must be nonnegative.")
        if self.progress_every <= 0:
            raise ValueError("progress_every must be positive.")
        if self.kill_grace is not None and self.kill_grace < 0:
            raise ValueError("kill_grace must be nonnegative.")

    def time_limit(self, stage: int) -> int:
        if stage not in self.time_limits:
            raise ValueError(f"Unknown stage {stage}.")
        return self.time_limits[stage]

    def template_path(self, stage: int) -> Path:
        return self.template_dir / self.template_pattern.format(stage=stage)

    def stages(self) -> List[int]:
        return list(STAGES)


__all__ = [
    "STAGES",
    "DEFAULT_TIME_LIMITS",
    "MAX_UNSAT_INST",
    "PROGRESS_EVERY",
    "HASH_LEN",
    "DEFAULT_SOLVER",
    "TEMPLATE_PATTERN",
    "SearchConfig",
    "default_solver",
    "format_time_limits",
    "parse_time_limits",
    "validate_time_limits",
]
