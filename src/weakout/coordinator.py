"""Evaluate one output through the difficulty stages 3..7.

A candidate is abandoned as soon as one of the following holds at a stage:

* pruned: its total runtime so far already reaches the best bound, so the
  stage is not run at all;
* inconclusive: the solver gave no verdict within the stage budget;
* too_many_unsat: more than ``max_unsat`` stages were UNSAT.

A candidate that survives stage 7 is completed, and its total runtime is
offered to the shared bound.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .bound import BestBound
from .cnf import CnfTemplate, instance_path, materialize_instance
from .errors import ConfigurationError
from .oracle import Oracle, Verdict, solver_log_path
from .search_utils import (
    format_fields,
    format_runtime,
    should_prune,
    too_many_unsat,
)
from .stages import SearchConfig


class Disposition(enum.Enum):
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class AbandonReason(enum.Enum):
    PRUNED = "pruned"
    INCONCLUSIVE = "inconclusive"
    TOO_MANY_UNSAT = "too_many_unsat"


@dataclass(frozen=True)
class StageResult:
    stage: int
    verdict: Verdict
    runtime: float
    cur_total_runtime: float
    unsat_inst: int


@dataclass
class CandidateEvaluation:
    bits: str
    cur_total_runtime: float = 0.0
    unsat_inst: int = 0
    stages: List[StageResult] = field(default_factory=list)
    disposition: Optional[Disposition] = None
    reason: Optional[AbandonReason] = None
    new_best: bool = False

    @property
    def completed(self) -> bool:
        return self.disposition is Disposition.COMPLETED

    def stages_run(self) -> List[int]:
        return [s.stage for s in self.stages]


def _elapsed_sec(start_ns: int, clock: Callable[[], int]) -> float:
    # Truncated to whole milliseconds.
    return ((clock() - start_ns) // 1_000_000) / 1000


def evaluate_candidate(
    bits: str,
    *,
    worker_id: int,
    config: SearchConfig,
    templates: Dict[int, CnfTemplate],
    oracle: Oracle,
    bound: BestBound,
    generation: Optional[int] = None,
    log: Optional[Callable[[str], None]] = None,
    clock: Callable[[], int] = time.monotonic_ns,
) -> CandidateEvaluation:
    """Run `bits` through every stage and update `bound` on completion."""
    evaluation = CandidateEvaluation(bits=bits)

    def _emit(line: str) -> None:
        if log is not None:
            log(line)

    def _abandon(reason: AbandonReason) -> CandidateEvaluation:
        evaluation.disposition = Disposition.ABANDONED
        evaluation.reason = reason
        return evaluation

    for stage in config.stages():
        best = bound.get()
        if should_prune(evaluation.cur_total_runtime, best):
            _emit(
                "cur_total_runtime >= min_total_solving_runtime : "
                f"{format_runtime(evaluation.cur_total_runtime)} >= "
                f"{format_runtime(best)}"
            )
            return _abandon(AbandonReason.PRUNED)

        template = templates.get(stage)
        if template is None:
            raise ConfigurationError(f"No template loaded for stage {stage}.")
        cnf_path = instance_path(config, stage, worker_id, generation)
        materialize_instance(template, bits, cnf_path)

        start = clock()
        verdict = oracle.solve(
            cnf_path,
            config.time_limit(stage),
            solver_log_path(config, stage, worker_id, generation),
        )
        runtime = _elapsed_sec(start, clock)
        evaluation.cur_total_runtime += runtime
        if verdict is Verdict.UNSAT:
            evaluation.unsat_inst += 1
        evaluation.stages.append(
            StageResult(
                stage=stage,
                verdict=verdict,
                runtime=runtime,
                cur_total_runtime=evaluation.cur_total_runtime,
                unsat_inst=evaluation.unsat_inst,
            )
        )
        _emit(
            format_fields(
                [
                    ("operat_num", stage),
                    ("unsat_inst", evaluation.unsat_inst),
                    ("runtime", runtime),
                    ("cur_total_runtime", evaluation.cur_total_runtime),
                ]
            )
        )

        if verdict is Verdict.INCONCLUSIVE:
            _emit(f"no verdict within {config.time_limit(stage)} seconds")
            return _abandon(AbandonReason.INCONCLUSIVE)
        if too_many_unsat(evaluation.unsat_inst, config.max_unsat):
            _emit(
                f"{evaluation.unsat_inst} UNSAT instances while at most "
                f"{config.max_unsat} are needed"
            )
            return _abandon(AbandonReason.TOO_MANY_UNSAT)

    evaluation.disposition = Disposition.COMPLETED
    evaluation.new_best = bound.offer(evaluation.cur_total_runtime)
    return evaluation


__all__ = [
    "AbandonReason",
    "CandidateEvaluation",
    "Disposition",
    "StageResult",
    "evaluate_candidate",
]
