"""weakout: search for weak outputs of round-reduced Skein-512 via SAT."""

__version__ = "0.0.2"

from .bound import BestBound
from .candidate import is_regular_output, rand_output, worker_rng
from .cnf import (
    CnfTemplate,
    format_instance,
    instance_path,
    load_templates,
    materialize_instance,
    read_cnf_template,
)
from .coordinator import (
    AbandonReason,
    CandidateEvaluation,
    Disposition,
    StageResult,
    evaluate_candidate,
)
from .errors import ConfigurationError
from .oracle import Oracle, SolverOracle, Verdict, read_solver_result
from .stages import DEFAULT_TIME_LIMITS, STAGES, SearchConfig, parse_time_limits
from .worker import WorkerStats, run_pool, run_worker

__all__ = [
    "__version__",
    "BestBound",
    "rand_output",
    "worker_rng",
    "is_regular_output",
    "CnfTemplate",
    "read_cnf_template",
    "load_templates",
    "format_instance",
    "materialize_instance",
    "instance_path",
    "AbandonReason",
    "CandidateEvaluation",
    "Disposition",
    "StageResult",
    "evaluate_candidate",
    "ConfigurationError",
    "Oracle",
    "SolverOracle",
    "Verdict",
    "read_solver_result",
    "STAGES",
    "DEFAULT_TIME_LIMITS",
    "SearchConfig",
    "parse_time_limits",
    "WorkerStats",
    "run_pool",
    "run_worker",
]
