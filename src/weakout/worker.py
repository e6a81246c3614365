"""Parallel workers, each checking random outputs until stopped."""

from __future__ import annotations

import concurrent.futures as cf
import datetime as dt
import signal
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .bound import BestBound
from .candidate import rand_output, worker_rng
from .cnf import CnfTemplate, load_templates
from .coordinator import AbandonReason, evaluate_candidate
from .discoveries import DiscoveryFile
from .oracle import Oracle, SolverOracle
from .search_utils import format_bound, format_fields, format_runtime
from .stages import SearchConfig


@dataclass
class WorkerStats:
    worker_id: int
    checked_outputs: int = 0
    completed: int = 0
    pruned: int = 0
    inconclusive: int = 0
    too_many_unsat: int = 0
    new_best: int = 0


def _utc_stamp() -> str:
    return dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class WorkerLog:
    """Per-worker text log; the header truncates, later lines append."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def start(self, text: str) -> None:
        with self.path.open("w", encoding="utf-8") as f:
            f.write(text)
            if not text.endswith("\n"):
                f.write("\n")

    def write(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line)
            if not line.endswith("\n"):
                f.write("\n")


def worker_log_path(config: SearchConfig, worker_id: int) -> Path:
    return config.work_dir / f"out_seed{worker_id}"


def run_worker(
    worker_id: int,
    n_workers: int,
    *,
    config: SearchConfig,
    templates: Dict[int, CnfTemplate],
    oracle: Oracle,
    bound: BestBound,
    stop: Optional[threading.Event] = None,
    max_candidates: Optional[int] = None,
    discoveries: Optional[DiscoveryFile] = None,
    clock: Callable[[], int] = time.monotonic_ns,
) -> WorkerStats:
    """Check random outputs until `stop` is set or `max_candidates` is reached."""
    stats = WorkerStats(worker_id=worker_id)
    log = WorkerLog(worker_log_path(config, worker_id))
    log.start(
        "\n".join(
            [
                f"cpu_num : {n_workers}",
                f"seed : {worker_id}",
                f"start min_total_solving_runtime : {format_bound(bound.get())}",
            ]
        )
    )
    rng = worker_rng(worker_id)
    while stop is None or not stop.is_set():
        if max_candidates is not None and stats.checked_outputs >= max_candidates:
            break
        stats.checked_outputs += 1
        bits = rand_output(rng)
        evaluation = evaluate_candidate(
            bits,
            worker_id=worker_id,
            config=config,
            templates=templates,
            oracle=oracle,
            bound=bound,
            generation=stats.checked_outputs,
            log=log.write,
            clock=clock,
        )
        if evaluation.completed:
            stats.completed += 1
        elif evaluation.reason is AbandonReason.PRUNED:
            stats.pruned += 1
        elif evaluation.reason is AbandonReason.INCONCLUSIVE:
            stats.inconclusive += 1
        elif evaluation.reason is AbandonReason.TOO_MANY_UNSAT:
            stats.too_many_unsat += 1

        if stats.checked_outputs % config.progress_every == 0:
            log.write(f"{stats.checked_outputs} checked_outputs")

        if not evaluation.new_best:
            continue
        stats.new_best += 1
        runtime = format_runtime(evaluation.cur_total_runtime)
        message = f"{bits}\nUpdated min_total_solving_runtime : {runtime}"
        print(f"[worker {worker_id}] {message}", flush=True)
        log.write(message)
        log.write(format_fields([("checked_outputs", stats.checked_outputs)]))
        if discoveries is not None:
            discoveries.record(
                {
                    "candidate": bits,
                    "runtime": evaluation.cur_total_runtime,
                    "worker": worker_id,
                    "checked_outputs": stats.checked_outputs,
                    "stages": [
                        {"stage": s.stage, "verdict": s.verdict.name, "runtime": s.runtime}
                        for s in evaluation.stages
                    ],
                    "timestamp": _utc_stamp(),
                }
            )
    return stats


def _install_stop_handlers(stop: threading.Event) -> Dict[int, object]:
    def _handler(signum, frame) -> None:
        print(f"[pool] received signal {signum}; stopping after current outputs.")
        stop.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    return previous


def run_pool(
    n_workers: int,
    *,
    config: SearchConfig,
    oracle: Optional[Oracle] = None,
    max_candidates: Optional[int] = None,
    stop: Optional[threading.Event] = None,
    install_signal_handlers: bool = True,
) -> List[WorkerStats]:
    """Run `n_workers` workers sharing one best bound."""
    if n_workers <= 0:
        raise ValueError("n_workers must be positive.")
    templates = load_templates(config)
    config.work_dir.mkdir(parents=True, exist_ok=True)
    if oracle is None:
        oracle = SolverOracle(config.solver_cmd, kill_grace=config.kill_grace)
    discoveries = DiscoveryFile(config.best_file) if config.best_file else None
    bound = BestBound()
    stop = stop or threading.Event()
    previous = _install_stop_handlers(stop) if install_signal_handlers else {}

    print(
        f"[pool] workers={n_workers} solver={config.solver_cmd} "
        f"work_dir={config.work_dir.resolve()}"
    )
    results: Dict[int, WorkerStats] = {}
    errors: List[BaseException] = []
    try:
        with cf.ThreadPoolExecutor(max_workers=n_workers) as ex:
            futs = {
                ex.submit(
                    run_worker,
                    worker_id,
                    n_workers,
                    config=config,
                    templates=templates,
                    oracle=oracle,
                    bound=bound,
                    stop=stop,
                    max_candidates=max_candidates,
                    discoveries=discoveries,
                ): worker_id
                for worker_id in range(n_workers)
            }
            for fut in cf.as_completed(futs):
                worker_id = futs[fut]
                try:
                    results[worker_id] = fut.result()
                except Exception as exc:
                    print(f"[pool] worker {worker_id} failed: {exc}")
                    errors.append(exc)
                    stop.set()
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
    if errors:
        raise errors[0]
    print(f"[pool] done; min_total_solving_runtime : {format_bound(bound.get())}")
    return [results[worker_id] for worker_id in sorted(results)]


__all__ = [
    "WorkerLog",
    "WorkerStats",
    "run_pool",
    "run_worker",
    "worker_log_path",
]
