from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import List, Sequence

import pytest

from weakout.bound import BestBound
from weakout.candidate import rand_output, worker_rng
from weakout.cnf import load_templates
from weakout.discoveries import DiscoveryFile
from weakout.errors import ConfigurationError
from weakout.oracle import Verdict
from weakout.stages import SearchConfig
from weakout.worker import run_pool, run_worker, worker_log_path


class _Clock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += round(seconds * 1_000_000_000)


class _SequenceOracle:
    def __init__(self, clock: _Clock, runtimes: Sequence[float], verdict: Verdict = Verdict.SAT) -> None:
        self.clock = clock
        self.runtimes = list(runtimes)
        self.verdict = verdict
        self.calls = 0

    def solve(self, instance: Path, time_limit: int, log_path: Path) -> Verdict:
        self.clock.advance(self.runtimes[self.calls % len(self.runtimes)])
        self.calls += 1
        return self.verdict


class _InconclusiveOracle:
    def __init__(self) -> None:
        self.time_limits: List[int] = []
        self.logs: List[Path] = []
        self._lock = threading.Lock()

    def solve(self, instance: Path, time_limit: int, log_path: Path) -> Verdict:
        with self._lock:
            self.time_limits.append(time_limit)
            self.logs.append(log_path)
        return Verdict.INCONCLUSIVE


class _BrokenOracle:
    def solve(self, instance: Path, time_limit: int, log_path: Path) -> Verdict:
        raise ConfigurationError(f"Solver result file {log_path} could not be opened.")


def _config(tmp_path, **kwargs) -> SearchConfig:
    config = SearchConfig(
        template_dir=tmp_path / "templates", work_dir=tmp_path / "work", **kwargs
    )
    config.template_dir.mkdir()
    config.work_dir.mkdir()
    for stage in config.stages():
        config.template_path(stage).write_text(
            f"c stage {stage}\np cnf 600 1\n1 -2 0\n", encoding="utf-8"
        )
    return config


def test_worker_all_inconclusive(tmp_path) -> None:
    config = _config(tmp_path)
    oracle = _InconclusiveOracle()
    bound = BestBound()
    stats = run_worker(
        3,
        4,
        config=config,
        templates=load_templates(config),
        oracle=oracle,
        bound=bound,
        max_candidates=10,
    )
    assert stats.checked_outputs == 10
    assert stats.inconclusive == 10
    assert stats.completed == 0
    assert oracle.time_limits == [3] * 10
    assert bound.get() is None

    lines = worker_log_path(config, 3).read_text(encoding="utf-8").splitlines()
    assert lines[:3] == [
        "cpu_num : 4",
        "seed : 3",
        "start min_total_solving_runtime : -1",
    ]
    assert lines[-1] == "10 checked_outputs"
    assert all("unsat_inst : 0" in line for line in lines if line.startswith("operat_num"))


def test_worker_discoveries_and_pruning(tmp_path, capsys) -> None:
    config = _config(tmp_path, best_file=tmp_path / "best.json")
    clock = _Clock()
    runtimes = [1.0] * 5 + [0.5] * 5 + [1.0] * 3
    oracle = _SequenceOracle(clock, runtimes)
    bound = BestBound()
    stats = run_worker(
        0,
        1,
        config=config,
        templates=load_templates(config),
        oracle=oracle,
        bound=bound,
        max_candidates=3,
        discoveries=DiscoveryFile(config.best_file),
        clock=clock,
    )
    assert stats.completed == 2
    assert stats.new_best == 2
    assert stats.pruned == 1
    assert oracle.calls == 13
    assert bound.get() == pytest.approx(2.5)

    rng = worker_rng(0)
    first, second = rand_output(rng), rand_output(rng)
    out = capsys.readouterr().out
    assert f"[worker 0] {first}" in out
    assert "Updated min_total_solving_runtime : 2.5" in out

    log_text = worker_log_path(config, 0).read_text(encoding="utf-8")
    assert "Updated min_total_solving_runtime : 5" in log_text
    assert "checked_outputs : 2" in log_text
    assert "cur_total_runtime >= min_total_solving_runtime : 3 >= 2.5" in log_text

    best = json.loads(config.best_file.read_text(encoding="utf-8"))
    assert best["candidate"] == second
    assert best["runtime"] == pytest.approx(2.5)
    assert best["checked_outputs"] == 2
    assert [s["stage"] for s in best["stages"]] == [3, 4, 5, 6, 7]


def test_worker_stop_event(tmp_path) -> None:
    config = _config(tmp_path)
    stop = threading.Event()
    stop.set()
    stats = run_worker(
        0,
        1,
        config=config,
        templates=load_templates(config),
        oracle=_InconclusiveOracle(),
        bound=BestBound(),
        stop=stop,
    )
    assert stats.checked_outputs == 0


def test_worker_keeps_instances(tmp_path) -> None:
    config = _config(tmp_path, keep_instances=True)
    oracle = _InconclusiveOracle()
    run_worker(
        1,
        1,
        config=config,
        templates=load_templates(config),
        oracle=oracle,
        bound=BestBound(),
        max_candidates=2,
    )
    names = sorted(p.name for p in config.work_dir.glob("*.cnf"))
    assert names == [
        "cbmc_skein_1r_3of12_template_explicit_output_hashlen512_seed1_gen1.cnf",
        "cbmc_skein_1r_3of12_template_explicit_output_hashlen512_seed1_gen2.cnf",
    ]
    assert [p.name for p in oracle.logs] == [
        "log_solver_op3_seed1_gen1",
        "log_solver_op3_seed1_gen2",
    ]


def test_worker_overwrites_by_default(tmp_path) -> None:
    config = _config(tmp_path)
    oracle = _InconclusiveOracle()
    run_worker(
        1,
        1,
        config=config,
        templates=load_templates(config),
        oracle=oracle,
        bound=BestBound(),
        max_candidates=2,
    )
    assert len(list(config.work_dir.glob("*.cnf"))) == 1
    assert {p.name for p in oracle.logs} == {"log_solver_op3_seed1"}


def test_run_pool(tmp_path) -> None:
    config = _config(tmp_path)
    oracle = _InconclusiveOracle()
    results = run_pool(
        2,
        config=config,
        oracle=oracle,
        max_candidates=3,
        install_signal_handlers=False,
    )
    assert [r.worker_id for r in results] == [0, 1]
    assert all(r.checked_outputs == 3 for r in results)
    assert len(oracle.time_limits) == 6
    assert worker_log_path(config, 0).exists()
    assert worker_log_path(config, 1).exists()


def test_run_pool_missing_templates(tmp_path) -> None:
    config = SearchConfig(template_dir=tmp_path, work_dir=tmp_path / "work")
    with pytest.raises(ConfigurationError):
        run_pool(1, config=config, oracle=_InconclusiveOracle(), install_signal_handlers=False)


def test_run_pool_worker_failure(tmp_path) -> None:
    config = _config(tmp_path)
    with pytest.raises(ConfigurationError):
        run_pool(
            2,
            config=config,
            oracle=_BrokenOracle(),
            max_candidates=1,
            install_signal_handlers=False,
        )


def test_run_pool_rejects_zero_workers(tmp_path) -> None:
    with pytest.raises(ValueError):
        run_pool(0, config=SearchConfig(template_dir=tmp_path), install_signal_handlers=False)
