"""
ランダム再スタート山登りの並列実行

固定数のワーカープロセスが試行回数を均等に分け合い、それぞれ
ランダム配置 -> 谷まで降下 -> 未登録なら保存 を繰り返す。
ワーカー間で共有するのは読み取り専用の頻度テーブルとDBファイルのみ。
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from multiprocessing import Pool
from pathlib import Path

import numpy as np
from tqdm import tqdm

from layout_valley.bigrams import ALPHABET, Bigram, BigramArrays, compile_table
from layout_valley.climber import HillClimber, OptimizationResult
from layout_valley.generator import LayoutGenerator
from layout_valley.store import ResultStore
from layout_valley.utils.logger import PACKAGE_LOGGER, get_logger

logger = logging.getLogger(__name__)


@dataclass
class SearchConfig:
    max_tries: int = 100_000_000
    n_workers: int = 13
    store_steps: bool = True
    seed: int | None = None
    alphabet: str = ALPHABET
    progress: bool = True


@dataclass(frozen=True)
class WorkerTask:
    worker_id: int
    n_trials: int
    arrays: BigramArrays
    db_path: str
    store_steps: bool
    alphabet: str
    seed: np.random.SeedSequence | None = None
    progress: bool = False


@dataclass
class WorkerSummary:
    worker_id: int
    trials: int = 0
    new_valleys: int = 0
    failed_inserts: int = 0
    best: OptimizationResult | None = None


@dataclass
class SearchSummary:
    workers: list[WorkerSummary] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def trials(self) -> int:
        return sum(w.trials for w in self.workers)

    @property
    def new_valleys(self) -> int:
        return sum(w.new_valleys for w in self.workers)

    @property
    def failed_inserts(self) -> int:
        return sum(w.failed_inserts for w in self.workers)

    @property
    def best(self) -> OptimizationResult | None:
        candidates = [w.best for w in self.workers if w.best is not None]
        return min(candidates, key=lambda r: r.cost) if candidates else None


def trial_shares(max_tries: int, n_workers: int) -> list[int]:
    """試行回数を均等に分配 (余りは先頭のワーカーに1つずつ)"""
    if max_tries < 0:
        raise ValueError(f"max_tries must be >= 0: {max_tries}")
    if n_workers < 1:
        raise ValueError(f"n_workers must be >= 1: {n_workers}")
    base, rem = divmod(max_tries, n_workers)
    return [base + (1 if k < rem else 0) for k in range(n_workers)]


# -----------------------------------------------------------------------------
# Worker
# -----------------------------------------------------------------------------
def _init_worker(log_dir: str | None) -> None:
    get_logger(PACKAGE_LOGGER, log_dir)


def run_worker(task: WorkerTask) -> WorkerSummary:
    """並列処理用ワーカ関数"""
    summary = WorkerSummary(worker_id=task.worker_id)
    generator = LayoutGenerator(task.alphabet, seed=task.seed)
    climber = HillClimber(task.arrays, task.alphabet)

    trials = tqdm(
        range(task.n_trials),
        desc=f"worker {task.worker_id:02d}",
        position=task.worker_id + 1,
        leave=False,
        disable=not task.progress,
    )
    with ResultStore(task.db_path, store_steps=task.store_steps) as store:
        for _ in trials:
            valley = climber.climb_perm(generator.random_perm())
            summary.trials += 1
            if summary.best is None or valley.cost < summary.best.cost:
                summary.best = valley

            try:
                if store.exists(valley.layout):
                    continue
                inserted = store.insert(valley)
            except sqlite3.Error:
                logger.exception("Failed to save to DB: %s", valley.layout)
                summary.failed_inserts += 1
                continue

            # 他ワーカーが先に挿入した場合は報告しない
            if inserted:
                summary.new_valleys += 1
                logger.info("Found valley: %s with cost: %s. Steps %d", valley.layout, valley.cost, valley.steps)

    return summary


# -----------------------------------------------------------------------------
# Coordinator
# -----------------------------------------------------------------------------
class SearchCoordinator:
    def __init__(
        self,
        freq_table: Mapping[Bigram, float] | BigramArrays,
        db_path: Path | str,
        config: SearchConfig | None = None,
        log_dir: Path | str | None = None,
    ) -> None:
        self.config = config or SearchConfig()
        self.db_path = str(db_path)
        self.log_dir = str(log_dir) if log_dir is not None else None
        if self.config.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1: {self.config.n_workers}")
        self.n_workers = self.config.n_workers

        if isinstance(freq_table, BigramArrays):
            self.arrays = freq_table
        else:
            self.arrays = compile_table(freq_table, self.config.alphabet)

        # ワーカー起動前にスキーマを作成 (失敗したらここで StoreInitError)
        with ResultStore(self.db_path, store_steps=self.config.store_steps) as store:
            self.store_steps = store.store_steps
            logger.info("result store %s: %d layouts already stored", self.db_path, store.count())

    def worker_tasks(self) -> list[WorkerTask]:
        cfg = self.config
        if cfg.seed is None:
            seeds: list[np.random.SeedSequence | None] = [None] * self.n_workers
        else:
            seeds = list(np.random.SeedSequence(cfg.seed).spawn(self.n_workers))

        return [
            WorkerTask(
                worker_id=k,
                n_trials=n_trials,
                arrays=self.arrays,
                db_path=self.db_path,
                store_steps=self.store_steps,
                alphabet=cfg.alphabet,
                seed=seeds[k],
                progress=cfg.progress,
            )
            for k, n_trials in enumerate(trial_shares(cfg.max_tries, self.n_workers))
        ]

    def run(self) -> SearchSummary:
        tasks = self.worker_tasks()
        logger.info(
            "Running %d trials on %d workers (%d bigrams)", self.config.max_tries, len(tasks), len(self.arrays)
        )

        t0 = time.time()
        summaries: list[WorkerSummary] = []
        if len(tasks) == 1:
            summaries.append(run_worker(tasks[0]))
        else:
            with Pool(len(tasks), initializer=_init_worker, initargs=(self.log_dir,)) as pool:
                for summary in tqdm(
                    pool.imap_unordered(run_worker, tasks),
                    total=len(tasks),
                    desc="Workers",
                    position=0,
                    disable=not self.config.progress,
                ):
                    logger.info(
                        "worker %d done: trials=%d new_valleys=%d failed_inserts=%d",
                        summary.worker_id,
                        summary.trials,
                        summary.new_valleys,
                        summary.failed_inserts,
                    )
                    summaries.append(summary)

        summaries.sort(key=lambda s: s.worker_id)
        return SearchSummary(workers=summaries, elapsed=time.time() - t0)
