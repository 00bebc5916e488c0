"""
exp001_valley_search: ランダム再スタート最急降下によるレイアウト探索

バイグラム頻度から決まるコスト sum(freq * |pos(a) - pos(b)|) について、
ランダムな配置から谷 (2点交換で改善できない配置) まで降下し、
新しく見つかった谷をSQLiteに保存する。
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import hydra
from dotenv import load_dotenv
from hydra.core.config_store import ConfigStore
from hydra.core.hydra_config import HydraConfig
from omegaconf import OmegaConf

from layout_valley.bigrams import ALPHABET, load_bigram_frequencies
from layout_valley.climber import OptimizationResult
from layout_valley.search import SearchConfig, SearchCoordinator, SearchSummary
from layout_valley.store import ResultStore
from layout_valley.utils.env import EnvConfig
from layout_valley.utils.logger import PACKAGE_LOGGER, get_logger
from layout_valley.utils.timing import trace

load_dotenv()


@dataclass
class ExpConfig:
    debug: bool = False
    debug_max_tries: int = 1000
    seed: Optional[int] = None
    max_tries: int = 100_000_000
    n_workers: int = 13
    store_steps: bool = True
    alphabet: str = ALPHABET
    bigram_file: str = "bigrams.txt"
    db_file: str = "layouts.db"
    top_k: int = 10
    progress: bool = True
    note: str = ""


@dataclass
class Config:
    env: EnvConfig = field(default_factory=EnvConfig)
    exp: ExpConfig = field(default_factory=ExpConfig)


cs = ConfigStore.instance()
cs.store(name="default", group="env", node=EnvConfig)
cs.store(name="default", group="exp", node=ExpConfig)


def init_output_dir(cfg: Config) -> Path:
    major = Path(__file__).resolve().parent.name
    minor = HydraConfig.get().runtime.choices.exp
    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")

    output_dir = Path(cfg.env.output_dir) / "runs" / major / minor / run_id
    output_dir.mkdir(parents=True, exist_ok=True)

    cfg.env.output_dir = output_dir
    cfg.env.exp_name = f"{major}/{minor}"
    return output_dir


def dump_config(cfg: Config, output_dir: Path) -> None:
    (output_dir / "config_exp.yaml").write_text(
        OmegaConf.to_yaml(cfg.exp, resolve=True),
        encoding="utf-8",
    )
    (output_dir / "config_env.yaml").write_text(
        OmegaConf.to_yaml(cfg.env, resolve=True),
        encoding="utf-8",
    )


def resolve_data_path(data_dir: Path, name: str) -> Path:
    path = Path(name)
    return path if path.is_absolute() else data_dir / path


def stored_record(result: OptimizationResult) -> dict[str, Any]:
    record: dict[str, Any] = {"layout": result.layout, "cost": result.cost}
    if result.steps is not None:
        record["steps"] = result.steps
    return record


def summarize_metrics(summary: SearchSummary, store: ResultStore, cfg: ExpConfig) -> dict[str, Any]:
    best = summary.best
    return {
        "trials": summary.trials,
        "new_valleys": summary.new_valleys,
        "failed_inserts": summary.failed_inserts,
        "stored_valleys": store.count(),
        "elapsed_sec": summary.elapsed,
        "best_layout_this_run": best.layout if best else None,
        "best_cost_this_run": best.cost if best else None,
        "top_stored": [stored_record(r) for r in store.best(cfg.top_k)],
        "note": cfg.note,
    }


@hydra.main(version_base=None, config_path=".", config_name="config")
def main(cfg: Config) -> None:
    output_dir = init_output_dir(cfg)
    logger = get_logger(PACKAGE_LOGGER, output_dir)

    logger.info("exp_name=%s", cfg.env.exp_name)
    logger.info("output_dir=%s", str(output_dir))
    logger.info("overrides=%s", ", ".join(HydraConfig.get().overrides.task))
    logger.info("cfg.exp=%s", OmegaConf.to_container(cfg.exp, resolve=True))

    dump_config(cfg, output_dir)

    data_dir = Path(cfg.env.data_dir)
    bigram_path = resolve_data_path(data_dir, cfg.exp.bigram_file)
    db_path = resolve_data_path(data_dir, cfg.exp.db_file)

    with trace("load-bigrams", logger):
        freq_table = load_bigram_frequencies(bigram_path)

    max_tries = cfg.exp.max_tries
    if cfg.exp.debug:
        max_tries = min(max_tries, cfg.exp.debug_max_tries)
        logger.info("debug mode: using %d trials", max_tries)

    search_cfg = SearchConfig(
        max_tries=max_tries,
        n_workers=cfg.exp.n_workers,
        store_steps=cfg.exp.store_steps,
        seed=cfg.exp.seed,
        alphabet=cfg.exp.alphabet,
        progress=cfg.exp.progress,
    )
    coordinator = SearchCoordinator(freq_table, db_path, search_cfg, log_dir=output_dir)

    with trace("search", logger):
        summary = coordinator.run()

    with ResultStore(db_path, store_steps=cfg.exp.store_steps) as store:
        metrics = summarize_metrics(summary, store, cfg.exp)

    (output_dir / "metrics.json").write_text(
        json.dumps(metrics, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )

    print("=" * 80)
    print(f"  Trials:          {summary.trials}")
    print(f"  New valleys:     {summary.new_valleys}")
    print(f"  Stored valleys:  {metrics['stored_valleys']}")
    if summary.best is not None:
        print(f"  Best this run:   {summary.best.layout} (cost {summary.best.cost:.4f})")
    print("=" * 80)
    logger.info("metrics saved: %s", output_dir / "metrics.json")


if __name__ == "__main__":
    main()
