"""
発見した谷 (局所最適レイアウト) の永続化

layout 列の UNIQUE 制約と INSERT OR IGNORE により、複数プロセスが同じ
レイアウトを同時に挿入しても行は1つだけ作られる。exists() は排他なしで読む。
接続はインスタンスが所有するので、ワーカーごとに別インスタンスを開くこと。
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from types import TracebackType

import pandas as pd

from layout_valley.climber import OptimizationResult

logger = logging.getLogger(__name__)

TABLE_NAME = "layouts"


class StoreInitError(RuntimeError):
    pass


class ResultStore:
    def __init__(self, path: Path | str, *, store_steps: bool = True, timeout: float = 30.0) -> None:
        self.path = str(path)
        self.store_steps = store_steps
        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(self.path, timeout=timeout, isolation_level=None)
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")
            self._create_table()
        except (sqlite3.Error, OSError) as exc:
            raise StoreInitError(f"failed to open result store {path}: {exc}") from exc

    def _create_table(self) -> None:
        steps_column = ", steps INTEGER" if self.store_steps else ""
        self.conn.execute(
            f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
            "id INTEGER PRIMARY KEY, "
            "layout TEXT UNIQUE NOT NULL, "
            f"cost REAL NOT NULL{steps_column})"
        )
        columns = {row[1] for row in self.conn.execute(f"PRAGMA table_info({TABLE_NAME})")}
        if self.store_steps and "steps" not in columns:
            # 既存テーブルは変更しない
            logger.warning("existing %s table has no steps column; steps will not be stored", TABLE_NAME)
            self.store_steps = False

    def exists(self, layout: str) -> bool:
        row = self.conn.execute(f"SELECT 1 FROM {TABLE_NAME} WHERE layout = ?", (layout,)).fetchone()
        return row is not None

    def insert(self, result: OptimizationResult) -> bool:
        """新しく行を作った場合だけ True。既存レイアウトなら何もしない"""
        if self.store_steps:
            cursor = self.conn.execute(
                f"INSERT OR IGNORE INTO {TABLE_NAME} (layout, cost, steps) VALUES (?, ?, ?)",
                (result.layout, float(result.cost), int(result.steps)),
            )
        else:
            cursor = self.conn.execute(
                f"INSERT OR IGNORE INTO {TABLE_NAME} (layout, cost) VALUES (?, ?)",
                (result.layout, float(result.cost)),
            )
        return cursor.rowcount == 1

    def get(self, layout: str) -> OptimizationResult | None:
        steps_expr = "steps" if self.store_steps else "NULL"
        row = self.conn.execute(
            f"SELECT layout, cost, {steps_expr} FROM {TABLE_NAME} WHERE layout = ?", (layout,)
        ).fetchone()
        return self._to_result(row) if row is not None else None

    def count(self) -> int:
        return int(self.conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()[0])

    def best(self, n: int = 10) -> list[OptimizationResult]:
        steps_expr = "steps" if self.store_steps else "NULL"
        rows = self.conn.execute(
            f"SELECT layout, cost, {steps_expr} FROM {TABLE_NAME} ORDER BY cost ASC, id ASC LIMIT ?", (n,)
        ).fetchall()
        return [self._to_result(row) for row in rows]

    def to_frame(self) -> pd.DataFrame:
        return pd.read_sql_query(f"SELECT * FROM {TABLE_NAME} ORDER BY id", self.conn)

    @staticmethod
    def _to_result(row: tuple) -> OptimizationResult:
        layout, cost, steps = row
        return OptimizationResult(layout=layout, cost=float(cost), steps=int(steps) if steps is not None else None)

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> ResultStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def load_frame(path: Path | str) -> pd.DataFrame:
    """読み取り専用で開いて全レコードを返す (スキーマ作成やWAL切り替えはしない)"""
    uri = f"{Path(path).resolve().as_uri()}?mode=ro"
    conn = sqlite3.connect(uri, uri=True)
    try:
        return pd.read_sql_query(f"SELECT * FROM {TABLE_NAME} ORDER BY id", conn)
    finally:
        conn.close()
