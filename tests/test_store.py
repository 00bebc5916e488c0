from __future__ import annotations

import sqlite3
from multiprocessing import Pool

import pytest

from layout_valley.bigrams import ALPHABET
from layout_valley.climber import OptimizationResult
from layout_valley.store import ResultStore, StoreInitError, load_frame

LAYOUT = "qwertyuiopasdfghjklzxcvbnm"


def _insert_same_layout(db_path: str) -> bool:
    with ResultStore(db_path) as store:
        return store.insert(OptimizationResult(layout=LAYOUT, cost=1.0, steps=3))


def test_insert_then_exists(tmp_path):
    with ResultStore(tmp_path / "layouts.db") as store:
        assert not store.exists(LAYOUT)
        assert store.insert(OptimizationResult(LAYOUT, 12.5, 4))
        assert store.exists(LAYOUT)
        assert store.count() == 1


def test_insert_is_idempotent_and_keeps_original_values(tmp_path):
    with ResultStore(tmp_path / "layouts.db") as store:
        assert store.insert(OptimizationResult(LAYOUT, 12.5, 4))
        assert not store.insert(OptimizationResult(LAYOUT, 99.0, 7))

        assert store.count() == 1
        assert store.get(LAYOUT) == OptimizationResult(LAYOUT, 12.5, 4)


def test_init_is_idempotent(tmp_path):
    db_path = tmp_path / "nested" / "layouts.db"
    with ResultStore(db_path) as store:
        store.insert(OptimizationResult(LAYOUT, 1.0, 2))

    with ResultStore(db_path) as store:
        assert store.count() == 1
        assert store.exists(LAYOUT)


def test_without_steps_column(tmp_path):
    db_path = tmp_path / "layouts.db"
    with ResultStore(db_path, store_steps=False) as store:
        assert store.insert(OptimizationResult(LAYOUT, 3.0, 5))
        assert store.get(LAYOUT) == OptimizationResult(LAYOUT, 3.0, None)
        assert "steps" not in store.to_frame().columns


def test_existing_table_without_steps_is_left_untouched(tmp_path):
    db_path = tmp_path / "layouts.db"
    ResultStore(db_path, store_steps=False).close()

    with ResultStore(db_path, store_steps=True) as store:
        assert not store.store_steps
        assert store.insert(OptimizationResult(LAYOUT, 3.0, 5))

    with sqlite3.connect(db_path) as conn:
        columns = [row[1] for row in conn.execute("PRAGMA table_info(layouts)")]
    assert columns == ["id", "layout", "cost"]


def test_best_and_frame(tmp_path):
    with ResultStore(tmp_path / "layouts.db") as store:
        store.insert(OptimizationResult(LAYOUT, 5.0, 2))
        store.insert(OptimizationResult(ALPHABET, 1.0, 3))
        store.insert(OptimizationResult(ALPHABET[::-1], 3.0, 1))

        assert [r.cost for r in store.best(2)] == [1.0, 3.0]
        df = store.to_frame()

    assert list(df.columns) == ["id", "layout", "cost", "steps"]
    assert df["layout"].tolist() == [LAYOUT, ALPHABET, ALPHABET[::-1]]


def test_init_failure_raises(tmp_path):
    with pytest.raises(StoreInitError):
        ResultStore(tmp_path)


def test_concurrent_inserts_create_one_row(tmp_path):
    db_path = str(tmp_path / "layouts.db")
    ResultStore(db_path).close()

    with Pool(8) as pool:
        inserted = pool.map(_insert_same_layout, [db_path] * 16)

    assert sum(inserted) == 1
    with ResultStore(db_path) as store:
        assert store.count() == 1
        assert store.get(LAYOUT) == OptimizationResult(LAYOUT, 1.0, 3)


def test_results_without_stored_steps_have_no_step_count(tmp_path):
    with ResultStore(tmp_path / "layouts.db", store_steps=False) as store:
        store.insert(OptimizationResult(LAYOUT, 3.0, 5))
        store.insert(OptimizationResult(ALPHABET, 1.0, 2))

        assert [r.steps for r in store.best(2)] == [None, None]


def test_load_frame_does_not_touch_the_database(tmp_path, caplog):
    db_path = tmp_path / "layouts.db"
    with sqlite3.connect(db_path) as conn:
        conn.execute("CREATE TABLE layouts (id INTEGER PRIMARY KEY, layout TEXT UNIQUE NOT NULL, cost REAL NOT NULL)")
        conn.execute("INSERT INTO layouts (layout, cost) VALUES (?, ?)", (LAYOUT, 2.5))
    conn.close()

    df = load_frame(db_path)

    assert df["layout"].tolist() == [LAYOUT]
    assert list(df.columns) == ["id", "layout", "cost"]
    assert "steps" not in caplog.text
    with sqlite3.connect(db_path) as conn:
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "delete"
    conn.close()


def test_load_frame_reads_store_written_database(tmp_path):
    db_path = tmp_path / "layouts.db"
    with ResultStore(db_path) as store:
        store.insert(OptimizationResult(LAYOUT, 4.0, 3))

    df = load_frame(db_path)

    assert df[["layout", "cost", "steps"]].values.tolist() == [[LAYOUT, 4.0, 3]]


def test_load_frame_missing_file(tmp_path):
    with pytest.raises(sqlite3.OperationalError):
        load_frame(tmp_path / "missing.db")
