"""
保存済みの谷 (layouts.db) を集計して表示する。

用途:
- コストの分布と上位レイアウトの確認
- --bigrams を指定すると、現在の頻度ファイルでコストを再計算し、
  保存値とのずれと谷であるか (2点交換で改善できないか) を検証する
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from layout_valley.bigrams import ALPHABET, compile_table, load_bigram_frequencies
from layout_valley.climber import HillClimber
from layout_valley.cost import compute_cost
from layout_valley.paths import DEFAULT_DB_PATH
from layout_valley.store import load_frame


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", type=Path, default=DEFAULT_DB_PATH, help="SQLite file with stored valleys")
    parser.add_argument("--top", type=int, default=20, help="Number of best layouts to show")
    parser.add_argument("--bigrams", type=Path, default=None, help="Recompute costs with this frequency file")
    parser.add_argument("--alphabet", default=ALPHABET)
    args = parser.parse_args()

    if not args.db.exists():
        raise SystemExit(f"db not found: {args.db}")

    df = load_frame(args.db)

    if df.empty:
        print("No valleys stored yet.")
        return

    print(f"Stored valleys: {len(df)}")
    print("\nコスト分布:")
    print(df["cost"].describe().to_string())
    if "steps" in df.columns and df["steps"].notna().any():
        print("\nステップ数分布:")
        print(df["steps"].describe().to_string())

    best = df.sort_values(["cost", "id"]).head(args.top)
    print(f"\nベスト{args.top}:")
    print(f"{'layout':<28} {'cost':>14} {'steps':>6}")
    print("-" * 50)
    for row in best.itertuples(index=False):
        steps = getattr(row, "steps", None)
        steps_str = "-" if steps is None or np.isnan(steps) else str(int(steps))
        print(f"{row.layout:<28} {row.cost:>14.4f} {steps_str:>6}")

    if args.bigrams is None:
        return

    arrays = compile_table(load_bigram_frequencies(args.bigrams), args.alphabet)
    climber = HillClimber(arrays, args.alphabet)
    recomputed = np.array([compute_cost(layout, arrays, args.alphabet) for layout in df["layout"]])
    diff = np.abs(recomputed - df["cost"].to_numpy(dtype=np.float64))
    not_valley = [layout for layout in best["layout"] if not climber.is_valley(layout)]

    print("\n再計算との比較:")
    print(f"  max |diff|: {diff.max():.6g}")
    print(f"  diff > 1e-6: {int((diff > 1e-6).sum())} rows")  # noqa: PLR2004
    print(f"  top-{args.top} not valleys under current bigrams: {len(not_valley)}")
    for layout in not_valley:
        print(f"    {layout}")


if __name__ == "__main__":
    main()
