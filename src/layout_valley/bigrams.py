"""
バイグラム頻度テーブルの読み込み

1行に1つ `<bigram> <weight>` の形式。形式に合わない行は黙って読み飛ばす。
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

import numpy as np

ALPHABET = "abcdefghijklmnopqrstuvwxyz"

Bigram = tuple[str, str]
FrequencyTable = dict[Bigram, float]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BigramArrays:
    """Numbaカーネル用に展開したテーブル (記号インデックスと重み)"""

    first: np.ndarray
    second: np.ndarray
    weights: np.ndarray

    def __len__(self) -> int:
        return int(self.weights.shape[0])


def parse_bigram_line(line: str) -> tuple[Bigram, float] | None:
    parts = line.split()
    if len(parts) != 2:  # noqa: PLR2004
        return None

    bigram, raw_freq = parts
    if len(bigram) != 2:  # noqa: PLR2004
        return None

    try:
        freq = float(raw_freq)
    except ValueError:
        return None
    if not math.isfinite(freq) or freq < 0.0:
        return None

    return (bigram[0], bigram[1]), freq


def parse_bigram_lines(lines: Iterable[str]) -> FrequencyTable:
    table: FrequencyTable = {}
    skipped = 0
    for line in lines:
        parsed = parse_bigram_line(line)
        if parsed is None:
            skipped += 1
            continue
        bigram, freq = parsed
        table[bigram] = freq

    if skipped:
        logger.debug("skipped %d malformed bigram lines", skipped)
    return table


def load_bigram_frequencies(path: Path | str) -> FrequencyTable:
    with open(path, encoding="utf-8") as f:
        table = parse_bigram_lines(f)
    logger.info("loaded %d bigrams from %s", len(table), path)
    return table


def symbol_index(alphabet: str = ALPHABET) -> dict[str, int]:
    if len(set(alphabet)) != len(alphabet):
        raise ValueError(f"alphabet has duplicate symbols: {alphabet!r}")
    return {symbol: i for i, symbol in enumerate(alphabet)}


def compile_table(table: Mapping[Bigram, float], alphabet: str = ALPHABET) -> BigramArrays:
    """アルファベット外の記号を含むエントリはコストに寄与しないので落とす"""
    index = symbol_index(alphabet)
    first, second, weights = [], [], []
    for (a, b), freq in table.items():
        if a in index and b in index:
            first.append(index[a])
            second.append(index[b])
            weights.append(freq)

    return BigramArrays(
        first=np.array(first, dtype=np.int64),
        second=np.array(second, dtype=np.int64),
        weights=np.array(weights, dtype=np.float64),
    )
