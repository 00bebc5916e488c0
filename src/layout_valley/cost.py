from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np
from numba import njit

from layout_valley.bigrams import ALPHABET, Bigram, BigramArrays, compile_table, symbol_index


# -----------------------------------------------------------------------------
# Layout Encoding
# -----------------------------------------------------------------------------
def encode_layout(layout: str | Sequence[str], alphabet: str = ALPHABET) -> np.ndarray:
    """レイアウト文字列を perm[position] = symbol index の配列に変換"""
    index = symbol_index(alphabet)
    symbols = list(layout)
    if len(symbols) != len(alphabet) or set(symbols) != set(alphabet):
        raise ValueError(f"layout is not a permutation of {alphabet!r}: {''.join(symbols)!r}")
    return np.array([index[s] for s in symbols], dtype=np.int64)


def decode_layout(perm: np.ndarray, alphabet: str = ALPHABET) -> str:
    return "".join(alphabet[int(k)] for k in perm)


# -----------------------------------------------------------------------------
# Cost Kernels (Numba)
# -----------------------------------------------------------------------------
@njit(cache=True)
def positions_of(perm: np.ndarray) -> np.ndarray:
    where = np.empty(perm.shape[0], dtype=np.int64)
    for pos in range(perm.shape[0]):
        where[perm[pos]] = pos
    return where


@njit(cache=True)
def cost_from_positions(
    where: np.ndarray, first: np.ndarray, second: np.ndarray, weights: np.ndarray
) -> float:
    cost = 0.0
    for k in range(weights.shape[0]):
        cost += weights[k] * abs(where[first[k]] - where[second[k]])
    return cost


def layout_cost(perm: np.ndarray, arrays: BigramArrays) -> float:
    return float(cost_from_positions(positions_of(perm), arrays.first, arrays.second, arrays.weights))


def compute_cost(
    layout: str | Sequence[str],
    freq_table: Mapping[Bigram, float] | BigramArrays,
    alphabet: str = ALPHABET,
) -> float:
    """sum(weight * |pos(a) - pos(b)|) over all bigrams"""
    arrays = freq_table if isinstance(freq_table, BigramArrays) else compile_table(freq_table, alphabet)
    return layout_cost(encode_layout(layout, alphabet), arrays)
