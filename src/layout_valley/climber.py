"""
最急降下法による局所探索

1ステップごとに全ての2点交換 (26C2 = 325通り) を評価し、最もコストが
下がる交換を適用する。改善する交換がなくなった時点 (谷) で終了する。
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass

import numpy as np
from numba import njit

from layout_valley.bigrams import ALPHABET, Bigram, BigramArrays, compile_table
from layout_valley.cost import cost_from_positions, decode_layout, encode_layout, positions_of


@dataclass(frozen=True)
class OptimizationResult:
    """steps は降下の反復回数 (>= 1)。steps を保存しないDBから読んだ場合は None"""

    layout: str
    cost: float
    steps: int | None


# -----------------------------------------------------------------------------
# Steepest Descent (Numba)
# -----------------------------------------------------------------------------
@njit(cache=True)
def best_swap(
    perm: np.ndarray,
    where: np.ndarray,
    first: np.ndarray,
    second: np.ndarray,
    weights: np.ndarray,
    current_cost: float,
) -> tuple[int, int, float]:
    """
    コストが current_cost より真に小さくなる最良の交換 (i, j) を返す
    同点の場合は (i, j) の辞書順で最初に見つかったものを採用。見つからなければ i = -1
    """
    n = perm.shape[0]
    best_i = -1
    best_j = -1
    best_cost = current_cost
    for i in range(n):
        for j in range(i + 1, n):
            si = perm[i]
            sj = perm[j]
            where[si] = j
            where[sj] = i
            new_cost = cost_from_positions(where, first, second, weights)
            if new_cost < best_cost:
                best_i = i
                best_j = j
                best_cost = new_cost
            where[si] = i
            where[sj] = j
    return best_i, best_j, best_cost


@njit(cache=True)
def apply_swap(perm: np.ndarray, where: np.ndarray, i: int, j: int) -> None:
    si = perm[i]
    sj = perm[j]
    perm[i] = sj
    perm[j] = si
    where[si] = j
    where[sj] = i


@njit(cache=True)
def descend(
    perm_init: np.ndarray, first: np.ndarray, second: np.ndarray, weights: np.ndarray
) -> tuple[np.ndarray, float, int]:
    perm = perm_init.copy()
    where = positions_of(perm)
    current_cost = cost_from_positions(where, first, second, weights)
    steps = 0
    improved = True
    while improved:
        i, j, new_cost = best_swap(perm, where, first, second, weights, current_cost)
        steps += 1
        improved = i >= 0
        if improved:
            apply_swap(perm, where, i, j)
            current_cost = new_cost
    return perm, current_cost, steps


# -----------------------------------------------------------------------------
# Python API
# -----------------------------------------------------------------------------
class HillClimber:
    def __init__(
        self,
        freq_table: Mapping[Bigram, float] | BigramArrays,
        alphabet: str = ALPHABET,
    ) -> None:
        self.alphabet = alphabet
        if isinstance(freq_table, BigramArrays):
            self.arrays = freq_table
        else:
            self.arrays = compile_table(freq_table, alphabet)

    def climb_perm(self, perm: np.ndarray) -> OptimizationResult:
        arrays = self.arrays
        out, cost, steps = descend(
            np.ascontiguousarray(perm, dtype=np.int64), arrays.first, arrays.second, arrays.weights
        )
        return OptimizationResult(layout=decode_layout(out, self.alphabet), cost=float(cost), steps=int(steps))

    def climb(self, layout: str | Sequence[str]) -> OptimizationResult:
        return self.climb_perm(encode_layout(layout, self.alphabet))

    def trajectory(self, layout: str | Sequence[str]) -> Iterator[float]:
        """開始時のコストと、各改善ステップ後のコストを順に返す (要素数 = steps)"""
        arrays = self.arrays
        perm = encode_layout(layout, self.alphabet)
        where = positions_of(perm)
        current_cost = float(cost_from_positions(where, arrays.first, arrays.second, arrays.weights))
        yield current_cost
        while True:
            i, j, new_cost = best_swap(perm, where, arrays.first, arrays.second, arrays.weights, current_cost)
            if i < 0:
                return
            apply_swap(perm, where, i, j)
            current_cost = float(new_cost)
            yield current_cost

    def is_valley(self, layout: str | Sequence[str]) -> bool:
        arrays = self.arrays
        perm = encode_layout(layout, self.alphabet)
        where = positions_of(perm)
        current_cost = cost_from_positions(where, arrays.first, arrays.second, arrays.weights)
        i, _, _ = best_swap(perm, where, arrays.first, arrays.second, arrays.weights, current_cost)
        return i < 0
