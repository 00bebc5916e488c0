from __future__ import annotations

import numpy as np

from layout_valley.bigrams import ALPHABET
from layout_valley.cost import decode_layout


class LayoutGenerator:
    """
    ランダム再スタート用の一様ランダムな順列を生成する

    seed=None のときはOSのエントロピーから初期化されるので、
    ワーカーごとに生成すれば互いに独立な系列になる。
    """

    def __init__(
        self,
        alphabet: str = ALPHABET,
        seed: int | np.random.SeedSequence | None = None,
    ) -> None:
        self.alphabet = alphabet
        self.rng = np.random.default_rng(seed)

    def random_perm(self) -> np.ndarray:
        return self.rng.permutation(len(self.alphabet)).astype(np.int64)

    def random_layout(self) -> str:
        return decode_layout(self.random_perm(), self.alphabet)
