from __future__ import annotations

import numpy as np
import pytest

from layout_valley.bigrams import ALPHABET, FrequencyTable


def make_random_table(seed: int, n_bigrams: int, alphabet: str = ALPHABET) -> FrequencyTable:
    rng = np.random.default_rng(seed)
    table: FrequencyTable = {}
    while len(table) < n_bigrams:
        a, b = rng.choice(len(alphabet), size=2, replace=False)
        table[(alphabet[a], alphabet[b])] = float(rng.integers(0, 1000)) / 10.0
    return table


@pytest.fixture
def small_table() -> FrequencyTable:
    return make_random_table(seed=7, n_bigrams=30)
