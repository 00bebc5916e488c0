from __future__ import annotations

import numpy as np
import pytest

from layout_valley.bigrams import compile_table, load_bigram_frequencies, parse_bigram_line


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("th 1.5", (("t", "h"), 1.5)),
        ("he\t2", (("h", "e"), 2.0)),
        ("  in   0.25  \n", (("i", "n"), 0.25)),
        ("qu 0", (("q", "u"), 0.0)),
        ("x1 3e2", (("x", "1"), 300.0)),
    ],
)
def test_parse_valid_lines(line, expected):
    assert parse_bigram_line(line) == expected


@pytest.mark.parametrize(
    "line",
    ["", "th", "th 1 2", "the 1.0", "t 1.0", "th abc", "th -1.0", "th nan", "th inf", "# comment"],
)
def test_parse_skips_malformed_lines(line):
    assert parse_bigram_line(line) is None


def test_load_bigram_frequencies(tmp_path):
    path = tmp_path / "bigrams.txt"
    path.write_text("th 10\nbroken line here\nhe 5.5\nth 12\nabc 1\n\nin x\n", encoding="utf-8")

    table = load_bigram_frequencies(path)

    assert table == {("t", "h"): 12.0, ("h", "e"): 5.5}


def test_load_missing_file_is_fatal(tmp_path):
    with pytest.raises(OSError):
        load_bigram_frequencies(tmp_path / "missing.txt")


def test_compile_table_drops_foreign_symbols():
    arrays = compile_table({("a", "b"): 1.0, ("a", "1"): 2.0, ("z", "y"): 3.0})

    assert len(arrays) == 2
    np.testing.assert_array_equal(arrays.first, [0, 25])
    np.testing.assert_array_equal(arrays.second, [1, 24])
    np.testing.assert_array_equal(arrays.weights, [1.0, 3.0])


def test_compile_table_rejects_duplicate_alphabet():
    with pytest.raises(ValueError):
        compile_table({}, alphabet="aab")
