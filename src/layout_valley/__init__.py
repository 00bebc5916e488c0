from layout_valley.bigrams import ALPHABET, BigramArrays, FrequencyTable, compile_table, load_bigram_frequencies
from layout_valley.climber import HillClimber, OptimizationResult
from layout_valley.cost import compute_cost
from layout_valley.generator import LayoutGenerator
from layout_valley.search import SearchConfig, SearchCoordinator, SearchSummary
from layout_valley.store import ResultStore, StoreInitError

__all__ = [
    "ALPHABET",
    "BigramArrays",
    "FrequencyTable",
    "HillClimber",
    "LayoutGenerator",
    "OptimizationResult",
    "ResultStore",
    "SearchConfig",
    "SearchCoordinator",
    "SearchSummary",
    "StoreInitError",
    "compile_table",
    "compute_cost",
    "load_bigram_frequencies",
]
