from __future__ import annotations

from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = REPO_ROOT / "data"
OUTPUTS_DIR = REPO_ROOT / "outputs"
DEFAULT_BIGRAM_FILE = DATA_DIR / "bigrams.txt"
DEFAULT_DB_PATH = DATA_DIR / "layouts.db"
