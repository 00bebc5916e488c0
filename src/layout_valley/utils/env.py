from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from layout_valley.paths import DATA_DIR, OUTPUTS_DIR

load_dotenv()


@dataclass
class EnvConfig:
    data_dir: Path = Path(os.getenv("DATA_DIR", str(DATA_DIR)))
    output_dir: Path = Path(os.getenv("OUTPUT_DIR", str(OUTPUTS_DIR)))
    exp_name: str = ""
