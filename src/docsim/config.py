# src/docsim/config.py
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

# Load .env explicitly from project root
env_path = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_CORPUS_DIR = "data/raw/corpus"
DEFAULT_ARTIFACTS = "artifacts"
DEFAULT_K_GRID = "2,3,4,5"


def _int_list(raw: str) -> Tuple[int, ...]:
    return tuple(int(s) for s in raw.split(",") if s.strip())


@dataclass(frozen=True)
class Settings:
    corpus_dir: Path = Path(DEFAULT_CORPUS_DIR)
    artifacts: Path = Path(DEFAULT_ARTIFACTS)
    weighting: str = "tfidf"
    k: int = 0  # 0 = pick by silhouette over k_grid
    k_grid: Tuple[int, ...] = field(default_factory=lambda: _int_list(DEFAULT_K_GRID))
    top_n: int = 8
    linkage: str = "ward"
    random_state: int = 42
    log_level: str = "INFO"

    @property
    def clusters_dir(self) -> Path:
        return self.artifacts / "clusters"

    @property
    def distances_dir(self) -> Path:
        return self.artifacts / "distances"

    @property
    def reports_dir(self) -> Path:
        return self.artifacts / "reports"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            corpus_dir=Path(os.getenv("DOCSIM_CORPUS_DIR", DEFAULT_CORPUS_DIR)),
            artifacts=Path(os.getenv("DOCSIM_ARTIFACTS", DEFAULT_ARTIFACTS)),
            weighting=os.getenv("DOCSIM_WEIGHTING", "tfidf"),
            k=int(os.getenv("DOCSIM_K", "0")),
            k_grid=_int_list(os.getenv("DOCSIM_K_GRID", DEFAULT_K_GRID)),
            top_n=int(os.getenv("DOCSIM_TOP_N", "8")),
            linkage=os.getenv("DOCSIM_LINKAGE", "ward"),
            random_state=int(os.getenv("DOCSIM_RANDOM_STATE", "42")),
            log_level=os.getenv("DOCSIM_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = None) -> None:
    """Set up root logging once for a pipeline entry point."""
    level = level or os.getenv("DOCSIM_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
