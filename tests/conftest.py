import shutil
from pathlib import Path

import matplotlib
import pytest

matplotlib.use("Agg")

SAMPLE_CORPUS = Path(__file__).resolve().parents[1] / "data" / "raw" / "corpus"


@pytest.fixture
def texts():
    """Six short documents in three obvious topics."""
    return [
        "stars galaxy telescope light stars",
        "galaxy stars telescope orbit planet",
        "flour dough bake bread yeast",
        "dough flour butter pastry bake",
        "team match goals coach fans",
        "match coach players fans team",
    ]


@pytest.fixture
def corpus_dir(tmp_path):
    """Copy of the bundled sample corpus."""
    target = tmp_path / "corpus"
    shutil.copytree(SAMPLE_CORPUS, target)
    return target


@pytest.fixture
def artifacts_env(tmp_path, corpus_dir, monkeypatch):
    """Point every pipeline stage at a scratch artifacts directory."""
    artifacts = tmp_path / "artifacts"
    monkeypatch.setenv("DOCSIM_CORPUS_DIR", str(corpus_dir))
    monkeypatch.setenv("DOCSIM_ARTIFACTS", str(artifacts))
    monkeypatch.setenv("DOCSIM_K", "3")
    monkeypatch.setenv("DOCSIM_TOP_N", "5")
    return artifacts
