# src/docsim/ingest/corpus.py
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from docsim.config import Settings, configure_logging

LOGGER = logging.getLogger(__name__)

CorpusSource = Union[str, Path, Mapping, Iterable[str]]


def read_directory(
    directory: Path, pattern: str = "*.txt", encoding: str = "utf-8"
) -> pd.DataFrame:
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Corpus directory not found: {directory}")
    rows = []
    for path in sorted(directory.glob(pattern)):
        if not path.is_file():
            continue
        rows.append(
            {
                "doc_id": path.stem,
                "text": path.read_text(encoding=encoding, errors="replace"),
                "path": path.as_posix(),
            }
        )
    return pd.DataFrame(rows, columns=["doc_id", "text", "path"])


def load_corpus(
    source: CorpusSource, pattern: str = "*.txt", encoding: str = "utf-8"
) -> pd.DataFrame:
    """Load documents from a directory, a ``{doc_id: text}`` mapping or a list of texts."""
    if isinstance(source, (str, Path)):
        df = read_directory(Path(source), pattern=pattern, encoding=encoding)
    elif isinstance(source, Mapping):
        df = pd.DataFrame(
            {"doc_id": [str(k) for k in source], "text": [str(v) for v in source.values()]}
        )
    else:
        texts = [str(t) for t in source]
        df = pd.DataFrame(
            {"doc_id": [f"doc_{i}" for i in range(len(texts))], "text": texts}
        )

    if df.empty:
        raise ValueError(f"Empty corpus: {source!r}")
    if df["doc_id"].duplicated().any():
        dupes = df.loc[df["doc_id"].duplicated(), "doc_id"].tolist()
        raise ValueError(f"Duplicate document ids: {dupes}")
    LOGGER.info("Loaded %d documents", len(df))
    return df.reset_index(drop=True)


def main():
    configure_logging()
    settings = Settings.from_env()
    out_path = settings.artifacts / "corpus.csv.gz"
    out_path.parent.mkdir(parents=True, exist_ok=True)

    df = load_corpus(settings.corpus_dir)
    df.to_csv(out_path, index=False, compression="gzip")
    print(f"Saved: {out_path} ({len(df):,} documents)")


if __name__ == "__main__":
    main()
