# src/docsim/pipeline/features.py
import json
import logging

import joblib
import numpy as np
import pandas as pd
from scipy import sparse
from sklearn.feature_extraction.text import CountVectorizer, TfidfVectorizer
from sklearn.preprocessing import normalize

from docsim.config import Settings, configure_logging

LOGGER = logging.getLogger(__name__)

WEIGHTINGS = ("count", "frequency", "tfidf")
# text is cleaned upstream; keep every word token, including 1-char ones
TOKEN_PATTERN = r"(?u)\b\w+\b"


def build_dtm(
    texts,
    weighting: str = "count",
    min_df=1,
    max_df=1.0,
    ngram_range: tuple[int, int] = (1, 1),
) -> tuple[sparse.csr_matrix, CountVectorizer]:
    """Document-term matrix under one of the supported weightings.

    ``count`` keeps raw counts, ``frequency`` divides each row by its total,
    ``tfidf`` is scikit-learn's smoothed tf-idf with L2-normalised rows.
    """
    if weighting not in WEIGHTINGS:
        raise ValueError(f"Unknown weighting {weighting!r}; choose one of {WEIGHTINGS}")

    params = dict(
        lowercase=False,
        token_pattern=TOKEN_PATTERN,
        min_df=min_df,
        max_df=max_df,
        ngram_range=ngram_range,
    )
    if weighting == "tfidf":
        vec = TfidfVectorizer(norm="l2", **params)
    else:
        vec = CountVectorizer(**params)

    X = vec.fit_transform([str(t) for t in texts]).astype(float)
    if weighting == "frequency":
        # all-zero rows stay zero
        X = normalize(X, norm="l1", axis=1)
    X = sparse.csr_matrix(X)
    LOGGER.info("DTM (%s): %d docs x %d terms", weighting, X.shape[0], X.shape[1])
    return X, vec


def dtm_frame(X, vectorizer, index=None) -> pd.DataFrame:
    dense = X.toarray() if sparse.issparse(X) else np.asarray(X)
    return pd.DataFrame(dense, index=index, columns=vectorizer.get_feature_names_out())


def top_terms(X, vectorizer, n: int = 10) -> pd.Series:
    """Terms with the largest total weight across the corpus."""
    totals = np.asarray(X.sum(axis=0)).ravel()
    s = pd.Series(totals, index=vectorizer.get_feature_names_out())
    return s.sort_values(ascending=False, kind="stable").head(n)


def main():
    configure_logging()
    settings = Settings.from_env()
    in_path = settings.artifacts / "corpus_clean.csv.gz"
    if not in_path.exists():
        raise FileNotFoundError(f"Input not found: {in_path}")

    # Ensure a clean 0..N-1 index so row_id aligns with DTM rows
    df = pd.read_csv(in_path, compression="gzip", keep_default_na=False)
    df = df.reset_index(drop=True)

    X, vec = build_dtm(df["clean_text"], weighting=settings.weighting)
    sparse.save_npz(settings.artifacts / "dtm.npz", X)
    joblib.dump(vec, settings.artifacts / "vectorizer.joblib")
    with open(settings.artifacts / "dtm_meta.json", "w") as f:
        json.dump(
            {
                "n_docs": X.shape[0],
                "n_features": X.shape[1],
                "weighting": settings.weighting,
            },
            f,
            indent=2,
        )

    rows_index = pd.DataFrame(
        {
            "row_id": np.arange(len(df), dtype=int),
            "doc_id": df["doc_id"].astype(str),
            "clean_text": df["clean_text"],
        }
    )
    rows_index.to_csv(settings.artifacts / "rows_index.csv.gz", index=False, compression="gzip")

    print(f"DTM: {X.shape}. Saved artifacts to {settings.artifacts}")


if __name__ == "__main__":
    main()
