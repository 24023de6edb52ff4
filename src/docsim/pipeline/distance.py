# src/docsim/pipeline/distance.py
import logging

import numpy as np
import pandas as pd
from scipy import sparse
from sklearn.metrics.pairwise import cosine_similarity, euclidean_distances

from docsim.config import Settings, configure_logging

LOGGER = logging.getLogger(__name__)

METRICS = ("euclidean", "cosine")


def _oriented(X, axis: str):
    if axis == "documents":
        return X
    if axis == "terms":
        return X.T
    raise ValueError(f"axis must be 'documents' or 'terms', got {axis!r}")


def similarity_matrix(X, axis: str = "documents", labels=None) -> pd.DataFrame:
    """Cosine similarity between rows (documents) or columns (terms)."""
    M = _oriented(X, axis)
    sim = cosine_similarity(M)
    return pd.DataFrame(sim, index=labels, columns=labels)


def distance_matrix(
    X, metric: str = "euclidean", axis: str = "documents", labels=None
) -> pd.DataFrame:
    """Square distance matrix; cosine is turned into the dissimilarity 1 - cos."""
    M = _oriented(X, axis)
    if metric == "euclidean":
        dist = euclidean_distances(M)
    elif metric == "cosine":
        dist = 1.0 - cosine_similarity(M)
    else:
        raise ValueError(f"Unknown metric {metric!r}; choose one of {METRICS}")

    # float round-off: exact zeros on the diagonal, no negatives, symmetric
    dist = np.clip(dist, 0.0, None)
    dist = (dist + dist.T) / 2.0
    np.fill_diagonal(dist, 0.0)
    LOGGER.debug("%s distances over %s: %s", metric, axis, dist.shape)
    return pd.DataFrame(dist, index=labels, columns=labels)


def most_similar(sim: pd.DataFrame, doc_id, n: int = 3) -> pd.Series:
    """The ``n`` documents most similar to ``doc_id``, excluding itself."""
    if doc_id not in sim.index:
        raise KeyError(f"Unknown document: {doc_id!r}")
    row = sim.loc[doc_id].drop(index=doc_id)
    return row.sort_values(ascending=False, kind="stable").head(n)


def closest_pairs(sim: pd.DataFrame, n: int = 5) -> pd.DataFrame:
    """The ``n`` most similar distinct document pairs."""
    ids = list(sim.index)
    i, j = np.triu_indices(len(ids), k=1)
    pairs = pd.DataFrame(
        {
            "doc_a": [ids[a] for a in i],
            "doc_b": [ids[b] for b in j],
            "similarity": sim.to_numpy()[i, j],
        }
    )
    return pairs.sort_values("similarity", ascending=False, kind="stable").head(n).reset_index(drop=True)


def main():
    configure_logging()
    settings = Settings.from_env()
    X = sparse.load_npz(settings.artifacts / "dtm.npz")
    rows = pd.read_csv(settings.artifacts / "rows_index.csv.gz", compression="gzip")
    labels = rows["doc_id"].astype(str).tolist()

    out = settings.distances_dir
    out.mkdir(parents=True, exist_ok=True)
    for metric in METRICS:
        dist = distance_matrix(X, metric=metric, labels=labels)
        dist.to_csv(out / f"{metric}.csv.gz", compression="gzip")
    sim = similarity_matrix(X, labels=labels)
    sim.to_csv(out / "cosine_similarity.csv.gz", compression="gzip")
    closest_pairs(sim).to_csv(out / "closest_pairs.csv.gz", index=False, compression="gzip")
    print(f"Saved distance matrices to {out}")


if __name__ == "__main__":
    main()
