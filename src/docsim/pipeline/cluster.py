# src/docsim/pipeline/cluster.py
import json
import logging

import joblib
import numpy as np
import pandas as pd
from scipy import sparse
from scipy.cluster import hierarchy
from scipy.spatial.distance import squareform
from sklearn.cluster import KMeans
from sklearn.metrics import silhouette_score

from docsim.config import Settings, configure_logging

LOGGER = logging.getLogger(__name__)

LINKAGE_METHODS = ("single", "complete", "average", "weighted", "centroid", "median", "ward")


def hierarchical(dist, method: str = "ward") -> np.ndarray:
    """SciPy linkage matrix built from a square distance matrix."""
    if method not in LINKAGE_METHODS:
        raise ValueError(f"Unknown linkage {method!r}; choose one of {LINKAGE_METHODS}")
    D = np.asarray(dist, dtype=float)
    if D.ndim != 2 or D.shape[0] != D.shape[1]:
        raise ValueError(f"Distance matrix must be square, got shape {D.shape}")
    if D.shape[0] < 2:
        raise ValueError("Need at least 2 documents to build a merge tree")
    condensed = squareform(D, checks=False)
    return hierarchy.linkage(condensed, method=method)


def cut_tree(Z: np.ndarray, k: int) -> np.ndarray:
    """Flat 0-based labels from cutting the merge tree into ``k`` groups."""
    n_leaves = Z.shape[0] + 1
    if not 1 <= k <= n_leaves:
        raise ValueError(f"k={k} not in [1, {n_leaves}]")
    return hierarchy.cut_tree(Z, n_clusters=k).ravel()


def kmeans(X, k: int, random_state: int = 42, n_init: int = 10):
    """Fit k-means; returns (labels, centers, model). Centers are (k, n_features)."""
    n_docs = X.shape[0]
    if not 2 <= k <= n_docs:
        raise ValueError(f"k={k} not in [2, {n_docs}]")
    km = KMeans(n_clusters=k, n_init=n_init, random_state=random_state)
    labels = km.fit_predict(X)
    return labels, np.asarray(km.cluster_centers_), km


def choose_k(X, k_grid=(2, 3, 4, 5), random_state: int = 42):
    # silhouette needs 2 <= k <= n_docs - 1
    n_docs = X.shape[0]
    scores = {}
    for k in k_grid:
        if not 2 <= k <= n_docs - 1:
            LOGGER.info("k=%d skipped for %d documents", k, n_docs)
            continue
        labels, _, _ = kmeans(X, k, random_state=random_state)
        try:
            s = float(silhouette_score(X, labels))
        except ValueError as exc:
            # k-means can collapse to fewer distinct labels on tiny corpora
            LOGGER.warning("k=%d silhouette failed: %s", k, exc)
            s = float("nan")
        scores[k] = s
        LOGGER.info("k=%3d | silhouette=%.4f", k, s)

    valid = [k for k in scores if not np.isnan(scores[k])]
    if not valid:
        raise ValueError(f"No usable k in {tuple(k_grid)} for {n_docs} documents")
    best_k = max(valid, key=lambda t: scores[t])
    return best_k, scores


def main():
    configure_logging()
    settings = Settings.from_env()
    out = settings.clusters_dir
    out.mkdir(parents=True, exist_ok=True)

    X = sparse.load_npz(settings.artifacts / "dtm.npz")
    rows = pd.read_csv(settings.artifacts / "rows_index.csv.gz", compression="gzip")
    dist = pd.read_csv(settings.distances_dir / "cosine.csv.gz", compression="gzip", index_col=0)

    if settings.k:
        best_k = settings.k
    else:
        best_k, scores = choose_k(X, settings.k_grid, random_state=settings.random_state)
        with open(out / "k_selection.json", "w") as f:
            json.dump(scores, f, indent=2)

    labels, _, km = kmeans(X, best_k, random_state=settings.random_state)
    Z = hierarchical(dist, method=settings.linkage)
    np.save(out / "linkage.npy", Z)

    rows["cluster"] = labels
    rows["hcluster"] = cut_tree(Z, best_k)
    rows.to_csv(out / "labels.csv.gz", index=False, compression="gzip")
    joblib.dump(km, out / "kmeans.joblib")
    print(f"Saved KMeans(k={best_k}), linkage ({settings.linkage}) and labels to {out}")


if __name__ == "__main__":
    main()
