# src/docsim/pipeline/labeling.py
"""Label k-means clusters by their most distinctive terms.

A cluster is described by the features whose mean weight exceeds the
unweighted average of all *other* cluster centers by the largest margin,
rather than by its raw highest-weight features (which tend to be terms that
are frequent everywhere).
"""
import logging
import operator
from typing import Optional, Sequence

import joblib
import numpy as np
import pandas as pd

from docsim.config import Settings, configure_logging
from docsim.errors import (
    DimensionMismatch,
    IndexOutOfRange,
    InvalidClusterCount,
    InvalidRequestSize,
)

LOGGER = logging.getLogger(__name__)


def _as_center_matrix(centers) -> np.ndarray:
    """Return ``centers`` as a read-only float view of shape (K, F)."""
    if isinstance(centers, pd.DataFrame):
        arr = centers.to_numpy(dtype=float)
    elif isinstance(centers, np.ndarray) and centers.dtype != object:
        arr = centers.astype(float, copy=False)
    else:
        # lists and object arrays may hold ragged rows
        rows = [np.asarray(r, dtype=float).ravel() for r in centers]
        if len(rows) < 2:
            raise InvalidClusterCount(
                f"need at least 2 cluster centers, got {len(rows)}"
            )
        widths = {len(r) for r in rows}
        if len(widths) > 1:
            raise DimensionMismatch(
                f"center rows have inconsistent lengths: {sorted(widths)}"
            )
        arr = np.vstack(rows)

    if arr.ndim != 2:
        raise DimensionMismatch(f"centers must be 2-D, got shape {arr.shape}")
    if arr.shape[0] < 2:
        raise InvalidClusterCount(
            f"need at least 2 cluster centers, got {arr.shape[0]}"
        )
    if arr.shape[1] < 1:
        raise DimensionMismatch("centers have no features")
    # never hand out a writable alias of the caller's matrix
    view = arr.view()
    view.flags.writeable = False
    return view


def _check_index(k, n_clusters: int) -> int:
    if isinstance(k, (bool, np.bool_)):
        raise IndexOutOfRange(f"cluster index must be an integer, got {k!r}")
    try:
        k = operator.index(k)
    except TypeError:
        raise IndexOutOfRange(f"cluster index must be an integer, got {k!r}") from None
    if not 0 <= k < n_clusters:
        raise IndexOutOfRange(f"cluster index {k} not in [0, {n_clusters})")
    return k


def _check_request(n, n_features: int) -> int:
    if isinstance(n, (bool, np.bool_)):
        raise InvalidRequestSize(f"n must be an integer, got {n!r}")
    try:
        n = operator.index(n)
    except TypeError:
        raise InvalidRequestSize(f"n must be an integer, got {n!r}") from None
    if not 1 <= n <= n_features:
        raise InvalidRequestSize(f"n={n} not in [1, {n_features}]")
    return n


def _feature_names(centers, feature_names, n_features: int):
    if feature_names is None and isinstance(centers, pd.DataFrame):
        feature_names = centers.columns
    if feature_names is None:
        return None
    names = list(feature_names)
    if len(names) != n_features:
        raise DimensionMismatch(
            f"{len(names)} feature names for {n_features} features"
        )
    return names


def _ranked(values: np.ndarray, n: int, names) -> list:
    # stable sort on the negated values: descending, ties keep feature order
    order = np.argsort(-values, kind="stable")[:n]
    if names is None:
        return [int(i) for i in order]
    return [names[i] for i in order]


def _diff(arr: np.ndarray, k: int) -> np.ndarray:
    # mean of the row-wise differences: identical centers give exact zeros
    return (arr[k] - np.delete(arr, k, axis=0)).mean(axis=0)


def diff_vector(centers, k) -> np.ndarray:
    """``centers[k]`` minus the unweighted mean of every other center."""
    arr = _as_center_matrix(centers)
    k = _check_index(k, arr.shape[0])
    return _diff(arr, k)


def top_features(
    centers, k, n, feature_names: Optional[Sequence] = None
) -> list:
    """Return the ``n`` features that most distinguish cluster ``k``.

    Features are ordered by descending ``diff`` (see :func:`diff_vector`);
    equal values keep ascending feature order. Identifiers come from
    ``feature_names``, the columns of a DataFrame ``centers``, or are the
    integer feature indices.

    Raises ``InvalidClusterCount``, ``IndexOutOfRange``,
    ``InvalidRequestSize`` or ``DimensionMismatch`` before computing anything.
    """
    arr = _as_center_matrix(centers)
    names = _feature_names(centers, feature_names, arr.shape[1])
    k = _check_index(k, arr.shape[0])
    n = _check_request(n, arr.shape[1])
    return _ranked(_diff(arr, k), n, names)


def top_raw_features(
    centers, k, n, feature_names: Optional[Sequence] = None
) -> list:
    """Return the ``n`` highest-weight features of center ``k`` itself."""
    arr = _as_center_matrix(centers)
    names = _feature_names(centers, feature_names, arr.shape[1])
    k = _check_index(k, arr.shape[0])
    n = _check_request(n, arr.shape[1])
    return _ranked(arr[k], n, names)


def label_clusters(
    centers, feature_names: Optional[Sequence] = None, n: int = 8, labels=None
) -> pd.DataFrame:
    """One row per cluster: distinctive terms, raw terms and (optionally) size."""
    arr = _as_center_matrix(centers)
    names = _feature_names(centers, feature_names, arr.shape[1])
    n = min(n, arr.shape[1])
    sizes = None
    if labels is not None:
        sizes = pd.Series(np.asarray(labels)).value_counts()

    rows = []
    for cid in range(arr.shape[0]):
        terms = [str(t) for t in top_features(arr, cid, n, names)]
        raw = [str(t) for t in top_raw_features(arr, cid, n, names)]
        row = {
            "cluster_id": cid,
            "label": ", ".join(terms[:3]),
            "top_terms": ", ".join(terms),
            "raw_terms": ", ".join(raw),
        }
        if sizes is not None:
            row["size"] = int(sizes.get(cid, 0))
        rows.append(row)
        LOGGER.debug("cluster %d: %s", cid, row["label"])
    return pd.DataFrame(rows)


def main():
    configure_logging()
    settings = Settings.from_env()
    vec = joblib.load(settings.artifacts / "vectorizer.joblib")
    km = joblib.load(settings.clusters_dir / "kmeans.joblib")
    assignments = pd.read_csv(settings.clusters_dir / "labels.csv.gz", compression="gzip")

    table = label_clusters(
        km.cluster_centers_,
        vec.get_feature_names_out(),
        n=settings.top_n,
        labels=assignments["cluster"].to_numpy(),
    )
    out = settings.clusters_dir / "cluster_labels.csv.gz"
    table.to_csv(out, index=False, compression="gzip")
    print(f"Saved: {out}")


if __name__ == "__main__":
    main()
