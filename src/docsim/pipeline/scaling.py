# src/docsim/pipeline/scaling.py
import logging

import numpy as np
import pandas as pd
from sklearn.manifold import MDS

from docsim.config import Settings, configure_logging

LOGGER = logging.getLogger(__name__)


def _columns(n_components: int) -> list[str]:
    if n_components == 2:
        return ["x", "y"]
    return [f"dim_{i + 1}" for i in range(n_components)]


def project(
    dist: pd.DataFrame,
    n_components: int = 2,
    method: str = "mds",
    random_state: int = 42,
) -> pd.DataFrame:
    """Embed a precomputed distance matrix in ``n_components`` dimensions."""
    D = np.asarray(dist, dtype=float)
    if D.ndim != 2 or D.shape[0] != D.shape[1]:
        raise ValueError(f"Distance matrix must be square, got shape {D.shape}")
    index = dist.index if isinstance(dist, pd.DataFrame) else None

    if method == "mds":
        mds = MDS(
            n_components=n_components,
            dissimilarity="precomputed",
            n_init=4,
            random_state=random_state,
        )
        coords = mds.fit_transform(D)
        LOGGER.info("MDS stress: %.4f", mds.stress_)
    elif method == "umap":
        import umap

        um = umap.UMAP(
            n_components=n_components,
            metric="precomputed",
            n_neighbors=max(2, min(15, D.shape[0] - 1)),
            min_dist=0.1,
            random_state=random_state,
        )
        coords = um.fit_transform(D)
    else:
        raise ValueError(f"Unknown projection method {method!r}; use 'mds' or 'umap'")

    return pd.DataFrame(coords, index=index, columns=_columns(n_components))


def main():
    configure_logging()
    settings = Settings.from_env()
    in_path = settings.distances_dir / "cosine.csv.gz"
    if not in_path.exists():
        raise FileNotFoundError(f"Input not found: {in_path}")

    dist = pd.read_csv(in_path, compression="gzip", index_col=0)
    coords = project(dist, random_state=settings.random_state)
    out = settings.artifacts / "mds_2d.csv.gz"
    coords.to_csv(out, index_label="doc_id", compression="gzip")
    print(f"Saved {out}")


if __name__ == "__main__":
    main()
