# src/docsim/pipeline/plots.py
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy.cluster.hierarchy import dendrogram

from docsim.config import Settings, configure_logging


def plot_distance_heatmap(dist: pd.DataFrame, path_png: Path, title="Document distances"):
    plt.figure(figsize=(8, 7))
    sns.heatmap(dist, cmap="viridis", square=True, cbar_kws={"label": "distance"})
    plt.title(title)
    plt.tight_layout()
    plt.savefig(path_png, dpi=160)
    plt.close()


def plot_mds(coords: pd.DataFrame, path_png: Path, clusters=None):
    df = coords.copy()
    df["label"] = df.index.astype(str)
    hue = None
    if clusters is not None:
        df["cluster"] = np.asarray(clusters).astype(str)
        hue = "cluster"

    plt.figure(figsize=(8, 6))
    ax = sns.scatterplot(data=df, x="x", y="y", hue=hue, s=80)
    for _, r in df.iterrows():
        ax.annotate(r["label"], (r["x"], r["y"]), textcoords="offset points", xytext=(4, 4), fontsize=8)
    plt.title("MDS projection of document distances")
    plt.tight_layout()
    plt.savefig(path_png, dpi=160)
    plt.close()


def plot_dendrogram(Z: np.ndarray, labels, path_png: Path, method: str = "ward"):
    plt.figure(figsize=(10, 5))
    dendrogram(Z, labels=list(labels), leaf_rotation=90)
    plt.title(f"Hierarchical clustering ({method} linkage)")
    plt.ylabel("Merge height")
    plt.tight_layout()
    plt.savefig(path_png, dpi=160)
    plt.close()


def plot_cluster_sizes(labels, path_png: Path):
    counts = pd.Series(labels).value_counts().sort_index()
    plt.figure(figsize=(8, 4))
    counts.plot(kind="bar")
    plt.title("Cluster sizes")
    plt.xlabel("Cluster")
    plt.ylabel("Docs")
    plt.tight_layout()
    plt.savefig(path_png, dpi=160)
    plt.close()


def main():
    configure_logging()
    settings = Settings.from_env()
    out = settings.reports_dir
    in_path = settings.distances_dir / "cosine.csv.gz"
    if not in_path.exists():
        raise FileNotFoundError(f"Input not found: {in_path}")
    out.mkdir(parents=True, exist_ok=True)

    dist = pd.read_csv(in_path, compression="gzip", index_col=0)
    coords = pd.read_csv(settings.artifacts / "mds_2d.csv.gz", compression="gzip", index_col=0)
    rows = pd.read_csv(settings.clusters_dir / "labels.csv.gz", compression="gzip")
    Z = np.load(settings.clusters_dir / "linkage.npy")

    plot_distance_heatmap(dist, out / "cosine_heatmap.png", title="Cosine dissimilarity")
    plot_mds(coords, out / "mds.png", clusters=rows["cluster"])
    plot_dendrogram(Z, rows["doc_id"].astype(str), out / "dendrogram.png", method=settings.linkage)
    plot_cluster_sizes(rows["cluster"], out / "cluster_sizes.png")

    print(f"Saved plots to {out}/")


if __name__ == "__main__":
    main()
