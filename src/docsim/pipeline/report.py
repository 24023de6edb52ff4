# src/docsim/pipeline/report.py
import textwrap

import joblib
import numpy as np
import pandas as pd

from docsim.config import Settings, configure_logging
from docsim.pipeline.distance import closest_pairs
from docsim.pipeline.labeling import label_clusters


def sample_rows(rows: pd.DataFrame, labels_col="cluster", per_cluster=3, seed=42):
    out = []
    rng = np.random.RandomState(seed)
    for c in sorted(rows[labels_col].unique()):
        sub = rows[rows[labels_col] == c]
        take = min(per_cluster, len(sub))
        out.append(sub.sample(take, random_state=rng))
    return pd.concat(out, ignore_index=True)


def build_report(
    rows: pd.DataFrame,
    cluster_table: pd.DataFrame,
    pairs: pd.DataFrame,
    texts: pd.Series,
    per_cluster: int = 3,
) -> str:
    """Markdown walkthrough report; ``texts`` is indexed by doc_id."""
    md_lines = ["# Document Similarity and Clustering Report\n"]
    md_lines.append(
        f"- Documents: **{len(rows):,}**  \n"
        f"- Clusters: **{rows['cluster'].nunique()}**\n"
    )

    md_lines.append("## Most Similar Document Pairs\n")
    md_lines.append("| doc A | doc B | cosine |")
    md_lines.append("|---|---|---|")
    for _, p in pairs.iterrows():
        md_lines.append(f"| {p['doc_a']} | {p['doc_b']} | {p['similarity']:.3f} |")
    md_lines.append("")

    md_lines.append("## Distinctive Terms by Cluster\n")
    for _, r in cluster_table.iterrows():
        size = f" ({int(r['size'])} docs)" if "size" in cluster_table.columns else ""
        md_lines.append(f"### Cluster {int(r['cluster_id'])}{size}\n")
        md_lines.append("- distinctive: `" + "`, `".join(r["top_terms"].split(", ")) + "`")
        md_lines.append("- raw weight: `" + "`, `".join(r["raw_terms"].split(", ")) + "`\n")

    md_lines.append("## Sample Documents per Cluster\n")
    samples = sample_rows(rows, per_cluster=per_cluster)
    for c in sorted(rows["cluster"].unique()):
        md_lines.append(f"### Cluster {c}\n")
        sub = samples[samples["cluster"] == c]
        for _, r in sub.iterrows():
            txt = textwrap.shorten(str(texts.get(r["doc_id"], "")), width=220, placeholder="…")
            md_lines.append(f"- **{r['doc_id']}**: {txt}")
        md_lines.append("")
    return "\n".join(md_lines)


def main():
    configure_logging()
    settings = Settings.from_env()
    settings.reports_dir.mkdir(parents=True, exist_ok=True)

    rows = pd.read_csv(settings.clusters_dir / "labels.csv.gz", compression="gzip")
    corpus = pd.read_csv(settings.artifacts / "corpus.csv.gz", compression="gzip")
    sim = pd.read_csv(
        settings.distances_dir / "cosine_similarity.csv.gz", compression="gzip", index_col=0
    )
    vec = joblib.load(settings.artifacts / "vectorizer.joblib")
    km = joblib.load(settings.clusters_dir / "kmeans.joblib")

    table = label_clusters(
        km.cluster_centers_,
        vec.get_feature_names_out(),
        n=settings.top_n,
        labels=rows["cluster"].to_numpy(),
    )
    texts = corpus.assign(doc_id=corpus["doc_id"].astype(str)).set_index("doc_id")["text"]
    rows["doc_id"] = rows["doc_id"].astype(str)
    md = build_report(rows, table, closest_pairs(sim), texts)

    report_md = settings.reports_dir / "similarity_report.md"
    report_md.write_text(md, encoding="utf-8")
    print(f"Saved {report_md}")


if __name__ == "__main__":
    main()
