# app/streamlit_app.py
import streamlit as st
import pandas as pd
import numpy as np
import joblib
import altair as alt
from pathlib import Path
from scipy.sparse import load_npz
from sklearn.cluster import KMeans

from docsim.config import Settings
from docsim.errors import LabelingError
from docsim.pipeline.labeling import diff_vector, top_features, top_raw_features

SETTINGS = Settings.from_env()

st.set_page_config(page_title="Document Similarity Walkthrough", layout="wide")


# --- Utils ---
def first_existing(*paths: Path) -> Path | None:
    for p in paths:
        if p and p.exists():
            return p
    return None


# --- Load artifacts ---
@st.cache_data(show_spinner=False)
def load_artifacts(artifacts_dir: str):
    settings = Settings(artifacts=Path(artifacts_dir))
    paths = {
        "dtm": first_existing(settings.artifacts / "dtm.npz"),
        "vectorizer": first_existing(settings.artifacts / "vectorizer.joblib"),
        "mds": first_existing(settings.artifacts / "mds_2d.csv.gz"),
        "kmeans": first_existing(settings.clusters_dir / "kmeans.joblib"),
        "labels": first_existing(settings.clusters_dir / "labels.csv.gz"),
        "corpus": first_existing(settings.artifacts / "corpus.csv.gz"),
        "similarity": first_existing(settings.distances_dir / "cosine_similarity.csv.gz"),
    }
    missing = [name for name, p in paths.items() if p is None]
    if missing:
        raise FileNotFoundError(
            "Missing artifacts:\n- " + "\n- ".join(missing)
            + "\n\nRun: `python -m docsim.walkthrough`."
        )

    return {
        "X": load_npz(paths["dtm"]),
        "vectorizer": joblib.load(paths["vectorizer"]),
        "mds": pd.read_csv(paths["mds"], compression="gzip", index_col=0),
        "kmeans": joblib.load(paths["kmeans"]),
        "labels": pd.read_csv(paths["labels"], compression="gzip"),
        "corpus": pd.read_csv(paths["corpus"], compression="gzip"),
        "similarity": pd.read_csv(paths["similarity"], compression="gzip", index_col=0),
    }


# --- Main ---
def main():
    st.title("Document Similarity Walkthrough")
    st.caption("DTM → distances → MDS → hierarchical / k-means → distinctive terms")

    try:
        art = load_artifacts(str(SETTINGS.artifacts))
    except FileNotFoundError as e:
        st.error(f"Failed to load artifacts:\n\n{e}")
        return

    kmeans: KMeans = art["kmeans"]
    centers = kmeans.cluster_centers_
    vocab = art["vectorizer"].get_feature_names_out()
    rows = art["labels"].copy()
    rows["doc_id"] = rows["doc_id"].astype(str)
    coords = art["mds"].reset_index().rename(columns={"index": "doc_id"})
    coords["doc_id"] = coords["doc_id"].astype(str)
    merged = coords.merge(rows[["doc_id", "cluster", "hcluster"]], on="doc_id", how="left")

    tab_map, tab_terms, tab_similar = st.tabs(
        ["🗺️ MDS map", "🏷️ Distinctive terms", "🔗 Similar documents"]
    )

    with tab_map:
        color_by = st.radio("Colour by", ["cluster", "hcluster"], horizontal=True)
        scatter = (
            alt.Chart(merged)
            .mark_circle(size=120)
            .encode(
                x="x:Q",
                y="y:Q",
                color=alt.Color(f"{color_by}:N"),
                tooltip=["doc_id:N", "cluster:N", "hcluster:N"],
            )
            .interactive()
            .properties(height=500)
        )
        text = alt.Chart(merged).mark_text(align="left", dx=7).encode(
            x="x:Q", y="y:Q", text="doc_id:N"
        )
        st.altair_chart(scatter + text, use_container_width=True)

    with tab_terms:
        c1, c2 = st.columns(2)
        with c1:
            k = st.selectbox("Cluster", list(range(centers.shape[0])))
        with c2:
            n = st.number_input("Terms", min_value=1, max_value=len(vocab), value=min(8, len(vocab)))
        try:
            distinctive = top_features(centers, k, int(n), vocab)
            raw = top_raw_features(centers, k, int(n), vocab)
            diff = pd.Series(diff_vector(centers, k), index=vocab)
        except LabelingError as e:
            st.error(str(e))
        else:
            table = pd.DataFrame(
                {
                    "distinctive": distinctive,
                    "diff": diff.loc[distinctive].to_numpy(),
                    "raw weight": raw,
                }
            )
            st.dataframe(table, use_container_width=True)
        members = rows.loc[rows["cluster"] == k, "doc_id"].tolist()
        st.caption("Documents: " + ", ".join(members))

    with tab_similar:
        sim = art["similarity"]
        sim.index = sim.index.astype(str)
        sim.columns = sim.columns.astype(str)
        doc = st.selectbox("Document", sim.index.tolist())
        row = sim.loc[doc].drop(index=doc).sort_values(ascending=False)
        st.bar_chart(row)
        corpus = art["corpus"].assign(doc_id=lambda d: d["doc_id"].astype(str))
        idx = int(np.flatnonzero(corpus["doc_id"].to_numpy() == doc)[0])
        st.text(corpus.loc[idx, "text"])
        st.caption(f"{art['X'][idx].nnz} distinct terms")


if __name__ == "__main__":
    main()
