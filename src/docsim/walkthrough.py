# src/docsim/walkthrough.py
"""Run every pipeline stage in order, as the notebook walkthrough does."""
from docsim.ingest import corpus
from docsim.pipeline import clean_text, cluster, distance, features, labeling, plots, report, scaling

STAGES = (
    corpus,
    clean_text,
    features,
    distance,
    scaling,
    cluster,
    labeling,
    plots,
    report,
)


def main():
    for stage in STAGES:
        stage.main()


if __name__ == "__main__":
    main()
