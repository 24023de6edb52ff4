# src/docsim/pipeline/clean_text.py
import re
from dataclasses import dataclass
from functools import lru_cache

import pandas as pd
from nltk.stem import PorterStemmer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS
from tqdm import tqdm

from docsim.config import Settings, configure_logging

URL_RE = re.compile(r"http\S+|www\.\S+")
PUNCT_RE = re.compile(r"[^\w\s]|_")
NUMBER_RE = re.compile(r"^\d+(?:[.,]\d+)*$")

_stemmer = PorterStemmer()


@dataclass(frozen=True)
class CleaningOptions:
    lowercase: bool = True
    remove_stopwords: bool = True
    remove_punctuation: bool = True
    remove_numbers: bool = True
    stem: bool = True
    lemmatize: bool = False
    min_token_len: int = 1


RAW = CleaningOptions(
    lowercase=False,
    remove_stopwords=False,
    remove_punctuation=False,
    remove_numbers=False,
    stem=False,
)


@lru_cache(maxsize=1)
def _spacy_nlp():
    import spacy

    return spacy.load("en_core_web_sm", disable=["ner", "parser"])


def lemmatize(tokens: list[str]) -> list[str]:
    doc = _spacy_nlp()(" ".join(tokens))
    return [t.lemma_ for t in doc if not t.is_space]


def clean_document(text: str, options: CleaningOptions = CleaningOptions()) -> str:
    text = URL_RE.sub(" ", str(text))
    if options.lowercase:
        text = text.lower()
    if options.remove_punctuation:
        text = PUNCT_RE.sub(" ", text)

    tokens = text.split()
    if options.remove_numbers:
        # "3," still counts as a number when punctuation is kept
        tokens = [t for t in tokens if not NUMBER_RE.match(t.strip(".,;:!?()\"'"))]
    if options.remove_stopwords:
        tokens = [t for t in tokens if t.lower() not in ENGLISH_STOP_WORDS]
    if options.min_token_len > 1:
        tokens = [t for t in tokens if len(t) >= options.min_token_len]
    if options.lemmatize and tokens:
        tokens = lemmatize(tokens)
    if options.stem:
        # PorterStemmer lower-cases by default; keep case when asked to
        tokens = [_stemmer.stem(t, to_lowercase=options.lowercase) for t in tokens]
    return " ".join(tokens)


def process_corpus(
    df: pd.DataFrame,
    options: CleaningOptions = CleaningOptions(),
    text_col: str = "text",
) -> pd.DataFrame:
    # empty documents are kept so row order stays aligned with doc_id
    out = df.copy()
    tqdm.pandas(desc="Cleaning", disable=len(out) < 100)
    out["clean_text"] = out[text_col].astype(str).progress_apply(
        lambda t: clean_document(t, options)
    )
    return out


def main():
    configure_logging()
    settings = Settings.from_env()
    in_path = settings.artifacts / "corpus.csv.gz"
    out_path = settings.artifacts / "corpus_clean.csv.gz"
    if not in_path.exists():
        raise FileNotFoundError(f"Input not found: {in_path}")

    df = pd.read_csv(in_path, compression="gzip")
    df = process_corpus(df)
    df.to_csv(out_path, index=False, compression="gzip")
    print(f"Saved cleaned corpus → {out_path} ({len(df):,} documents)")


if __name__ == "__main__":
    main()
