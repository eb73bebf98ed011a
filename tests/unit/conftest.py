"""
Lightweight fixtures for unit tests - NO real data dependencies.
All fixtures use synthetic clinical snippets that run in a few seconds.
"""

from typing import Dict, List

import numpy as np
import pytest

from clinical_topics.features.document_term import CountAggregator, DocumentTermMatrix, Vocabulary
from clinical_topics.features.topic_modeling import TopicModel
from clinical_topics.preprocessing import DictionaryLemmatizer


# =============================================================================
# Text Fixtures
# =============================================================================

@pytest.fixture
def sample_transcription() -> str:
    """Short transcription with punctuation, digits and mixed case."""
    return (
        "The patient is a 65-year-old male with chest pain. "
        "BP was 140/90! Denies shortness of breath? "
        "EKG showed normal sinus rhythm."
    )


@pytest.fixture
def basic_stopwords() -> set:
    """Small stopword set used across tests."""
    return {"the", "is", "a", "with", "was", "of", "in", "and", "to", "were"}


@pytest.fixture
def simple_lemmatizer() -> DictionaryLemmatizer:
    """Dictionary lemmatizer covering a few plural clinical terms."""
    return DictionaryLemmatizer({
        "knees": "knee",
        "fractures": "fracture",
        "arteries": "artery",
        "showed": "show",
        "incisions": "incision",
    })


@pytest.fixture
def clinical_records() -> List[Dict]:
    """Raw records from three specialties (ids deliberately out of order)."""
    return [
        {"id": 3, "text": "Both knees were swollen and the fractures healed.", "group_label": "Orthopedic"},
        {"id": 1, "text": "Coronary arteries showed mild stenosis.", "group_label": "Cardiology"},
        {"id": 2, "text": "The incisions were closed with sutures.", "group_label": "Surgery"},
        {"id": 4, "text": "Stenosis of the coronary arteries was noted.", "group_label": "Cardiology"},
    ]


# =============================================================================
# Document-Term Fixtures
# =============================================================================

CARDIO_TERMS = ["coronary", "stenosis", "angina", "troponin", "stent"]
ORTHO_TERMS = ["femur", "fracture", "cast", "tibia", "splint"]


@pytest.fixture
def separation_pairs() -> List[tuple]:
    """
    Four documents over two disjoint 5-term vocabularies:
    documents 0 and 1 use only cardiology terms, 2 and 3 only orthopedic terms.
    """
    pairs = []
    for doc_id, vocabulary in ((0, CARDIO_TERMS), (1, CARDIO_TERMS), (2, ORTHO_TERMS), (3, ORTHO_TERMS)):
        for repeat in range(4):
            for term in vocabulary:
                pairs.append((doc_id, term))
    return pairs


@pytest.fixture
def separation_dtm(separation_pairs) -> DocumentTermMatrix:
    """DTM of the two-vocabulary separation corpus (4 docs x 10 terms)."""
    table = CountAggregator().aggregate(separation_pairs)
    return DocumentTermMatrix.build(table)


@pytest.fixture
def dtm_with_empty_document(separation_pairs) -> DocumentTermMatrix:
    """Separation corpus plus document 9 with no retained tokens."""
    table = CountAggregator().aggregate(separation_pairs, document_ids=[0, 1, 2, 3, 9])
    return DocumentTermMatrix.build(table)


@pytest.fixture
def empty_dtm() -> DocumentTermMatrix:
    """Two documents, zero vocabulary."""
    table = CountAggregator().aggregate([], document_ids=["a", "b"])
    return DocumentTermMatrix.build(table)


# =============================================================================
# Topic Model Fixtures
# =============================================================================

@pytest.fixture
def handcrafted_model() -> TopicModel:
    """
    Two topics over four terms with known probabilities.

    Topic 0 ties "alpha"/"beta" at 0.4; topic 1 favours "delta".
    Document "d2" has an exact 0.5/0.5 tie.
    """
    return TopicModel(
        num_topics=2,
        vocabulary_size=4,
        num_documents=3,
        alpha=0.1,
        eta=0.01,
        seed=7,
        iterations=10,
        vocabulary=Vocabulary(["beta", "alpha", "gamma", "delta"]),
        document_ids=("d1", "d2", "d3"),
        beta=np.array([
            [0.4, 0.4, 0.15, 0.05],
            [0.1, 0.1, 0.2, 0.6],
        ]),
        gamma=np.array([
            [0.9, 0.1],
            [0.5, 0.5],
            [0.2, 0.8],
        ]),
    )
