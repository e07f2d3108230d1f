"""
Vector index tests.
Covers: self-retrieval, score ordering, k clipping, dimension checks, snapshot round-trip
        and the load failure modes (missing, unreadable, wrong dimension).
"""
import json

import numpy as np
import pytest

from codementor.core.vector_index import VectorIndex, normalize_vector
from conftest import CORPUS, DIMENSION, HashingEmbedder


def _filled_index(embedder: HashingEmbedder) -> VectorIndex:
    index = VectorIndex(DIMENSION, model_id=embedder.model_name)
    for doc in CORPUS:
        index.add(embedder.vector(f"{doc.title} {doc.problem}"), doc)
    return index


def test_normalize_vector_has_unit_norm():
    vec = normalize_vector([3.0, 4.0])
    assert vec.shape == (1, 2)
    assert np.linalg.norm(vec) == pytest.approx(1.0)


def test_normalize_vector_leaves_zero_vector():
    vec = normalize_vector([0.0, 0.0, 0.0])
    assert np.allclose(vec, 0.0)


def test_empty_index_returns_no_results():
    index = VectorIndex(DIMENSION)
    assert index.search([1.0] * DIMENSION, 5) == []


def test_document_is_its_own_nearest_neighbour(embedder):
    index = _filled_index(embedder)
    for label, doc in enumerate(CORPUS):
        results = index.search(embedder.vector(f"{doc.title} {doc.problem}"), 1)
        assert results[0][0] == label
        assert results[0][1] == pytest.approx(1.0, abs=1e-5)


def test_scores_are_non_increasing(embedder):
    index = _filled_index(embedder)
    results = index.search(embedder.vector("array target numbers grid"), 3)
    scores = [score for _, score in results]
    assert scores == sorted(scores, reverse=True)


def test_k_is_clipped_to_store_size(embedder):
    index = _filled_index(embedder)
    assert len(index.search(embedder.vector("anything"), 50)) == len(CORPUS)
    assert index.search(embedder.vector("anything"), 0) == []


def test_add_rejects_wrong_dimension():
    index = VectorIndex(4)
    with pytest.raises(ValueError):
        index.add([1.0, 2.0], CORPUS[0])
    assert len(index) == 0


def test_add_many_rejects_mismatched_lengths():
    index = VectorIndex(2)
    with pytest.raises(ValueError):
        index.add_many([[1.0, 0.0]], CORPUS[:2])


def test_reset_empties_store(embedder):
    index = _filled_index(embedder)
    index.reset()
    assert len(index) == 0
    assert index.search(embedder.vector("two sum"), 1) == []


def test_snapshot_round_trip_preserves_search(tmp_path, embedder):
    index = _filled_index(embedder)
    path = tmp_path / "snapshot.json"
    index.save(str(path))

    query = embedder.vector("sum of two numbers in an array")
    before = index.search(query, 2)

    restored = VectorIndex(DIMENSION)
    assert restored.load(str(path)) is True
    after = restored.search(query, 2)

    assert [label for label, _ in after] == [label for label, _ in before]
    for (_, a), (_, b) in zip(after, before):
        assert a == pytest.approx(b, abs=1e-5)
    assert restored.model_id == "hashing-test"
    assert [doc.title for doc in restored.documents] == [doc.title for doc in CORPUS]


def test_snapshot_layout(tmp_path, embedder):
    index = _filled_index(embedder)
    path = tmp_path / "snapshot.json"
    index.save(str(path))

    data = json.loads(path.read_text())
    assert set(data) == {"documents", "embeddings", "metadata"}
    assert data["metadata"]["dimension"] == DIMENSION
    assert data["metadata"]["count"] == len(CORPUS)
    assert data["metadata"]["modelId"] == "hashing-test"
    assert "createdAt" in data["metadata"]
    # raw vectors, not normalized
    assert data["embeddings"][0] == embedder.vector(f"{CORPUS[0].title} {CORPUS[0].problem}")


def test_load_missing_snapshot_leaves_index_empty(tmp_path):
    index = VectorIndex(DIMENSION)
    assert index.load(str(tmp_path / "missing.json")) is False
    assert len(index) == 0


def test_load_unreadable_snapshot_leaves_index_empty(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    index = VectorIndex(DIMENSION)
    assert index.load(str(path)) is False
    assert len(index) == 0


def test_load_wrong_dimension_leaves_index_empty(tmp_path, embedder):
    path = tmp_path / "snapshot.json"
    _filled_index(embedder).save(str(path))

    index = VectorIndex(768)
    assert index.load(str(path)) is False
    assert len(index) == 0


def test_load_replaces_existing_contents(tmp_path, embedder):
    path = tmp_path / "snapshot.json"
    _filled_index(embedder).save(str(path))

    index = _filled_index(embedder)
    assert index.load(str(path)) is True
    assert len(index) == len(CORPUS)
