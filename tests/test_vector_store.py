"""
Vector store contract, run against the in-memory store and, when faiss-cpu
is installed, the FAISS store.
"""

import threading
import pytest
import numpy as np
from statmem.vector.index import IVectorStore, SimpleInMemoryVectorStore
from statmem.vector.types import VectorRecord

DIM = 384


def axis(*weights):
    """384-dim vector with the given leading components."""
    vector = np.zeros(DIM)
    vector[:len(weights)] = weights
    return vector


@pytest.fixture(params=["memory", "faiss"])
def store(request):
    if request.param == "faiss":
        pytest.importorskip("faiss")
        from statmem.vector.faiss_store import FaissVectorStore
        return FaissVectorStore(dimension=DIM)
    return SimpleInMemoryVectorStore()


def test_vector_store_interface(store):
    assert isinstance(store, IVectorStore)


def test_add_single_record(store):
    """Test adding a single vector record."""
    store.add(VectorRecord(id="test_id", vector=axis(1.0), metadata={"key": "value"}, content="hello"))

    results = store.search(axis(1.0), top_k=1)
    assert len(results) == 1
    assert results[0].id == "test_id"
    assert results[0].metadata["key"] == "value"
    assert results[0].content == "hello"
    assert results[0].score == pytest.approx(1.0, abs=1e-6)
    assert store.count() == 1
    assert store.get("test_id").content == "hello"


def test_batch_add_records(store):
    store.batch_add([
        VectorRecord(id="record_1", vector=axis(1.0, 0.0)),
        VectorRecord(id="record_2", vector=axis(0.0, 1.0)),
    ])

    results = store.search(axis(1.0, 0.0), top_k=2)
    assert [r.id for r in results] == ["record_1", "record_2"]


def test_search_orders_by_cosine_similarity(store):
    store.add(VectorRecord(id="far", vector=axis(0.0, 1.0)))
    store.add(VectorRecord(id="near", vector=axis(0.9, 0.1)))
    store.add(VectorRecord(id="mid", vector=axis(0.5, 0.5)))

    results = store.search(axis(1.0, 0.0), top_k=3)
    assert [r.id for r in results] == ["near", "mid", "far"]
    assert results[0].score > results[1].score > results[2].score


def test_search_respects_top_k(store):
    for i in range(5):
        store.add(VectorRecord(id=f"r{i}", vector=axis(1.0, i)))
    assert len(store.search(axis(1.0), top_k=2)) == 2
    assert len(store.search(axis(1.0), top_k=50)) == 5


def test_equal_scores_keep_insertion_order(store):
    for record_id in ["first", "second", "third"]:
        store.add(VectorRecord(id=record_id, vector=axis(1.0, 1.0)))

    results = store.search(axis(1.0, 1.0), top_k=3)
    assert [r.id for r in results] == ["first", "second", "third"]


def test_zero_probe_returns_records_in_insertion_order(store):
    store.add(VectorRecord(id="a", vector=axis(0.0, 1.0)))
    store.add(VectorRecord(id="b", vector=axis(1.0)))
    store.add(VectorRecord(id="empty", vector=np.zeros(DIM)))

    results = store.search(np.zeros(DIM), top_k=10)
    assert [r.id for r in results] == ["a", "b", "empty"]
    assert all(r.score == 0.0 for r in results)


def test_zero_vector_record_scores_zero(store):
    store.add(VectorRecord(id="empty", vector=np.zeros(DIM)))
    store.add(VectorRecord(id="real", vector=axis(1.0)))

    results = store.search(axis(1.0), top_k=2)
    assert [r.id for r in results] == ["real", "empty"]
    assert results[1].score == 0.0


def test_delete_record(store):
    store.add(VectorRecord(id="delete_test", vector=axis(1.0)))
    store.add(VectorRecord(id="keep", vector=axis(0.0, 1.0)))

    assert store.delete("delete_test") is True
    assert store.delete("delete_test") is False

    results = store.search(axis(1.0), top_k=5)
    assert [r.id for r in results] == ["keep"]
    assert store.get("delete_test") is None


def test_clear_store(store):
    store.add(VectorRecord(id="clear_test", vector=axis(1.0)))
    store.clear()

    assert store.search(axis(1.0), top_k=1) == []
    assert store.count() == 0


def test_re_adding_replaces_record(store):
    """Adding a record with an existing ID replaces vector and metadata."""
    store.add(VectorRecord(id="doc", vector=axis(1.0), metadata={"key": "value"}))
    store.add(VectorRecord(id="doc", vector=axis(0.0, 1.0), metadata={"key": "updated_value"}))

    results = store.search(axis(0.0, 1.0), top_k=5)
    assert len(results) == 1
    assert results[0].metadata["key"] == "updated_value"
    assert results[0].score == pytest.approx(1.0, abs=1e-6)


def test_empty_search(store):
    assert store.search(axis(1.0), top_k=5) == []


def test_record_without_vector_is_rejected(store):
    with pytest.raises(ValueError):
        store.add(VectorRecord(id="none", vector=None))


def test_concurrent_adds(store):
    def worker(offset):
        for i in range(25):
            store.add(VectorRecord(id=f"{offset}-{i}", vector=axis(1.0, float(i))))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.count() == 100
