"""Tests for backend selection."""
import pytest

from docqa.rag.store_factory import create_vector_store
from docqa.rag.store_faiss import FAISSVectorStore
from docqa.rag.store_qdrant import QdrantVectorStore


def test_qdrant_backend():
    store = create_vector_store("qdrant", url="http://qdrant.test", collection_name="docs")

    assert isinstance(store, QdrantVectorStore)
    assert store.collection_url == "http://qdrant.test/collections/docs"


def test_faiss_backend(tmp_path):
    store = create_vector_store("FAISS", index_dir=tmp_path, collection_name="docs")

    assert isinstance(store, FAISSVectorStore)


def test_unknown_backend():
    with pytest.raises(ValueError, match="Unknown vector backend"):
        create_vector_store("milvus")
