"""Vector store selection by configuration tag."""
import structlog

from docqa import config
from docqa.rag.store import VectorStore

logger = structlog.get_logger()

VECTOR_BACKENDS = ("qdrant", "faiss")


def create_vector_store(backend: str = None, **options) -> VectorStore:
    """Build the vector store named by `backend` (default from config).

    Options are passed to the backend constructor, for example `url` and
    `collection_name` for qdrant or `index_dir` for faiss.

    Raises:
        ValueError: If the backend is unknown
    """
    backend = (backend or config.VECTOR_BACKEND).lower()

    if backend == "qdrant":
        from docqa.rag.store_qdrant import QdrantVectorStore

        store = QdrantVectorStore(**options)
    elif backend == "faiss":
        from docqa.rag.store_faiss import FAISSVectorStore

        store = FAISSVectorStore(**options)
    else:
        raise ValueError(f"Unknown vector backend: {backend}")

    logger.info("vector_store_created", backend=backend)
    return store
