"""FAISS vector store kept on local disk.

Handles:
- Cosine similarity via inner product on normalized vectors
- Upsert by chunk id (IndexIDMap2 with int64 ids derived from the UUID)
- Payload and id map persistence in a JSON sidecar file
"""
import json
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set
import numpy as np
import faiss
import structlog

from docqa import config
from docqa.errors import VectorStoreError
from docqa.rag.store import VectorStore, check_dimensions, valid_point_ids
from docqa.rag.types import ChunkPayload, IndexedPoint
from docqa.rag.vectors import normalize_vector

logger = structlog.get_logger()

INT64_MASK = (1 << 63) - 1


def faiss_id(point_id: str) -> int:
    """Stable non-negative int64 for a UUID point id."""
    return uuid.UUID(point_id).int & INT64_MASK


class FAISSVectorStore(VectorStore):
    """FAISS-based vector store with payloads persisted next to the index."""

    def __init__(
        self,
        index_dir: Path = None,
        collection_name: str = None,
        dimension: Optional[int] = None,
        score_threshold: Optional[float] = None,
    ):
        """Initialize the FAISS vector store.

        Args:
            index_dir: Directory to store index and metadata (default: DATA_DIR)
            collection_name: Base name of the index files (default from config)
            dimension: Vector size; learned from the first write when not given
            score_threshold: Optional similarity floor for search
        """
        self.index_dir = Path(index_dir or config.DATA_DIR)
        self.collection_name = collection_name or config.VECTOR_COLLECTION_NAME
        self.score_threshold = score_threshold

        self.index_path = self.index_dir / f"{self.collection_name}.index"
        self.metadata_path = self.index_dir / f"{self.collection_name}.json"

        self.index: Optional[faiss.Index] = None
        self.dimension: Optional[int] = dimension
        self._configured_dimension = dimension
        self.payloads: Dict[str, Dict[str, Any]] = {}
        self._loaded = False

        logger.debug(
            "faiss_store_initialized",
            index_dir=str(self.index_dir),
            collection=self.collection_name,
        )

    def _new_index(self, dimension: int) -> None:
        self.dimension = dimension
        self.index = faiss.IndexIDMap2(faiss.IndexFlatIP(dimension))
        logger.info("faiss_index_initialized", dimension=dimension, index_type="IndexFlatIP")

    def _load(self) -> None:
        """Load index and payloads from disk once, if they exist.

        Raises:
            VectorStoreError: If the files are unreadable or the stored
                dimension differs from the configured one
        """
        if self._loaded:
            return
        self._loaded = True

        if not (self.index_path.exists() and self.metadata_path.exists()):
            return

        try:
            with open(self.metadata_path, "r", encoding="utf-8") as f:
                metadata = json.load(f)
            index = faiss.read_index(str(self.index_path))
        except (OSError, ValueError, RuntimeError) as e:
            raise VectorStoreError(f"Failed to load FAISS index: {e}") from e

        stored_dim = metadata.get("dimension")
        if self.dimension is not None and stored_dim != self.dimension:
            raise VectorStoreError(
                f"Dimension mismatch: index holds dim={stored_dim}, "
                f"expected dim={self.dimension}. Please rebuild the index."
            )

        self.index = index
        self.dimension = stored_dim
        self.payloads = metadata.get("points", {})

        logger.info(
            "faiss_index_loaded",
            dimension=self.dimension,
            vector_count=self.index.ntotal,
        )

    def _save(self) -> None:
        """Save FAISS index and payloads to disk."""
        self.index_dir.mkdir(parents=True, exist_ok=True)

        try:
            faiss.write_index(self.index, str(self.index_path))
            with open(self.metadata_path, "w", encoding="utf-8") as f:
                json.dump(
                    {
                        "collection": self.collection_name,
                        "dimension": self.dimension,
                        "vector_count": self.index.ntotal,
                        "points": self.payloads,
                    },
                    f,
                    indent=2,
                )
        except (OSError, RuntimeError) as e:
            raise VectorStoreError(f"Failed to save FAISS index: {e}") from e

        logger.debug(
            "faiss_index_saved",
            index_path=str(self.index_path),
            vector_count=self.index.ntotal,
        )

    async def add_documents(self, points: Sequence[IndexedPoint]) -> None:
        if not points:
            return

        self._load()
        dimension = check_dimensions(points, self.dimension)
        if self.index is None:
            self._new_index(dimension)

        # Last occurrence wins inside one batch
        batch: Dict[str, IndexedPoint] = {}
        for point in points:
            if not valid_point_ids([point.id]):
                raise VectorStoreError(f"Invalid point id: {point.id!r}")
            batch[point.id] = point

        ids = np.array([faiss_id(pid) for pid in batch], dtype=np.int64)
        vectors = np.array(
            [normalize_vector(p.vector) for p in batch.values()], dtype=np.float32
        )

        replaced = [pid for pid in batch if pid in self.payloads]
        if replaced:
            self.index.remove_ids(np.array([faiss_id(pid) for pid in replaced], dtype=np.int64))

        self.index.add_with_ids(vectors, ids)
        for pid, point in batch.items():
            self.payloads[pid] = point.to_dict()["payload"]

        self._save()

        logger.info(
            "vectors_added",
            count=len(batch),
            replaced=len(replaced),
            total_vectors=self.index.ntotal,
        )

    async def search(self, query_vector: Sequence[float], top_k: int = 5) -> List[IndexedPoint]:
        self._load()

        if self.index is None or self.index.ntotal == 0:
            logger.info("empty_index_no_results")
            return []

        if len(query_vector) != self.dimension:
            raise VectorStoreError(
                f"Query dimension mismatch: expected {self.dimension}, "
                f"got {len(query_vector)}"
            )

        top_k = min(top_k, self.index.ntotal)
        if top_k <= 0:
            return []

        query = np.array([normalize_vector(query_vector)], dtype=np.float32)
        scores, indices = self.index.search(query, top_k)

        by_faiss_id = {faiss_id(pid): pid for pid in self.payloads}
        results = []
        for score, idx in zip(scores[0].tolist(), indices[0].tolist()):
            if idx == -1 or idx not in by_faiss_id:
                continue
            if self.score_threshold is not None and score < self.score_threshold:
                continue
            pid = by_faiss_id[idx]
            results.append(
                IndexedPoint(
                    id=pid,
                    vector=[],
                    payload=ChunkPayload.from_dict(self.payloads[pid]),
                    score=float(score),
                )
            )

        logger.info(
            "vector_search_completed",
            top_k=top_k,
            results_found=len(results),
        )

        return results

    async def fetch_existing_ids(self, ids: Sequence[str]) -> Set[str]:
        self._load()
        return {pid for pid in valid_point_ids(ids) if pid in self.payloads}

    async def ensure_collection(self, dimension: int) -> None:
        self._load()
        if self.index is None:
            self._new_index(dimension)
        elif self.dimension != dimension:
            raise VectorStoreError(
                f"Index holds dim={self.dimension}, got {dimension}-dim embeddings. "
                f"Please rebuild the index."
            )

    async def clear(self) -> None:
        logger.warning("rebuilding_index", index_dir=str(self.index_dir))

        for path in (self.index_path, self.metadata_path):
            if path.exists():
                path.unlink()
                logger.info("deleted_index_file", path=str(path))

        self.index = None
        self.payloads = {}
        self.dimension = self._configured_dimension
        self._loaded = True

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the vector store."""
        self._load()
        return {
            "initialized": self.index is not None,
            "vector_count": self.index.ntotal if self.index is not None else 0,
            "dimension": self.dimension,
            "index_exists_on_disk": self.index_path.exists(),
        }
