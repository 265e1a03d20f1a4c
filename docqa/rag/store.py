"""Vector store interface shared by the Qdrant and FAISS backends."""
import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Set

from docqa.errors import VectorStoreError
from docqa.rag.types import IndexedPoint

# Chunk ids are UUIDs; anything else is never sent to a backend
POINT_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_point_id(point_id) -> bool:
    return isinstance(point_id, str) and bool(POINT_ID_PATTERN.match(point_id))


def valid_point_ids(ids: Iterable[str]) -> List[str]:
    """Keep well-formed ids, dropping duplicates but not order."""
    seen = set()
    valid = []
    for point_id in ids:
        if is_valid_point_id(point_id) and point_id not in seen:
            seen.add(point_id)
            valid.append(point_id)
    return valid


def check_dimensions(points: Sequence[IndexedPoint], dimension: Optional[int]) -> int:
    """Validate that all points share one vector length.

    Args:
        points: Points about to be written (non-empty)
        dimension: Fixed dimension of the collection, if known

    Returns:
        The dimension of the batch

    Raises:
        VectorStoreError: On empty vectors or mismatching lengths
    """
    expected = dimension if dimension is not None else len(points[0].vector)

    for point in points:
        if not point.vector:
            raise VectorStoreError(f"Point {point.id} has an empty vector")
        if len(point.vector) != expected:
            raise VectorStoreError(
                f"Vector dimension mismatch for point {point.id}: "
                f"expected {expected}, got {len(point.vector)}"
            )

    return expected


class VectorStore(ABC):
    """Persists vectors with payload and searches them by similarity."""

    @abstractmethod
    async def add_documents(self, points: Sequence[IndexedPoint]) -> None:
        """Upsert points keyed by id. Same id with a new vector overwrites."""

    @abstractmethod
    async def search(self, query_vector: Sequence[float], top_k: int = 5) -> List[IndexedPoint]:
        """Return at most `top_k` points by descending score.

        Backends may drop candidates under a score floor, so fewer than
        `top_k` results is normal.
        """

    @abstractmethod
    async def fetch_existing_ids(self, ids: Sequence[str]) -> Set[str]:
        """Subset of `ids` already stored. A missing collection means none."""

    @abstractmethod
    async def ensure_collection(self, dimension: int) -> None:
        """Create the collection for `dimension`-long vectors if missing."""

    @abstractmethod
    async def clear(self) -> None:
        """Delete every point of the collection."""
