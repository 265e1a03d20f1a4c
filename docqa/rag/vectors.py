"""Vector helpers and the chunk-to-point mapper."""
from typing import List, Sequence

import numpy as np

from docqa import config
from docqa.errors import VectorStoreError
from docqa.rag.types import ChunkPayload, DocumentChunk, IndexedPoint


def normalize_vector(vec: Sequence[float]) -> List[float]:
    """Scale a vector to unit Euclidean norm. All-zero vectors are returned as is."""
    array = np.asarray(vec, dtype=np.float64)
    norm = np.linalg.norm(array)
    if norm == 0:
        return list(vec)
    return (array / norm).tolist()


def count_tokens(text: str) -> int:
    """Rough token count: number of whitespace-separated words."""
    return len(text.split())


def chunks_to_points(
    chunks: Sequence[DocumentChunk],
    vectors: Sequence[Sequence[float]],
    lang: str = None,
) -> List[IndexedPoint]:
    """Pair chunks with their vectors, position by position.

    Raises:
        VectorStoreError: If the number of chunks and vectors differ
    """
    if len(chunks) != len(vectors):
        raise VectorStoreError(
            f"Mismatch: {len(chunks)} chunks vs {len(vectors)} vectors"
        )

    lang = lang or config.DEFAULT_LANG

    return [
        IndexedPoint(
            id=chunk.id,
            vector=list(vector),
            payload=ChunkPayload(
                text=chunk.content,
                source=chunk.metadata.source,
                section=chunk.metadata.heading,
                lang=lang,
                tokens=count_tokens(chunk.content),
            ),
        )
        for chunk, vector in zip(chunks, vectors)
    ]
