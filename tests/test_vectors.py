"""Tests for vector helpers and the chunk-to-point mapper."""
import math

import pytest

from docqa.errors import VectorStoreError
from docqa.rag.chunker import MarkdownChunker
from docqa.rag.vectors import chunks_to_points, count_tokens, normalize_vector


@pytest.mark.parametrize("vec", [[3.0, 4.0], [1.0, 1.0, 1.0], [-2.0, 0.0, 0.5]])
def test_normalize_vector_has_unit_norm(vec):
    normalized = normalize_vector(vec)

    assert math.isclose(math.sqrt(sum(v * v for v in normalized)), 1.0, rel_tol=1e-9)


def test_normalize_vector_keeps_direction():
    assert normalize_vector([3.0, 4.0]) == pytest.approx([0.6, 0.8])


def test_normalize_zero_vector_is_unchanged():
    assert normalize_vector([0.0, 0.0, 0.0]) == [0.0, 0.0, 0.0]


def test_chunks_to_points_builds_payload():
    chunks = MarkdownChunker().chunk_text("## Setup\nInstall the package first.", source="a.md")

    points = chunks_to_points(chunks, [[0.1, 0.2]], lang="fr")

    assert len(points) == 1
    point = points[0]
    assert point.id == chunks[0].id
    assert point.vector == [0.1, 0.2]
    assert point.score is None
    assert point.payload.text == chunks[0].content
    assert point.payload.source == "a.md"
    assert point.payload.section == "Setup"
    assert point.payload.lang == "fr"
    assert point.payload.tokens == count_tokens(chunks[0].content) == 6


def test_chunks_to_points_rejects_count_mismatch():
    chunks = MarkdownChunker().chunk_text("## A\none\n## B\ntwo", source="a.md")

    with pytest.raises(VectorStoreError):
        chunks_to_points(chunks, [[0.1, 0.2]])
