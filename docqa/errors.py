"""Typed errors raised by the RAG components.

Each component fails fast with its own error type. Backend failures keep the
HTTP status and response body so callers can report them.
"""
from typing import Optional


class RagError(Exception):
    """Base class for pipeline errors."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (status={self.status})"
        return self.message


class EmbeddingError(RagError):
    """Input too short after cleaning, backend failure or malformed embedding."""


class VectorStoreError(RagError):
    """Vector backend failure or invalid batch of points."""


class RerankError(RagError):
    """Scoring backend failure during reranking."""


class GenerationError(RagError):
    """Generation backend returned a non-success status."""
