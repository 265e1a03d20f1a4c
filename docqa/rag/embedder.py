"""Embedders: text in, fixed-length vector out.

Two variants share one interface and the same backend call:
- "generic" embeds the text as given
- "cleaning" strips frontmatter and shortcode markup first
"""
from abc import ABC, abstractmethod
from typing import List, Optional
import httpx
import structlog

from docqa import config
from docqa.errors import EmbeddingError
from docqa.llm_client import OllamaClient, body_of, ollama_client, status_of
from docqa.rag.md_parser import clean_text

logger = structlog.get_logger()


class Embedder(ABC):
    """Base embedder calling the Ollama embeddings endpoint."""

    kind: str = ""

    def __init__(
        self,
        model: str = None,
        client: Optional[OllamaClient] = None,
        min_length: int = 1,
        dimension: Optional[int] = None,
    ):
        """Initialize the embedder.

        Args:
            model: Embedding model (default from config)
            client: Ollama client (defaults to the shared client)
            min_length: Minimum length of the text after preparation
            dimension: Expected vector length, checked when set
        """
        self.model = model or config.EMBEDDING_MODEL
        self.client = client or ollama_client
        self.min_length = min_length
        self.dimension = dimension

    @abstractmethod
    def prepare(self, text: str) -> str:
        """Turn raw input into the text that is sent for embedding."""

    async def embed(self, text: str) -> List[float]:
        """Embed one text.

        Raises:
            EmbeddingError: Empty or too short input, backend failure, or
                malformed response
        """
        prepared = self.prepare(text or "")

        if not prepared or len(prepared) < self.min_length:
            raise EmbeddingError(
                f"Text too short or empty after preparation: {prepared[:50]!r}"
            )

        try:
            data = await self.client.embeddings(prompt=prepared, model=self.model)
        except httpx.HTTPError as e:
            raise EmbeddingError(
                f"Embedding request failed: {e}",
                status=status_of(e),
                body=body_of(e),
            ) from e
        except ValueError as e:
            raise EmbeddingError(f"Embedding response is not JSON: {e}") from e

        embedding = data.get("embedding") if isinstance(data, dict) else None

        if not isinstance(embedding, list) or not embedding:
            raise EmbeddingError("Empty or invalid embedding in response")

        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in embedding):
            raise EmbeddingError("Embedding contains non-numeric values")

        if self.dimension is not None and len(embedding) != self.dimension:
            raise EmbeddingError(
                f"Embedding dimension mismatch: expected {self.dimension}, "
                f"got {len(embedding)}"
            )

        return [float(v) for v in embedding]


class GenericEmbedder(Embedder):
    """Embeds text unmodified."""

    kind = "generic"

    def prepare(self, text: str) -> str:
        return text


class CleaningEmbedder(Embedder):
    """Strips authoring-format noise before embedding."""

    kind = "cleaning"

    def __init__(self, *args, min_length: int = None, **kwargs):
        super().__init__(
            *args,
            min_length=config.EMBED_MIN_LENGTH if min_length is None else min_length,
            **kwargs,
        )

    def prepare(self, text: str) -> str:
        return clean_text(text)


EMBEDDERS = {
    GenericEmbedder.kind: GenericEmbedder,
    CleaningEmbedder.kind: CleaningEmbedder,
}


def create_embedder(kind: str = None, **options) -> Embedder:
    """Build the embedder variant named by `kind` (default from config).

    Raises:
        ValueError: If the variant is unknown
    """
    kind = kind or config.EMBEDDER
    try:
        embedder_cls = EMBEDDERS[kind]
    except KeyError:
        raise ValueError(f"Unknown embedder type: {kind}") from None
    return embedder_cls(**options)
