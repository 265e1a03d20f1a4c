"""Data model shared by the chunker, vector stores and pipelines."""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ChunkMetadata:
    """Where a chunk comes from."""

    source: str
    heading: str
    index: int


@dataclass(frozen=True)
class DocumentChunk:
    """A bounded, trimmed piece of a document with a content-derived id."""

    id: str
    content: str
    metadata: ChunkMetadata


@dataclass
class ChunkPayload:
    """Payload stored next to a vector."""

    text: str
    source: str
    section: Optional[str] = None
    lang: str = "en"
    tokens: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkPayload":
        return cls(
            text=data.get("text", ""),
            source=data.get("source", ""),
            section=data.get("section"),
            lang=data.get("lang", "en"),
            tokens=data.get("tokens", 0),
        )


@dataclass
class IndexedPoint:
    """A chunk after embedding, as stored in or returned by a vector store.

    `score` is only set on search results.
    """

    id: str
    vector: List[float]
    payload: ChunkPayload
    score: Optional[float] = None

    def to_dict(self, with_vector: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "payload": asdict(self.payload)}
        if with_vector:
            data["vector"] = list(self.vector)
        if self.score is not None:
            data["score"] = self.score
        return data


@dataclass
class RerankedCandidate:
    """A passage with its relevance score for one query."""

    chunk: str
    score: float


@dataclass
class PipelineResult:
    """Answer to one question and the points it was grounded on."""

    answer: str
    sources: List[IndexedPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [point.to_dict() for point in self.sources],
        }
