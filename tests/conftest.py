"""Shared fixtures and in-memory fakes of the pipeline components."""
import json
from typing import Callable, Dict, List, Sequence, Set

import httpx
import pytest

from docqa.errors import EmbeddingError
from docqa.llm_client import OllamaClient
from docqa.rag.store import VectorStore, valid_point_ids
from docqa.rag.types import IndexedPoint, RerankedCandidate


@pytest.fixture
def anyio_backend():
    return "asyncio"


def ollama_client_for(handler: Callable[[httpx.Request], httpx.Response]) -> OllamaClient:
    """OllamaClient whose requests are answered by `handler`."""
    return OllamaClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))


def request_json(request: httpx.Request) -> Dict:
    return json.loads(request.content.decode("utf-8"))


class FakeEmbedder:
    """Deterministic 3-dim vectors; texts listed in `failing` raise."""

    kind = "fake"

    def __init__(self, failing: Sequence[str] = ()):
        self.failing = set(failing)
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if text in self.failing:
            raise EmbeddingError("embedding backend down", status=500)
        return [float(len(text)), float(sum(map(ord, text)) % 97), 1.0]


class InMemoryVectorStore(VectorStore):
    """Dict-backed store that records writes and returns canned search results."""

    def __init__(self, search_results: Sequence[IndexedPoint] = ()):
        self.points: Dict[str, IndexedPoint] = {}
        self.writes: List[List[IndexedPoint]] = []
        self.search_results = list(search_results)
        self.searches: List[tuple] = []
        self.dimension = None
        self.cleared = 0

    async def add_documents(self, points):
        self.writes.append(list(points))
        for point in points:
            self.points[point.id] = point

    async def search(self, query_vector, top_k=5):
        self.searches.append((list(query_vector), top_k))
        return self.search_results[:top_k]

    async def fetch_existing_ids(self, ids) -> Set[str]:
        return {pid for pid in valid_point_ids(ids) if pid in self.points}

    async def ensure_collection(self, dimension):
        self.dimension = dimension

    async def clear(self):
        self.cleared += 1
        self.points = {}


class FakeReranker:
    """Scores passages from a lookup table, default 0."""

    def __init__(self, scores: Dict[str, float] = None, rewrite: Dict[str, str] = None):
        self.scores = scores or {}
        self.rewrite = rewrite or {}
        self.calls: List[tuple] = []

    async def rerank(self, query, passages):
        self.calls.append((query, list(passages)))
        ranked = [
            RerankedCandidate(chunk=self.rewrite.get(p, p), score=self.scores.get(p, 0.0))
            for p in passages
        ]
        return sorted(ranked, key=lambda c: c.score, reverse=True)


class FakeGenerator:
    """Returns a fixed answer and remembers prompts."""

    def __init__(self, answer: str = "generated answer"):
        self.answer = answer
        self.prompts: List[str] = []
        self.options: List[dict] = []

    async def generate(self, prompt, model=None, temperature=0.7, stop=None, max_tokens=None):
        self.prompts.append(prompt)
        self.options.append(
            {"model": model, "temperature": temperature, "stop": stop, "max_tokens": max_tokens}
        )
        return self.answer


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()
