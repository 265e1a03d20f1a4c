"""Tests for the HTTP API."""
import pytest

from conftest import FakeEmbedder, FakeGenerator, FakeReranker, InMemoryVectorStore
from docqa.errors import RerankError
from docqa.main import create_app
from docqa.rag.pipeline import QueryPipeline
from docqa.rag.prompt import NO_INFORMATION_ANSWER
from docqa.rag.types import ChunkPayload, IndexedPoint


class FailingReranker(FakeReranker):
    async def rerank(self, query, passages):
        raise RerankError("[Reranker] Failed: 503 - overloaded", status=503, body="overloaded")


def make_client(search_results=(), reranker=None, answer="Run npm install."):
    pipeline = QueryPipeline(
        embedder=FakeEmbedder(),
        vector_store=InMemoryVectorStore(search_results=search_results),
        reranker=reranker or FakeReranker(),
        generator=FakeGenerator(answer=answer),
    )
    return create_app(pipeline=pipeline).test_client()


RESULTS = [
    IndexedPoint(
        id="0b6e7f3e-5d5a-5d8e-9a51-2b1f6f3a9c10",
        vector=[0.1, 0.2, 0.3],
        payload=ChunkPayload(text="Install with npm.", source="install.md", section="Install", tokens=3),
        score=0.92,
    )
]


@pytest.mark.anyio
async def test_ask_returns_answer_and_sources():
    client = make_client(search_results=RESULTS)

    response = await client.post("/api/ask", json={"question": "How do I install?"})

    assert response.status_code == 200
    data = await response.get_json()
    assert data["answer"] == "Run npm install."
    assert data["sources"] == [
        {
            "id": "0b6e7f3e-5d5a-5d8e-9a51-2b1f6f3a9c10",
            "payload": {
                "text": "Install with npm.",
                "source": "install.md",
                "section": "Install",
                "lang": "en",
                "tokens": 3,
            },
            "score": 0.92,
        }
    ]


@pytest.mark.anyio
async def test_ask_without_results_returns_sentinel():
    client = make_client()

    response = await client.post("/api/ask", json={"question": "Anything?"})

    assert response.status_code == 200
    data = await response.get_json()
    assert data == {"answer": NO_INFORMATION_ANSWER, "sources": []}


@pytest.mark.anyio
@pytest.mark.parametrize("body", [{}, {"question": "   "}, {"question": 42}, {"q": "hi"}])
async def test_ask_rejects_bad_bodies(body):
    client = make_client()

    response = await client.post("/api/ask", json=body)

    assert response.status_code == 400
    assert "error" in await response.get_json()


@pytest.mark.anyio
async def test_ask_rejects_non_json_body():
    client = make_client()

    response = await client.post("/api/ask", data="question=hi")

    assert response.status_code == 400


@pytest.mark.anyio
async def test_component_error_maps_to_bad_gateway():
    client = make_client(search_results=RESULTS, reranker=FailingReranker())

    response = await client.post("/api/ask", json={"question": "How do I install?"})

    assert response.status_code == 502
    data = await response.get_json()
    assert data["error"].startswith("Could not answer the question: [Reranker] Failed: 503")


@pytest.mark.anyio
async def test_health_live():
    client = make_client()

    response = await client.get("/health/live")

    assert response.status_code == 200
    assert await response.get_json() == {"status": "alive"}


@pytest.mark.anyio
async def test_unknown_route_is_json_404():
    client = make_client()

    response = await client.get("/nope")

    assert response.status_code == 404
    assert await response.get_json() == {"error": "Not found"}
