"""Tests for the reranker."""
import asyncio
import json

import httpx
import pytest

from conftest import ollama_client_for, request_json
from docqa.errors import RerankError
from docqa.rag.reranker import OllamaReranker, parse_score


def scoring_handler(scores, seen=None):
    def handler(request):
        body = request_json(request)
        pair = json.loads(body["prompt"])
        if seen is not None:
            seen.append((body["model"], pair))
        return httpx.Response(200, json={"response": scores[pair["passage"]]})

    return handler


@pytest.mark.anyio
async def test_rerank_sorts_by_descending_score():
    seen = []
    scores = {"a": "0.1", "b": "0.9", "c": "0.5"}
    reranker = OllamaReranker(model="reranker", client=ollama_client_for(scoring_handler(scores, seen)))

    ranked = await reranker.rerank("question?", ["a", "b", "c"])

    assert [c.chunk for c in ranked] == ["b", "c", "a"]
    assert [c.score for c in ranked] == [0.9, 0.5, 0.1]
    # one call per passage, in candidate order
    assert seen == [
        ("reranker", {"query": "question?", "passage": "a"}),
        ("reranker", {"query": "question?", "passage": "b"}),
        ("reranker", {"query": "question?", "passage": "c"}),
    ]


@pytest.mark.anyio
@pytest.mark.parametrize("concurrency", [1, 3])
async def test_ties_keep_candidate_order(concurrency):
    scores = {"first": "0.5", "second": "0.7", "third": "0.5", "fourth": "0.5"}
    reranker = OllamaReranker(client=ollama_client_for(scoring_handler(scores)), concurrency=concurrency)

    ranked = await reranker.rerank("q", ["first", "second", "third", "fourth"])

    assert [c.chunk for c in ranked] == ["second", "first", "third", "fourth"]


@pytest.mark.anyio
async def test_unparseable_score_is_zero():
    scores = {"good": "0.3", "bad": "not a number"}
    reranker = OllamaReranker(client=ollama_client_for(scoring_handler(scores)))

    ranked = await reranker.rerank("q", ["bad", "good"])

    assert [(c.chunk, c.score) for c in ranked] == [("good", 0.3), ("bad", 0.0)]


@pytest.mark.anyio
async def test_failing_pair_aborts_rerank():
    def handler(request):
        passage = json.loads(request_json(request)["prompt"])["passage"]
        if passage == "broken":
            return httpx.Response(500, text="scoring failed")
        return httpx.Response(200, json={"response": "0.4"})

    reranker = OllamaReranker(client=ollama_client_for(handler))

    with pytest.raises(RerankError) as excinfo:
        await reranker.rerank("q", ["fine", "broken", "fine too"])

    assert excinfo.value.status == 500


@pytest.mark.anyio
async def test_empty_candidates():
    reranker = OllamaReranker(client=ollama_client_for(lambda r: httpx.Response(500)))

    assert await reranker.rerank("q", []) == []


def test_parse_score_reads_chat_shaped_reply():
    assert parse_score({"message": {"content": " 0.25\n"}}) == 0.25
    assert parse_score({"response": ""}) == 0.0
    assert parse_score(None) == 0.0


@pytest.mark.anyio
async def test_non_finite_scores_count_as_zero():
    scores = {"a": "0.2", "b": "NaN", "c": "0.9", "d": "inf"}
    reranker = OllamaReranker(client=ollama_client_for(scoring_handler(scores)))

    ranked = await reranker.rerank("q", ["a", "b", "c", "d"])

    assert [(c.chunk, c.score) for c in ranked] == [("c", 0.9), ("a", 0.2), ("b", 0.0), ("d", 0.0)]


class SlowScoringClient:
    """Fails on the "broken" passage; every other call waits until cancelled."""

    def __init__(self):
        self.running = set()
        self.cancelled = []

    async def generate(self, prompt, model=None, **options):
        passage = json.loads(prompt)["passage"]
        if passage == "broken":
            await asyncio.sleep(0)
            raise httpx.ConnectError("scoring backend down")
        self.running.add(passage)
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.cancelled.append(passage)
            raise
        finally:
            self.running.discard(passage)
        return {"response": "0.5"}


@pytest.mark.anyio
async def test_failing_pair_cancels_concurrent_pairs():
    client = SlowScoringClient()
    reranker = OllamaReranker(client=client, concurrency=3)

    with pytest.raises(RerankError):
        await reranker.rerank("q", ["slow one", "broken", "slow two"])

    assert client.running == set()
    assert sorted(client.cancelled) == ["slow one", "slow two"]
