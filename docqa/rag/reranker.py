"""Second-pass relevance scoring of retrieved passages.

Each (query, passage) pair is sent to a scoring model through the generate
endpoint; the model's text reply is read as a float score. This is the most
expensive step of a query: one round trip per passage.
"""
import asyncio
import json
import math
from typing import List, Optional, Sequence
import httpx
import structlog

from docqa import config
from docqa.errors import RerankError
from docqa.llm_client import OllamaClient, body_of, ollama_client, status_of
from docqa.rag.types import RerankedCandidate

logger = structlog.get_logger()


def parse_score(data) -> float:
    """Read a float from the backend reply.

    Anything unparseable or non-finite (nan, inf) scores 0.
    """
    if not isinstance(data, dict):
        return 0.0
    text = data.get("response")
    if not text and isinstance(data.get("message"), dict):
        text = data["message"].get("content")
    try:
        score = float(str(text).strip())
    except (TypeError, ValueError):
        return 0.0
    return score if math.isfinite(score) else 0.0


class OllamaReranker:
    """Scores passages against a query with a reranker model."""

    def __init__(
        self,
        model: str = None,
        client: Optional[OllamaClient] = None,
        concurrency: int = None,
    ):
        """Initialize the reranker.

        Args:
            model: Scoring model (default from config)
            client: Ollama client (defaults to the shared client)
            concurrency: Maximum pairs scored at once; 1 scores them one
                at a time in candidate order (default from config)
        """
        self.model = model or config.RERANK_MODEL
        self.client = client or ollama_client
        self.concurrency = max(1, concurrency or config.RERANK_CONCURRENCY)

    async def score(self, query: str, passage: str) -> float:
        """Score one pair.

        Raises:
            RerankError: If the scoring call fails
        """
        prompt = json.dumps({"query": query, "passage": passage}, ensure_ascii=False)

        try:
            data = await self.client.generate(prompt=prompt, model=self.model)
        except httpx.HTTPError as e:
            raise RerankError(
                f"Rerank scoring failed: {e}",
                status=status_of(e),
                body=body_of(e),
            ) from e
        except ValueError as e:
            # Reply that is not JSON at all
            raise RerankError(f"Rerank response is not JSON: {e}") from e

        return parse_score(data)

    async def rerank(self, query: str, passages: Sequence[str]) -> List[RerankedCandidate]:
        """Score every passage and sort by descending score.

        Ties keep the original candidate order. Any failing pair aborts the
        whole rerank.

        Raises:
            RerankError: If any scoring call fails
        """
        if not passages:
            return []

        if self.concurrency == 1:
            scores = []
            for passage in passages:
                scores.append(await self.score(query, passage))
        else:
            semaphore = asyncio.Semaphore(self.concurrency)

            async def bounded(passage: str) -> float:
                async with semaphore:
                    return await self.score(query, passage)

            tasks = [asyncio.ensure_future(bounded(p)) for p in passages]
            try:
                scores = await asyncio.gather(*tasks)
            except BaseException:
                # Abort the remaining pairs and collect their outcomes
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        candidates = [
            RerankedCandidate(chunk=passage, score=score)
            for passage, score in zip(passages, scores)
        ]
        # sorted() is stable, so equal scores keep candidate order
        ranked = sorted(candidates, key=lambda c: c.score, reverse=True)

        logger.info(
            "rerank_completed",
            candidates=len(ranked),
            top_score=ranked[0].score,
            concurrency=self.concurrency,
        )

        return ranked
