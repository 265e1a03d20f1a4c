"""Query pipeline: answers one question from the indexed documentation.

Steps:
- Embed the question
- Search the vector store for top-K candidates
- Rerank candidate texts against the question
- Map the best reranked texts back to their points
- Build the grounded prompt and generate the answer

No step recovers from errors; any component failure propagates.
"""
from typing import List, Optional, Sequence
import structlog

from docqa import config
from docqa.rag.embedder import Embedder, create_embedder
from docqa.rag.generator import OllamaGenerator
from docqa.rag.prompt import (
    NO_INFORMATION_ANSWER,
    OFF_TOPIC_ANSWER,
    PromptContext,
    build_prompt,
)
from docqa.rag.reranker import OllamaReranker
from docqa.rag.safeguard import RelevanceChecker
from docqa.rag.store import VectorStore
from docqa.rag.store_factory import create_vector_store
from docqa.rag.types import IndexedPoint, PipelineResult, RerankedCandidate

logger = structlog.get_logger()


def map_to_sources(
    ranked: Sequence[RerankedCandidate], candidates: Sequence[IndexedPoint]
) -> List[IndexedPoint]:
    """Find the point behind each reranked passage by exact text match.

    The first candidate with the same text wins, so duplicate passages all
    resolve to the earliest one. A passage matching no candidate is dropped.
    """
    texts = [point.payload.text for point in candidates]
    sources = []
    for candidate in ranked:
        try:
            idx = texts.index(candidate.chunk)
        except ValueError:
            logger.warning("reranked_passage_not_found", preview=candidate.chunk[:80])
            continue
        sources.append(candidates[idx])
    return sources


class QueryPipeline:
    """Retrieval-augmented answering over a vector store."""

    def __init__(
        self,
        embedder: Optional[Embedder] = None,
        vector_store: Optional[VectorStore] = None,
        reranker: Optional[OllamaReranker] = None,
        generator: Optional[OllamaGenerator] = None,
        relevance_checker: Optional[RelevanceChecker] = None,
        top_k: int = None,
        temperature: float = None,
    ):
        """Initialize the pipeline.

        Args:
            embedder: Question embedder (default: configured variant)
            vector_store: Store to search (default: configured backend)
            reranker: Passage reranker
            generator: Answer generator
            relevance_checker: Optional pre-check; off-topic questions get a
                fixed answer without retrieval
            top_k: Retrieval fan-out and number of passages kept (default from config)
            temperature: Generation temperature (default from config)
        """
        self.embedder = embedder or create_embedder()
        self.vector_store = vector_store or create_vector_store()
        self.reranker = reranker or OllamaReranker()
        self.generator = generator or OllamaGenerator()
        self.relevance_checker = relevance_checker
        self.top_k = top_k or config.RETRIEVAL_TOP_K
        self.temperature = (
            config.GENERATION_TEMPERATURE if temperature is None else temperature
        )

        logger.info(
            "query_pipeline_initialized",
            top_k=self.top_k,
            embedder=self.embedder.kind,
            safeguard=self.relevance_checker is not None,
        )

    async def answer(self, question: str) -> PipelineResult:
        """Answer a question with the sources it was grounded on.

        Raises:
            EmbeddingError, VectorStoreError, RerankError, GenerationError:
                From the failing component
        """
        logger.info("query_started", question_length=len(question))

        if self.relevance_checker is not None:
            if not await self.relevance_checker.is_relevant(question):
                logger.info("query_off_topic")
                return PipelineResult(answer=OFF_TOPIC_ANSWER, sources=[])

        query_vector = await self.embedder.embed(question)

        candidates = await self.vector_store.search(query_vector, self.top_k)
        if not candidates:
            logger.info("no_results_found")
            return PipelineResult(answer=NO_INFORMATION_ANSWER, sources=[])

        texts = [point.payload.text for point in candidates]
        ranked = await self.reranker.rerank(question, texts)
        best = ranked[: self.top_k]

        sources = map_to_sources(best, candidates)

        prompt = build_prompt(
            question,
            [
                PromptContext(
                    text=point.payload.text,
                    source=point.payload.source,
                    section=point.payload.section,
                )
                for point in sources
            ],
        )

        if not sources:
            # Nothing to ground on; build_prompt returned the no-information answer
            return PipelineResult(answer=prompt, sources=[])

        answer = await self.generator.generate(prompt, temperature=self.temperature)

        logger.info(
            "query_completed",
            candidates=len(candidates),
            sources=len(sources),
            answer_length=len(answer),
        )

        return PipelineResult(answer=answer, sources=sources)


def build_pipeline() -> QueryPipeline:
    """Pipeline wired from configuration."""
    relevance_checker = RelevanceChecker() if config.SAFEGUARD_ENABLED else None
    return QueryPipeline(relevance_checker=relevance_checker)
