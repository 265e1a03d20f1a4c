"""Cheap yes/no check that a question is about the documented product."""
from typing import Optional
import structlog

from docqa import config
from docqa.rag.generator import OllamaGenerator
from docqa.rag.prompt import build_relevance_prompt

logger = structlog.get_logger()


class RelevanceChecker:
    """Asks a small model whether a question belongs to the documentation."""

    def __init__(self, generator: Optional[OllamaGenerator] = None, model: str = None):
        self.model = model or config.SAFEGUARD_MODEL
        self.generator = generator or OllamaGenerator(model=self.model)

    async def is_relevant(self, question: str) -> bool:
        """True only when the model answers exactly "yes".

        Raises:
            GenerationError: If the model call fails
        """
        result = await self.generator.generate(
            build_relevance_prompt(question),
            model=self.model,
            temperature=0,
            max_tokens=2,
            stop=["\n"],
        )
        relevant = result.strip().lower() == "yes"

        logger.info("relevance_checked", relevant=relevant, reply=result[:20])

        return relevant
