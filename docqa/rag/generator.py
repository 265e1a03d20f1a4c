"""Answer generation with an Ollama model."""
from typing import List, Optional
import httpx
import structlog

from docqa import config
from docqa.errors import GenerationError
from docqa.llm_client import OllamaClient, body_of, ollama_client, status_of

logger = structlog.get_logger()

# Backends disagree on where the completion lives
COMPLETION_FIELDS = ("response", "generated_text")


def extract_completion(data) -> str:
    """Completion text from a backend reply, or "" if none is present."""
    if not isinstance(data, dict):
        return ""
    for field in COMPLETION_FIELDS:
        value = data.get(field)
        if value:
            return str(value)
    return ""


class OllamaGenerator:
    """Produces text for a prompt."""

    def __init__(self, model: str = None, client: Optional[OllamaClient] = None):
        self.model = model or config.GENERATION_MODEL
        self.client = client or ollama_client

    async def generate(
        self,
        prompt: str,
        model: str = None,
        temperature: float = 0.7,
        stop: Optional[List[str]] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate a completion.

        Args:
            prompt: Full prompt text
            model: Model override (defaults to the generator's model)
            temperature: Sampling temperature
            stop: Optional stop sequences
            max_tokens: Optional completion length limit

        Returns:
            Completion text, "" when the reply has no completion field

        Raises:
            GenerationError: On non-success status or unreachable backend
        """
        model = model or self.model

        try:
            data = await self.client.generate(
                prompt=prompt,
                model=model,
                temperature=temperature,
                stop=stop,
                max_tokens=max_tokens,
            )
        except httpx.HTTPError as e:
            status = status_of(e)
            body = body_of(e)
            raise GenerationError(
                f"[LLM] Failed: {status} - {body}" if status is not None else f"[LLM] Failed: {e}",
                status=status,
                body=body,
            ) from e
        except ValueError as e:
            raise GenerationError(f"[LLM] Response is not JSON: {e}") from e

        answer = extract_completion(data)

        logger.info(
            "generation_completed",
            model=model,
            response_length=len(answer),
        )

        return answer
