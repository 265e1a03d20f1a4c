"""Ollama HTTP client used by the embedder, reranker and generator."""
import httpx
from typing import Any, Dict, List, Optional
import structlog

from docqa import config

logger = structlog.get_logger()


class OllamaClient:
    """Async client for the Ollama embeddings and generate endpoints."""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API base URL (defaults to config.OLLAMA_BASE_URL)
            timeout: Request timeout in seconds (defaults to config.HTTP_TIMEOUT)
            transport: Optional httpx transport, mainly for tests
        """
        self.base_url = (base_url or config.OLLAMA_BASE_URL).rstrip("/")
        self.timeout = timeout or config.HTTP_TIMEOUT
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def embeddings(self, prompt: str, model: str = None) -> Dict[str, Any]:
        """Generate an embedding for a text prompt.

        Args:
            prompt: Text to embed
            model: Model to use (defaults to config.EMBEDDING_MODEL)

        Returns:
            Response dict, normally with an 'embedding' list

        Raises:
            httpx.HTTPError: On transport errors or non-success status
        """
        model = model or config.EMBEDDING_MODEL

        payload = {
            "model": model,
            "prompt": prompt,
        }

        try:
            async with self._client() as client:
                logger.debug(
                    "ollama_embedding_request",
                    model=model,
                    prompt_length=len(prompt),
                )

                response = await client.post(
                    f"{self.base_url}/api/embeddings",
                    json=payload,
                )
                response.raise_for_status()

                data = response.json()

                logger.debug(
                    "ollama_embedding_response",
                    model=model,
                    has_embedding=isinstance(data, dict) and "embedding" in data,
                )

                return data

        except httpx.HTTPError as e:
            logger.error(
                "ollama_embedding_error",
                error=str(e),
                status_code=status_of(e),
            )
            raise

    async def generate(
        self,
        prompt: str,
        model: str = None,
        temperature: Optional[float] = None,
        stop: Optional[List[str]] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Send a non-streaming completion request.

        Optional fields are left out of the payload when not set.

        Returns:
            Response dict as returned by the backend

        Raises:
            httpx.HTTPError: On transport errors or non-success status
        """
        model = model or config.GENERATION_MODEL

        payload: Dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "stream": False,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if stop:
            payload["stop"] = stop
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        try:
            async with self._client() as client:
                logger.info(
                    "ollama_generate_request",
                    model=model,
                    prompt_length=len(prompt),
                )

                response = await client.post(
                    f"{self.base_url}/api/generate",
                    json=payload,
                )
                response.raise_for_status()

                return response.json()

        except httpx.HTTPError as e:
            logger.error(
                "ollama_generate_error",
                model=model,
                error=str(e),
                status_code=status_of(e),
            )
            raise


def status_of(error: httpx.HTTPError) -> Optional[int]:
    """Status code of a failed response, None for transport errors."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def body_of(error: httpx.HTTPError) -> Optional[str]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.text
    return None


# Global client instance
ollama_client = OllamaClient()
