"""Qdrant vector store over its REST API."""
from typing import Any, Dict, List, Optional, Sequence, Set
import httpx
import structlog

from docqa import config
from docqa.errors import VectorStoreError
from docqa.rag.store import VectorStore, check_dimensions, valid_point_ids
from docqa.rag.types import ChunkPayload, IndexedPoint

logger = structlog.get_logger()


class QdrantVectorStore(VectorStore):
    """Points live in one Qdrant collection, ids are chunk UUIDs."""

    def __init__(
        self,
        url: str = None,
        collection_name: str = None,
        score_threshold: Optional[float] = None,
        dimension: Optional[int] = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Qdrant store.

        Args:
            url: Qdrant base URL (default from config)
            collection_name: Collection name (default from config)
            score_threshold: Similarity floor for search (default from config)
            dimension: Vector size of the collection; learned from
                ensure_collection() when not given
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.url = (url or config.VECTORSTORE_URL).rstrip("/")
        self.collection_name = collection_name or config.VECTOR_COLLECTION_NAME
        self.score_threshold = (
            config.VECTOR_SCORE_THRESHOLD if score_threshold is None else score_threshold
        )
        self.dimension = dimension
        self.timeout = timeout or config.HTTP_TIMEOUT
        self.transport = transport

        logger.debug(
            "qdrant_store_initialized",
            url=self.url,
            collection=self.collection_name,
            score_threshold=self.score_threshold,
        )

    @property
    def collection_url(self) -> str:
        return f"{self.url}/collections/{self.collection_name}"

    async def _request(
        self, method: str, path: str = "", json: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """Send a request to the collection; transport errors become VectorStoreError."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(method, f"{self.collection_url}{path}", json=json)
        except httpx.TransportError as e:
            logger.error("qdrant_connection_error", error=str(e), url=self.url)
            raise VectorStoreError(f"Qdrant request failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        logger.error(
            "qdrant_request_failed",
            action=action,
            status_code=response.status_code,
            body=response.text[:500],
        )
        raise VectorStoreError(
            f"Qdrant {action} failed: {response.text}",
            status=response.status_code,
            body=response.text,
        )

    async def add_documents(self, points: Sequence[IndexedPoint]) -> None:
        if not points:
            return

        check_dimensions(points, self.dimension)

        payload = {
            "points": [
                {"id": p.id, "vector": list(p.vector), "payload": p.to_dict()["payload"]}
                for p in points
            ]
        }

        response = await self._request("PUT", "/points?wait=true", json=payload)
        self._raise_for_status(response, "upsert")

        logger.info(
            "qdrant_points_upserted",
            collection=self.collection_name,
            count=len(points),
        )

    async def search(self, query_vector: Sequence[float], top_k: int = 5) -> List[IndexedPoint]:
        body = {
            "vector": list(query_vector),
            "top": top_k,
            "with_payload": True,
            "with_vector": False,
            "score_threshold": self.score_threshold,
        }

        response = await self._request("POST", "/points/search", json=body)
        self._raise_for_status(response, "search")

        try:
            raw_points = response.json().get("result") or []
        except (ValueError, AttributeError) as e:
            raise VectorStoreError(
                f"Malformed Qdrant search response: {e}",
                status=response.status_code,
                body=response.text,
            ) from e

        results = [
            IndexedPoint(
                id=str(raw["id"]),
                vector=raw.get("vector") or [],
                payload=ChunkPayload.from_dict(raw.get("payload") or {}),
                score=raw.get("score"),
            )
            for raw in raw_points
        ]
        results.sort(key=lambda p: p.score or 0.0, reverse=True)
        results = results[:top_k]

        logger.info(
            "vector_search_completed",
            top_k=top_k,
            results_found=len(results),
        )

        return results

    async def fetch_existing_ids(self, ids: Sequence[str]) -> Set[str]:
        valid_ids = valid_point_ids(ids)
        if len(valid_ids) != len(set(ids)):
            logger.warning("invalid_point_ids_ignored", count=len(set(ids)) - len(valid_ids))
        if not valid_ids:
            return set()

        response = await self._request(
            "POST",
            "/points",
            json={"ids": valid_ids, "with_payload": False, "with_vector": False},
        )

        if response.status_code == 404:
            # Collection does not exist yet
            return set()
        self._raise_for_status(response, "fetch")

        try:
            result = response.json().get("result") or []
            return {str(point["id"]) for point in result}
        except (ValueError, AttributeError, KeyError, TypeError) as e:
            raise VectorStoreError(
                f"Malformed Qdrant fetch response: {e}",
                status=response.status_code,
                body=response.text,
            ) from e

    async def ensure_collection(self, dimension: int) -> None:
        response = await self._request("GET")

        if response.status_code == 404:
            create = await self._request(
                "PUT",
                json={"vectors": {"size": dimension, "distance": "Cosine"}},
            )
            self._raise_for_status(create, "create collection")
            logger.info(
                "qdrant_collection_created",
                collection=self.collection_name,
                dimension=dimension,
            )
        else:
            self._raise_for_status(response, "get collection")
            existing = _collection_vector_size(response)
            if existing is not None and existing != dimension:
                raise VectorStoreError(
                    f"Collection {self.collection_name} holds {existing}-dim vectors, "
                    f"got {dimension}-dim embeddings. Rebuild the collection."
                )

        self.dimension = dimension

    async def clear(self) -> None:
        response = await self._request("POST", "/points/delete?wait=true", json={"filter": {}})
        if response.status_code == 404:
            logger.info("qdrant_collection_missing_nothing_to_clear", collection=self.collection_name)
            return
        self._raise_for_status(response, "clear")
        logger.warning("qdrant_collection_cleared", collection=self.collection_name)


def _collection_vector_size(response: httpx.Response) -> Optional[int]:
    """Vector size from a collection info response, None for named vectors."""
    try:
        vectors = response.json()["result"]["config"]["params"]["vectors"]
    except (ValueError, KeyError, TypeError):
        return None
    size = vectors.get("size") if isinstance(vectors, dict) else None
    return size if isinstance(size, int) else None
