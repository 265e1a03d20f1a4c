"""Indexer: keeps the vector store in sync with a tree of markdown documents.

Orchestrates:
- File discovery
- Chunking
- Skipping chunks whose id is already stored
- Concurrent embedding of new chunks
- Upsert into the vector store

Reruns over an unchanged tree embed and write nothing, because chunk ids
are derived from chunk content and position.
"""
import asyncio
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import structlog

from docqa import config
from docqa.errors import RagError
from docqa.rag.chunker import MarkdownChunker
from docqa.rag.embedder import Embedder, create_embedder
from docqa.rag.md_parser import document_lang
from docqa.rag.store import VectorStore
from docqa.rag.store_factory import create_vector_store
from docqa.rag.types import DocumentChunk
from docqa.rag.vectors import chunks_to_points

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int, Path], None]


@dataclass
class IndexStats:
    """Aggregate counters for one indexing run."""

    files_processed: int = 0
    files_failed: int = 0
    chunks_generated: int = 0
    vectors_generated: int = 0
    chunks_skipped: int = 0
    chunks_indexed: int = 0
    chunks_failed: int = 0
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Indexer:
    """Chunk, embed and store every markdown file under a directory."""

    def __init__(
        self,
        chunker: MarkdownChunker,
        embedder: Optional[Embedder] = None,
        vector_store: Optional[VectorStore] = None,
        default_lang: str = None,
    ):
        """Initialize the indexer.

        Args:
            chunker: Splits documents into chunks
            embedder: Embeds new chunk contents (default: the INDEX_EMBEDDER variant)
            vector_store: Destination store, also used for existence checks
                (default: the configured backend)
            default_lang: Payload language when a document declares none
        """
        self.chunker = chunker
        self.embedder = embedder or create_embedder(config.INDEX_EMBEDDER)
        self.vector_store = vector_store or create_vector_store()
        self.default_lang = default_lang or config.DEFAULT_LANG
        self._collection_ready = False

        self.stats = IndexStats()

    def discover_markdown_files(self, root_dir: Path) -> List[Path]:
        """Find all markdown files under `root_dir`, in a stable order.

        Raises:
            FileNotFoundError: If the directory doesn't exist
        """
        root_dir = Path(root_dir)
        if not root_dir.exists():
            raise FileNotFoundError(f"Documents directory not found: {root_dir}")

        md_files = sorted(p for p in root_dir.rglob("*.md") if p.is_file())

        logger.info(
            "markdown_files_discovered",
            count=len(md_files),
            root_dir=str(root_dir),
        )

        return md_files

    def _warn(self, message: str, **context) -> None:
        self.stats.warnings.append(message)
        logger.warning("indexing_warning", message=message, **context)

    async def _embed_chunks(self, chunks: List[DocumentChunk]):
        """Embed all chunks concurrently.

        Returns:
            (embedded chunks, their vectors), failed chunks left out. Results
            are paired with chunks by position.
        """
        results = await asyncio.gather(
            *(self.embedder.embed(chunk.content) for chunk in chunks),
            return_exceptions=True,
        )

        embedded, vectors = [], []
        for chunk, result in zip(chunks, results):
            if isinstance(result, RagError):
                self.stats.chunks_failed += 1
                self._warn(
                    f"Embedding failed for chunk {chunk.id} "
                    f"({chunk.metadata.source} #{chunk.metadata.index}): {result}",
                    chunk_id=chunk.id,
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                embedded.append(chunk)
                vectors.append(result)

        self.stats.vectors_generated += len(vectors)
        return embedded, vectors

    async def index_file(self, file_path: Path) -> Dict[str, Any]:
        """Index one markdown file.

        Returns:
            Per-file counts (chunks, skipped, indexed, failed)

        Raises:
            OSError: If the file cannot be read
            VectorStoreError: If the existence check fails
        """
        file_path = Path(file_path)
        logger.debug("indexing_file", path=str(file_path))

        text = file_path.read_text(encoding="utf-8")
        chunks = self.chunker.chunk_text(text, source=file_path.name)
        lang = document_lang(text, self.default_lang)

        result = {"path": str(file_path), "chunks": len(chunks), "skipped": 0, "indexed": 0, "failed": 0}
        if not chunks:
            logger.warning("no_chunks_created", path=str(file_path))
            self.stats.files_processed += 1
            return result

        existing = await self.vector_store.fetch_existing_ids([c.id for c in chunks])
        new_chunks = [c for c in chunks if c.id not in existing]
        skipped = len(chunks) - len(new_chunks)

        for chunk in chunks:
            if chunk.id in existing:
                meta = chunk.metadata
                logger.debug(
                    "chunk_skipped",
                    chunk_id=chunk.id,
                    source=meta.source,
                    heading=meta.heading,
                    index=meta.index,
                )

        self.stats.chunks_generated += len(chunks)
        self.stats.chunks_skipped += skipped
        result["skipped"] = skipped

        if new_chunks:
            embedded, vectors = await self._embed_chunks(new_chunks)
            result["failed"] = len(new_chunks) - len(embedded)

            if embedded:
                points = chunks_to_points(embedded, vectors, lang=lang)
                try:
                    if not self._collection_ready:
                        await self.vector_store.ensure_collection(len(vectors[0]))
                        self._collection_ready = True
                    await self.vector_store.add_documents(points)
                except RagError as e:
                    self.stats.chunks_failed += len(points)
                    result["failed"] += len(points)
                    self._warn(f"Storing {len(points)} chunks of {file_path} failed: {e}", path=str(file_path))
                else:
                    self.stats.chunks_indexed += len(points)
                    result["indexed"] = len(points)
                    for chunk in embedded:
                        meta = chunk.metadata
                        logger.debug(
                            "chunk_indexed",
                            chunk_id=chunk.id,
                            source=meta.source,
                            heading=meta.heading,
                            index=meta.index,
                        )

        self.stats.files_processed += 1

        logger.info(
            "file_indexed",
            path=str(file_path),
            chunks_indexed=result["indexed"],
            chunks_skipped=result["skipped"],
            chunks_failed=result["failed"],
        )

        return result

    async def index_all(
        self,
        root_dir: Path = None,
        rebuild: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IndexStats:
        """Index every markdown file under `root_dir`.

        A failing file or chunk is reported as a warning and the run goes on.

        Args:
            root_dir: Documents directory (default from config)
            rebuild: Clear the collection before indexing
            progress_callback: Optional callback function(current, total, file_path)

        Returns:
            Aggregate statistics for the run

        Raises:
            FileNotFoundError: If the documents directory doesn't exist
        """
        root_dir = Path(root_dir or config.DOCS_DIR)
        logger.info("starting_index_all", root_dir=str(root_dir), rebuild=rebuild)

        self.stats = IndexStats()

        if rebuild:
            await self.vector_store.clear()
            self._collection_ready = False

        md_files = self.discover_markdown_files(root_dir)

        if not md_files:
            logger.warning("no_markdown_files_found", root_dir=str(root_dir))
            return self.stats

        for idx, file_path in enumerate(md_files, 1):
            if progress_callback:
                progress_callback(idx, len(md_files), file_path)

            try:
                await self.index_file(file_path)
            except (OSError, UnicodeDecodeError, RagError) as e:
                self.stats.files_failed += 1
                self._warn(f"Indexing error: {file_path}: {e}", path=str(file_path))

        logger.info("index_all_completed", **{k: v for k, v in self.stats.to_dict().items() if k != "warnings"})

        return self.stats
