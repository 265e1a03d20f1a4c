"""Markdown chunking with stable, content-derived chunk ids.

Documents are split into sections at headings. Each section becomes one chunk
or, when longer than the chunk size, a sequence of overlapping windows.
"""
import uuid
from pathlib import Path
from typing import List, Union
import structlog

from docqa import config
from docqa.rag.md_parser import split_sections
from docqa.rag.types import ChunkMetadata, DocumentChunk

logger = structlog.get_logger()

# Never change this value: every stored chunk id depends on it.
CHUNK_ID_NAMESPACE = uuid.UUID("b8a7b6e2-1c2d-4e3f-9a4b-5c6d7e8f9a0b")


def deterministic_chunk_id(content: str, source: str, heading: str, index: int) -> str:
    """UUIDv5 of the chunk's source, heading, index and content."""
    data = f"{source}::{heading or ''}::{index}::{content}"
    return str(uuid.uuid5(CHUNK_ID_NAMESPACE, data))


class MarkdownChunker:
    """Heading-aware character chunker with overlap support."""

    def __init__(
        self,
        chunk_size: int = None,
        chunk_overlap: int = None,
        heading_level: int = None,
    ):
        """Initialize the chunker.

        Args:
            chunk_size: Maximum chunk length in characters (default from config)
            chunk_overlap: Overlap between windows in characters (default from config)
            heading_level: Heading level that starts a section (default from config)
        """
        self.chunk_size = chunk_size or config.CHUNK_SIZE
        self.chunk_overlap = config.CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap
        self.heading_level = heading_level or config.CHUNK_HEADING_LEVEL

        # A non-positive step would never reach the end of a section
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"Overlap ({self.chunk_overlap}) must be less than "
                f"chunk size ({self.chunk_size})"
            )
        if self.chunk_overlap < 0:
            raise ValueError(f"Overlap must not be negative, got {self.chunk_overlap}")

        logger.debug(
            "chunker_initialized",
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            heading_level=self.heading_level,
        )

    def chunk_file(self, file_path: Union[str, Path]) -> List[DocumentChunk]:
        """Read a markdown file and chunk it, labelled with the file name.

        Raises:
            OSError: If the file cannot be read
            UnicodeDecodeError: If the file is not valid UTF-8
        """
        path = Path(file_path)
        text = path.read_text(encoding="utf-8")
        return self.chunk_text(text, source=path.name)

    def chunk_text(self, text: str, source: str) -> List[DocumentChunk]:
        """Split a document into chunks.

        The chunk index runs across the whole document, it is not reset
        per section.

        Args:
            text: Raw document text
            source: Label stored with every chunk (usually the file name)

        Returns:
            Ordered list of DocumentChunk
        """
        chunks: List[DocumentChunk] = []

        for section in split_sections(text, self.heading_level):
            chunks.extend(
                self._split_section(section.text, source, section.heading, len(chunks))
            )

        logger.debug(
            "document_chunked",
            source=source,
            text_length=len(text),
            chunk_count=len(chunks),
        )

        return chunks

    def windows(self, length: int) -> List[range]:
        """Character windows covering `length` characters.

        Consecutive windows start `chunk_size - chunk_overlap` apart and the
        last window is the first one that reaches the end.
        """
        if length <= 0:
            return []

        step = self.chunk_size - self.chunk_overlap
        spans = []
        start = 0
        while True:
            end = min(start + self.chunk_size, length)
            spans.append(range(start, end))
            if end >= length:
                break
            start += step
        return spans

    def _split_section(
        self, text: str, source: str, heading: str, start_index: int
    ) -> List[DocumentChunk]:
        clean = text.strip()
        if not clean:
            return []

        if len(clean) <= self.chunk_size:
            return [self._make_chunk(clean, source, heading, start_index)]

        chunks = []
        for span in self.windows(len(clean)):
            content = clean[span.start : span.stop].strip()
            if not content:
                continue
            chunks.append(self._make_chunk(content, source, heading, start_index + len(chunks)))
        return chunks

    @staticmethod
    def _make_chunk(content: str, source: str, heading: str, index: int) -> DocumentChunk:
        return DocumentChunk(
            id=deterministic_chunk_id(content, source, heading, index),
            content=content,
            metadata=ChunkMetadata(source=source, heading=heading, index=index),
        )

    def get_chunk_stats(self, chunks: List[DocumentChunk]) -> dict:
        """Get statistics about a set of chunks.

        Args:
            chunks: List of DocumentChunk objects

        Returns:
            Dictionary with chunk statistics
        """
        if not chunks:
            return {
                "chunk_count": 0,
                "total_chars": 0,
                "avg_chunk_size": 0,
                "min_chunk_size": 0,
                "max_chunk_size": 0,
            }

        chunk_sizes = [len(c.content) for c in chunks]

        return {
            "chunk_count": len(chunks),
            "total_chars": sum(chunk_sizes),
            "avg_chunk_size": sum(chunk_sizes) // len(chunks),
            "min_chunk_size": min(chunk_sizes),
            "max_chunk_size": max(chunk_sizes),
            "overlap": self.chunk_overlap,
        }
