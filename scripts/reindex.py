#!/usr/bin/env python
"""Index markdown documentation into the vector store.

Usage:
    python scripts/reindex.py              # Incremental index (new chunks only)
    python scripts/reindex.py --rebuild    # Clear the collection, then index
    python scripts/reindex.py --verbose    # Show detailed progress
"""
import argparse
import asyncio
import sys
from pathlib import Path
from datetime import datetime

from docqa import config
from docqa.log import configure_logging
from docqa.rag.chunker import MarkdownChunker
from docqa.rag.embedder import create_embedder
from docqa.rag.indexer import Indexer, IndexStats
from docqa.rag.store_factory import create_vector_store
import structlog

logger = structlog.get_logger()


class ProgressReporter:
    """Simple progress reporter for CLI."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.start_time = None

    def start(self, message: str):
        """Start progress reporting."""
        self.start_time = datetime.now()
        print(f"\n{'=' * 60}")
        print(f"  {message}")
        print(f"{'=' * 60}\n")

    def update(self, current: int, total: int, file_path: Path):
        """Update progress."""
        percentage = (current / total) * 100 if total > 0 else 0
        bar_length = 40
        filled = int(bar_length * current / total) if total > 0 else 0
        bar = "█" * filled + "░" * (bar_length - filled)

        file_name = file_path.name
        print(
            f"\r  [{bar}] {percentage:5.1f}% ({current}/{total}) {file_name[:30]:<30}",
            end="",
            flush=True,
        )

        if self.verbose:
            print()

    def finish(self, stats: IndexStats):
        """Print the run summary."""
        print("\n")
        elapsed_seconds = (datetime.now() - self.start_time).total_seconds()

        print(f"{'=' * 60}")
        print("  Indexing Complete!")
        print(f"{'=' * 60}\n")
        print(f"  Files processed:        {stats.files_processed}")
        print(f"  Files failed:           {stats.files_failed}")
        print(f"  Chunks generated:       {stats.chunks_generated}")
        print(f"  Vectors generated:      {stats.vectors_generated}")
        print(f"  Chunks skipped:         {stats.chunks_skipped}")
        print(f"  Chunks indexed:         {stats.chunks_indexed}")
        print(f"  Chunks failed:          {stats.chunks_failed}")
        print(f"  Time elapsed:           {elapsed_seconds:.1f}s")
        print(f"\n{'=' * 60}\n")

        if stats.warnings:
            print(f"Warnings ({len(stats.warnings)}):")
            for warning in stats.warnings:
                print(f"  - {warning}")
            print()


async def main():
    """Main entry point for reindex script."""
    parser = argparse.ArgumentParser(
        description="Index markdown documentation into the vector store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/reindex.py              # Incremental index
  python scripts/reindex.py --rebuild    # Clear the collection, then index
  python scripts/reindex.py --backend faiss --docs-dir ./docs
        """,
    )

    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Clear the collection before indexing",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show verbose progress output",
    )
    parser.add_argument(
        "--docs-dir",
        type=Path,
        default=None,
        help=f"Documents directory (default: {config.DOCS_DIR})",
    )
    parser.add_argument(
        "--backend",
        choices=["qdrant", "faiss"],
        default=None,
        help=f"Vector store backend (default: {config.VECTOR_BACKEND})",
    )
    parser.add_argument(
        "--embedder",
        choices=["generic", "cleaning"],
        default=None,
        help=f"Embedder variant for chunks (default: {config.INDEX_EMBEDDER})",
    )

    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else "WARNING", json_output=False)

    progress = ProgressReporter(verbose=args.verbose)
    docs_dir = args.docs_dir or config.DOCS_DIR

    try:
        print("\nConfiguration:")
        print(f"   Documents directory: {docs_dir}")
        print(f"   Vector backend:      {args.backend or config.VECTOR_BACKEND}")
        print(f"   Collection:          {config.VECTOR_COLLECTION_NAME}")
        print(f"   Embedder:            {args.embedder or config.INDEX_EMBEDDER} ({config.EMBEDDING_MODEL})")
        print(f"   Chunk size:          {config.CHUNK_SIZE} chars")
        print(f"   Chunk overlap:       {config.CHUNK_OVERLAP} chars")

        if args.rebuild:
            print("\nRebuild mode: the collection will be cleared!")
            print("   Press Ctrl+C within 3 seconds to cancel...")
            await asyncio.sleep(3)

        action = "Rebuilding" if args.rebuild else "Indexing"
        progress.start(f"{action} Documents")

        indexer = Indexer(
            chunker=MarkdownChunker(),
            embedder=create_embedder(args.embedder or config.INDEX_EMBEDDER),
            vector_store=create_vector_store(args.backend),
        )

        stats = await indexer.index_all(
            root_dir=docs_dir,
            rebuild=args.rebuild,
            progress_callback=progress.update,
        )

        progress.finish(stats)

        if stats.files_failed > 0:
            sys.exit(1)

    except KeyboardInterrupt:
        print("\n\nIndexing cancelled by user.\n")
        sys.exit(1)

    except FileNotFoundError as e:
        print(f"\nError: {e}\n")
        sys.exit(1)

    except Exception as e:
        print(f"\nError: {e}\n")
        logger.error("reindex_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
