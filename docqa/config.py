"""Application configuration with sensible defaults."""
import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
DOCS_DIR = Path(os.getenv("DOCS_DIR", str(DATA_DIR / "docs")))

# Ollama configuration (embeddings, generation, reranking)
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
EMBEDDING_MODEL = os.getenv("OLLAMA_EMBED_MODEL", "bge-m3")
GENERATION_MODEL = os.getenv("RAG_LLM_GENERATION_MODEL", "dolphin3")
SAFEGUARD_MODEL = os.getenv("RAG_LLM_SAFEGUARD_MODEL", "llama3:latest")
RERANK_MODEL = os.getenv("RAG_RERANK_MODEL", "qllama/bge-reranker-v2-m3")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "60.0"))

# Vector store
VECTOR_BACKEND = os.getenv("VECTOR_BACKEND", "qdrant")     # qdrant | faiss
VECTORSTORE_URL = os.getenv("VECTORSTORE_URL", "http://localhost:6333")
VECTOR_COLLECTION_NAME = os.getenv("VECTOR_COLLECTION_NAME", "docs_chunks")
VECTOR_SCORE_THRESHOLD = float(os.getenv("VECTOR_SCORE_THRESHOLD", "0.75"))

# Embedder variant
EMBEDDER = os.getenv("EMBEDDER", "cleaning")               # generic | cleaning, for questions
INDEX_EMBEDDER = os.getenv("INDEX_EMBEDDER", "generic")    # generic | cleaning, for chunks
EMBED_MIN_LENGTH = int(os.getenv("EMBED_MIN_LENGTH", "10"))

# Chunking (character-based to avoid tokenizer inconsistencies)
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1800"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))
CHUNK_HEADING_LEVEL = int(os.getenv("CHUNK_HEADING_LEVEL", "2"))
DEFAULT_LANG = os.getenv("DEFAULT_LANG", "en")

# Query pipeline
RETRIEVAL_TOP_K = int(os.getenv("RAG_TOP_K", "5"))
GENERATION_TEMPERATURE = float(os.getenv("RAG_TEMPERATURE", "0.2"))
RERANK_CONCURRENCY = int(os.getenv("RAG_RERANK_CONCURRENCY", "1"))
SAFEGUARD_ENABLED = os.getenv("RAG_SAFEGUARD_ENABLED", "false").lower() in ("1", "true", "yes")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
