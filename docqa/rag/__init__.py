"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- Markdown parsing and section splitting
- Document chunking with deterministic ids
- Embedding generation
- Vector storage (Qdrant REST or local FAISS)
- Cross-encoder style reranking
- Prompt building and answer generation
- Incremental indexing and the query pipeline
"""
