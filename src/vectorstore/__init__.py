"""Vector database management for RAG.

This module provides:
- Qdrant collection binding, creation and upserts
- Embedding generation
- Similarity search functionality
"""
