"""Retrieval-Augmented Generation (RAG) pipeline.

This module handles:
- Document loading and chunking for ingestion
- Retrieval of ranked chunks from the vector database
- The retrieve -> generate state machine behind chat
"""
