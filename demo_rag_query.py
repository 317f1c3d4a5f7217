#!/usr/bin/env python3
"""
Demo script to ask one question against the ingested collection.

This demonstrates the full workflow:
1. Bind to the existing collection and compile the RAG graph
2. Retrieve relevant chunks for the question
3. Generate an answer from those chunks only

Usage:
    python demo_rag_query.py "your question here"
"""

import sys
import asyncio
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from src.rag.factory import build_chat_orchestrator
from src.utils.errors import RAGError
from src.utils.logger import get_logger

logger = get_logger("demo")


async def ask(question: str) -> str:
    orchestrator = build_chat_orchestrator()
    try:
        await orchestrator.initialize()
        return await orchestrator.chat(question)
    finally:
        await orchestrator.retriever.vector_store.close()


def main():
    if len(sys.argv) < 2:
        print('Usage: python demo_rag_query.py "your question here"')
        return 1

    question = " ".join(sys.argv[1:])
    print(f"\nQuestion: {question}\n")

    try:
        answer = asyncio.run(ask(question))
    except RAGError as e:
        logger.error(f"Query failed: {e}")
        print(f"✗ {e}")
        return 1

    print("=" * 70)
    print(answer)
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
