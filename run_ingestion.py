#!/usr/bin/env python3
"""
Standalone script to run the data ingestion pipeline.

This script orchestrates:
1. Loading documents from the configured source directory
2. Chunking documents into overlapping pieces
3. Generating embeddings via Ollama
4. Storing embeddings in the Qdrant collection

Usage:
    python run_ingestion.py [--json]

Options:
    --json      Print the run result as JSON instead of a summary

Note: Source path, collection and chunking are configured via environment
      variables (DOCS_PATH, QDRANT_COLLECTION_NAME, RAG_CHUNK_SIZE, ...).
      Re-running appends to the collection; it does not replace earlier chunks.
"""

import sys
import json
import asyncio
import argparse
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from src.rag.factory import build_ingestion_pipeline
from src.utils.config import get_settings
from src.utils.errors import ConfigurationError, IngestionError, TransientProviderError
from src.utils.logger import setup_logger, get_logger

# Initialize logger
setup_logger()
logger = get_logger("cli")


async def ingest(settings):
    pipeline = build_ingestion_pipeline(settings)
    try:
        return await pipeline.run()
    finally:
        await pipeline.vector_store.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run the RAG data ingestion pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the ingestion result as JSON'
    )
    args = parser.parse_args()

    settings = get_settings()

    logger.info("=" * 70)
    logger.info("Data Ingestion Pipeline Configuration")
    logger.info("=" * 70)
    logger.info(f"Documents: {settings.docs_path} ({settings.docs_format})")
    logger.info(f"Collection: {settings.qdrant_collection_name} at {settings.qdrant_location}")
    logger.info(f"Chunk size/overlap: {settings.rag_chunk_size}/{settings.rag_chunk_overlap}")
    logger.info("=" * 70)

    try:
        result = asyncio.run(ingest(settings))

    except KeyboardInterrupt:
        logger.info("\nIngestion cancelled by user (Ctrl+C)")
        return 130

    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    except IngestionError as e:
        logger.error(f"Ingestion failed ({e.reason}): {e}")
        print(f"\n✗ Ingestion failed: {e}")
        return 1

    except TransientProviderError as e:
        logger.error(f"Provider unavailable: {e}")
        print(f"\n✗ {e.provider} unavailable, try again later")
        return 3

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print("\n" + result.summary())

    return 0


if __name__ == "__main__":
    sys.exit(main())
