#!/usr/bin/env python3
"""Serve the RAG HTTP surface with uvicorn.

Usage:
    python run_server.py [--host 0.0.0.0] [--port 3000]
"""

import sys
import argparse
from pathlib import Path

import uvicorn

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from src.api.app import create_app
from src.utils.logger import setup_logger, get_logger

setup_logger()
logger = get_logger("server")


def main():
    parser = argparse.ArgumentParser(description="Run the RAG HTTP service")
    parser.add_argument('--host', default='0.0.0.0')
    parser.add_argument('--port', type=int, default=3000)
    args = parser.parse_args()

    logger.info(f"Starting RAG service on {args.host}:{args.port}")
    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
