"""HTTP adapters for ingestion and chat."""
