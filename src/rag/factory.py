"""Wiring of concrete collaborators from settings.

Pass the same ``vector_store`` to both builders when ingestion and chat run
in one process: embedded (path or ``:memory:``) Qdrant storage allows a
single client per location.
"""

from typing import Optional

from src.llm.ollama_model import OllamaChatModel
from src.rag.chunker import DocumentChunker
from src.rag.document_loader import FileDocumentLoader
from src.rag.ingestion import IngestionPipeline
from src.rag.orchestrator import ChatOrchestrator
from src.rag.prompt import PromptAssembler
from src.rag.retriever import EmbeddingProvider, VectorStoreGateway, VectorStoreRetriever
from src.rag.state_machine import RAGStateMachine
from src.utils.config import Settings, get_settings
from src.vectorstore.embeddings import OllamaEmbeddingProvider
from src.vectorstore.qdrant_client import QdrantVectorStore


def build_vector_store(settings: Optional[Settings] = None) -> QdrantVectorStore:
    settings = settings or get_settings()
    return QdrantVectorStore(collection=settings.collection_config(), settings=settings)


def build_ingestion_pipeline(
    settings: Optional[Settings] = None,
    vector_store: Optional[VectorStoreGateway] = None,
    embedder: Optional[EmbeddingProvider] = None
) -> IngestionPipeline:
    settings = settings or get_settings()
    settings.validate_chunking()

    return IngestionPipeline(
        loader=FileDocumentLoader(
            docs_path=settings.docs_path,
            docs_format=settings.docs_format,
            recursive=settings.docs_recursive,
        ),
        chunker=DocumentChunker(
            chunk_size=settings.rag_chunk_size,
            chunk_overlap=settings.rag_chunk_overlap,
        ),
        embedder=embedder or OllamaEmbeddingProvider(settings=settings),
        vector_store=vector_store or build_vector_store(settings),
        collection=settings.collection_config(),
    )


def build_chat_orchestrator(
    settings: Optional[Settings] = None,
    vector_store: Optional[VectorStoreGateway] = None,
    embedder: Optional[EmbeddingProvider] = None
) -> ChatOrchestrator:
    settings = settings or get_settings()

    retriever = VectorStoreRetriever(
        embedder=embedder or OllamaEmbeddingProvider(settings=settings),
        vector_store=vector_store or build_vector_store(settings),
        top_k=settings.rag_top_k_results,
    )
    state_machine = RAGStateMachine(
        retriever=retriever,
        llm=OllamaChatModel(settings=settings),
        assembler=PromptAssembler(),
    )
    return ChatOrchestrator(retriever=retriever, state_machine=state_machine)
