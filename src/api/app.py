"""
app.py
======
FastAPI surface over the ingestion pipeline and the chat orchestrator.

Run locally:
  python run_server.py

The lifespan handler binds the chat orchestrator once at startup. When the
collection does not exist yet, chat stays unavailable (503) until a
successful ``GET /ingest``.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from src.rag.factory import build_chat_orchestrator, build_ingestion_pipeline, build_vector_store
from src.rag.ingestion import IngestionPipeline
from src.rag.orchestrator import ChatOrchestrator
from src.utils.config import Settings, get_settings
from src.utils.errors import (
    ConfigurationError,
    IngestionError,
    NotInitializedError,
    TransientProviderError,
)
from src.utils.logger import get_logger

logger = get_logger("api")


async def _try_initialize(orchestrator: ChatOrchestrator) -> None:
    try:
        await orchestrator.initialize()
    except (ConfigurationError, TransientProviderError) as exc:
        logger.warning(f"Chat not available yet: {exc}")


async def _close_stores(pipeline: IngestionPipeline, orchestrator: ChatOrchestrator) -> None:
    stores = [pipeline.vector_store, orchestrator.retriever.vector_store]
    # Ingestion and chat usually share one store
    for store in {id(store): store for store in stores}.values():
        await store.close()


def create_app(
    settings: Optional[Settings] = None,
    pipeline: Optional[IngestionPipeline] = None,
    orchestrator: Optional[ChatOrchestrator] = None
) -> FastAPI:
    settings = settings or get_settings()

    if pipeline is None or orchestrator is None:
        vector_store = build_vector_store(settings)
        pipeline = pipeline or build_ingestion_pipeline(settings, vector_store=vector_store)
        orchestrator = orchestrator or build_chat_orchestrator(settings, vector_store=vector_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("RAG service starting up…")
        await _try_initialize(app.state.orchestrator)
        yield
        logger.info("RAG service shutting down.")
        await _close_stores(app.state.pipeline, app.state.orchestrator)

    app = FastAPI(title="RAG Chat Service", version="1.0.0", lifespan=lifespan)
    app.state.pipeline = pipeline
    app.state.orchestrator = orchestrator

    # ── Error mapping ─────────────────────────────────────────────────────
    @app.exception_handler(IngestionError)
    async def ingestion_error_handler(request: Request, exc: IngestionError):
        return JSONResponse(status_code=422, content={"error": exc.reason, "detail": str(exc)})

    @app.exception_handler(NotInitializedError)
    async def not_initialized_handler(request: Request, exc: NotInitializedError):
        return JSONResponse(status_code=503, content={"error": "not_initialized", "detail": str(exc)})

    @app.exception_handler(TransientProviderError)
    async def provider_error_handler(request: Request, exc: TransientProviderError):
        return JSONResponse(status_code=502, content={"error": exc.provider, "detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        return JSONResponse(status_code=500, content={"error": "configuration", "detail": str(exc)})

    # ── Routes ────────────────────────────────────────────────────────────
    @app.get("/", response_class=PlainTextResponse)
    async def hello() -> str:
        return "Hello World!"

    @app.get("/health")
    async def health(request: Request) -> dict:
        orchestrator: ChatOrchestrator = request.app.state.orchestrator
        retriever_health = await orchestrator.retriever.health_check()
        return {"chat_ready": orchestrator.is_ready, "retriever": retriever_health}

    @app.get("/ingest", response_class=PlainTextResponse)
    async def ingest(request: Request) -> str:
        logger.info("--- API Call: Starting Document Ingestion ---")
        result = await request.app.state.pipeline.run()
        await _try_initialize(request.app.state.orchestrator)
        return result.summary()

    @app.get("/chat")
    async def chat(request: Request, question: str = Query(..., min_length=1)) -> dict:
        answer = await request.app.state.orchestrator.chat(question)
        return {"question": question, "answer": answer}

    return app
