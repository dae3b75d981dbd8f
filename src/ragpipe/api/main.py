"""
FastAPI application for the ragpipe REST API.

Run with:
    uvicorn ragpipe.api.main:app --reload

Or use the CLI:
    ragpipe serve
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, status

from ragpipe import __version__
from ragpipe.api.models import (
    ErrorResponse,
    HealthResponse,
    IngestRequest,
    IngestResponse,
    QueryRequest,
    QueryResponse,
)
from ragpipe.config import Settings, settings
from ragpipe.errors import (
    EmbeddingFailedError,
    IndexWriteFailedError,
    NoContentError,
    NoResultsError,
    ProviderError,
    RAGError,
    SearchFailedError,
)
from ragpipe.llm.factory import AnswerGenerator
from ragpipe.retrieval.pipeline import Pipeline

logger = logging.getLogger(__name__)

# Malformed input is a client error; everything downstream is a gateway error
ERROR_STATUS: dict[type[RAGError], int] = {
    NoContentError: status.HTTP_400_BAD_REQUEST,
    NoResultsError: status.HTTP_404_NOT_FOUND,
    EmbeddingFailedError: status.HTTP_502_BAD_GATEWAY,
    IndexWriteFailedError: status.HTTP_502_BAD_GATEWAY,
    SearchFailedError: status.HTTP_502_BAD_GATEWAY,
    ProviderError: status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Create the OpenAI client and the vector index backend
        - Build the pipeline (fails startup if the index can't be provisioned)

    Shutdown:
        - Close the HTTP and vector store clients created here
    """
    config: Settings = app.state.config
    owned = []

    if app.state.pipeline is None or app.state.answer_generator is None:
        from ragpipe.llm.factory import create_llm_client
        from ragpipe.retrieval.resources import build_pipeline

        logger.info("Initializing ragpipe resources...")
        try:
            llm_client = create_llm_client(config)
            owned.append(llm_client)
            if app.state.pipeline is None:
                app.state.pipeline = await build_pipeline(config, embedder=llm_client)
                owned.append(app.state.pipeline.index)
            if app.state.answer_generator is None:
                app.state.answer_generator = llm_client
        except Exception as e:
            logger.error(f"Failed to initialize resources: {e}")
            raise RuntimeError(f"Startup failed: {e}") from e
        logger.info("RAG pipeline initialized")

    yield

    logger.info("Shutting down ragpipe...")
    for resource in owned:
        if hasattr(resource, "aclose"):
            await resource.aclose()
        elif hasattr(resource, "close"):
            await resource.close()


def create_app(
    pipeline: Optional[Pipeline] = None,
    answer_generator: Optional[AnswerGenerator] = None,
    config: Optional[Settings] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        pipeline: Ready pipeline (built at startup when omitted)
        answer_generator: Answer backend (OpenAI client when omitted)
        config: Settings to use (defaults to the global settings)

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="ragpipe",
        description="Retrieval-augmented question answering over ingested documents",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.config = config or settings
    app.state.pipeline = pipeline
    app.state.answer_generator = answer_generator

    app.include_router(router)

    return app


# Router for API endpoints
router = APIRouter()

ERROR_RESPONSES = {
    502: {"model": ErrorResponse, "description": "Downstream service failed"},
    504: {"model": ErrorResponse, "description": "Downstream service timed out"},
}

QUERY_RESPONSES = {
    **ERROR_RESPONSES,
    404: {"model": ErrorResponse, "description": "No context found"},
}

INGEST_RESPONSES = {
    **ERROR_RESPONSES,
    400: {"model": ErrorResponse, "description": "Text yields no chunks"},
}


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint for liveness/readiness probes.

    Returns:
        Health status and pipeline readiness
    """
    ready = request.app.state.pipeline is not None

    return HealthResponse(
        status="healthy" if ready else "unhealthy",
        version=__version__,
        vector_backend=request.app.state.config.vector_backend,
        pipeline_ready=ready,
    )


@router.post(
    "/query",
    response_model=QueryResponse,
    responses=QUERY_RESPONSES,
    tags=["Query"],
)
async def query_endpoint(request: Request, body: QueryRequest) -> QueryResponse:
    """
    Answer a question from the indexed documents.

    The query flows through:
    1. Retrieve - embed the question and fetch the closest chunks
    2. Answer - generate an answer grounded in the retrieved context

    Raises:
        HTTPException: 404 if nothing relevant is indexed
        HTTPException: 502 if embedding, search or generation fails
        HTTPException: 504 if a step exceeds the request timeout
    """
    pipeline: Pipeline = request.app.state.pipeline
    answer_generator: AnswerGenerator = request.app.state.answer_generator
    timeout = request.app.state.config.request_timeout

    try:
        context = await asyncio.wait_for(pipeline.retrieve(body.query), timeout)
    except RAGError as e:
        logger.error(f"Error retrieving context for query {body.query!r}: {e}")
        raise _http_error(e, "Failed to retrieve context")
    except asyncio.TimeoutError:
        logger.error(f"Timed out retrieving context for query {body.query!r}")
        raise _timeout_error("Timed out retrieving context")

    try:
        answer = await asyncio.wait_for(
            answer_generator.answer(context, body.query), timeout
        )
    except RAGError as e:
        logger.error(f"Error generating answer for query {body.query!r}: {e}")
        raise _http_error(e, "Failed to generate answer")
    except asyncio.TimeoutError:
        logger.error(f"Timed out generating answer for query {body.query!r}")
        raise _timeout_error("Timed out generating answer")

    return QueryResponse(answer=answer, context=context)


@router.post(
    "/ingest",
    response_model=IngestResponse,
    responses=INGEST_RESPONSES,
    tags=["Ingest"],
)
async def ingest_endpoint(request: Request, body: IngestRequest) -> IngestResponse:
    """
    Chunk, embed and index a document.

    Raises:
        HTTPException: 400 if the text yields no chunks
        HTTPException: 502 if embedding or the index write fails
        HTTPException: 504 if ingestion exceeds the request timeout
    """
    pipeline: Pipeline = request.app.state.pipeline
    doc_id = body.id or ""

    try:
        chunks = await asyncio.wait_for(
            pipeline.ingest(body.text, doc_id), request.app.state.config.request_timeout
        )
    except RAGError as e:
        logger.error(f"Error ingesting document {doc_id!r}: {e}")
        raise _http_error(e, "Failed to ingest document")
    except asyncio.TimeoutError:
        logger.error(f"Timed out ingesting document {doc_id!r}")
        raise _timeout_error("Timed out ingesting document")

    return IngestResponse(status="success", doc_id=doc_id, chunks=chunks)


def _http_error(exc: RAGError, message: str) -> HTTPException:
    """Map a pipeline error to an HTTPException with an ErrorResponse body."""
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, error_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            code = error_code
            break

    return HTTPException(
        status_code=code,
        detail=ErrorResponse(
            error=HTTPStatus(code).phrase,
            message=f"{message}: {exc}",
        ).model_dump(),
    )


def _timeout_error(message: str) -> HTTPException:
    code = status.HTTP_504_GATEWAY_TIMEOUT
    return HTTPException(
        status_code=code,
        detail=ErrorResponse(error=HTTPStatus(code).phrase, message=message).model_dump(),
    )


# Create app instance
app = create_app()
