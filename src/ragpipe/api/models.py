"""
Pydantic models for API request and response schemas.

These models provide automatic validation and OpenAPI documentation.
"""

from typing import Optional

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Request schema for the /query endpoint."""

    query: str = Field(
        ...,
        min_length=1,
        description="Natural language question",
        examples=["What is Kubernetes?"],
    )


class QueryResponse(BaseModel):
    """Response schema for the /query endpoint."""

    answer: str = Field(
        description="Generated answer grounded in the retrieved context",
    )
    context: str = Field(
        default="",
        description="Context blob the answer was generated from",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "answer": "Kubernetes is a container orchestration platform.",
                    "context": "[Document 1, Score: 0.8731]\nKubernetes is an open-source ...",
                }
            ]
        }
    }


class IngestRequest(BaseModel):
    """Request schema for the /ingest endpoint."""

    text: str = Field(
        ...,
        min_length=1,
        description="Document text to index",
    )
    id: Optional[str] = Field(
        default=None,
        description="Document identifier; re-using an id overwrites that document's chunks",
        examples=["kubernetes.txt"],
    )


class IngestResponse(BaseModel):
    """Response schema for the /ingest endpoint."""

    status: str = Field(
        default="success",
        description="Ingestion status",
    )
    doc_id: str = Field(
        default="",
        description="Document identifier (empty when none was given)",
    )
    chunks: int = Field(
        ge=1,
        description="Number of chunks written to the index",
    )


class HealthResponse(BaseModel):
    """Response schema for the /health endpoint."""

    status: str = Field(
        description="Health status",
        examples=["healthy", "unhealthy"],
    )
    version: str = Field(
        description="API version",
    )
    vector_backend: str = Field(
        description="Configured vector index backend",
    )
    pipeline_ready: bool = Field(
        description="Whether the pipeline passed the provisioning gate",
    )


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    error: str = Field(
        description="HTTP status phrase",
        examples=["Bad Request", "Not Found", "Bad Gateway"],
    )
    message: str = Field(
        description="Human-readable error message",
    )
