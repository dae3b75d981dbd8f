"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Use a .env file for local development.

Environment Variables:
    OPENAI_API_KEY: OpenAI API key (required to embed or answer)
    OPENAI_MODEL: Chat model used for answer generation
    OPENAI_EMBED_MODEL: Embedding model for documents and queries
    VECTOR_BACKEND: "qdrant" (default) or "faiss"
    QDRANT_HOST / QDRANT_PORT / QDRANT_COLLECTION: Qdrant connection
    CHUNK_SIZE: Maximum characters per chunk
    CHUNK_OVERLAP: Words carried over between consecutive chunks
    SEARCH_LIMIT: Number of chunks retrieved per query
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # OpenAI Configuration
    # ==========================================================================
    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible API",
    )
    openai_model: str = Field(
        default="gpt-4.1-mini",
        description="Model for chat completions",
    )
    openai_embed_model: str = Field(
        default="text-embedding-3-large",
        description="Model for embeddings",
    )
    embedding_dimension: int = Field(
        default=3072,
        ge=1,
        description="Dimension of embedding vectors (must match model)",
    )
    answer_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for answer generation",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Timeout in seconds for a single upstream or API call",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per OpenAI request on rate limits and gateway errors",
    )

    # ==========================================================================
    # Vector Store Configuration
    # ==========================================================================
    vector_backend: Literal["qdrant", "faiss"] = Field(
        default="qdrant",
        description="Vector index implementation",
    )
    qdrant_host: str = Field(
        default="localhost",
        description="Qdrant host",
    )
    qdrant_port: int = Field(
        default=6334,
        ge=1,
        le=65535,
        description="Qdrant gRPC port",
    )
    qdrant_prefer_grpc: bool = Field(
        default=True,
        description="Talk to Qdrant over gRPC instead of REST",
    )
    qdrant_collection: str = Field(
        default="docs",
        description="Qdrant collection name",
    )
    faiss_index_path: Path = Field(
        default=Path("data/index/faiss"),
        description="Base path for FAISS index files (faiss backend only)",
    )

    # ==========================================================================
    # RAG Configuration
    # ==========================================================================
    chunk_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum size in characters of a text chunk",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Number of trailing words repeated at the start of the next chunk",
    )
    search_limit: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Number of search results to return",
    )
    prompts_dir: Path = Field(
        default=Path("prompts"),
        description="Directory holding system_prompt.txt and answer_prompt.txt",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind API server",
    )
    api_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port for API server",
    )

    # ==========================================================================
    # Observability Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("faiss_index_path", "prompts_dir")
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        """Resolve paths to absolute paths."""
        return v.resolve()

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def openai_api_key_value(self) -> Optional[str]:
        """Get the actual API key value (use sparingly)."""
        if self.openai_api_key:
            return self.openai_api_key.get_secret_value()
        return None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    Call `get_settings.cache_clear()` to reload settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
