"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# llama-server always listens here; the UI and the embedding client agree on it
LLAMA_SERVER_PORT = 8080


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "LocalRAG"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server (this sidecar API)
    host: str = "127.0.0.1"
    port: int = 8000

    # Inference backend (llama-server child process)
    llama_server_binary: str = "llama-server"
    llama_server_host: str = "127.0.0.1"
    llama_server_stop_timeout_seconds: float = 5.0
    llama_server_ready_timeout_seconds: float = 60.0
    llama_server_ready_interval_seconds: float = 1.0

    # Embeddings (via llama-server /embedding)
    embedding_timeout_seconds: float = 60.0

    # RAG Settings
    rag_chunk_size: int = 512  # Characters
    rag_chunk_overlap: int = 50  # Characters
    rag_top_k: int = 3  # Number of chunks to retrieve

    # Observability
    log_level: str = "INFO"
    log_json: bool = False
    tracing_enabled: bool = False
    trace_console_export: bool = False
    otlp_endpoint: str | None = None

    @property
    def llama_server_url(self) -> str:
        """Base URL of the local inference backend."""
        return f"http://{self.llama_server_host}:{LLAMA_SERVER_PORT}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
