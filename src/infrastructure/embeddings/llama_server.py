"""Embedding provider backed by the local llama-server /embedding endpoint."""

import math
from typing import Any

import httpx
import structlog

from src.config import LLAMA_SERVER_PORT
from src.infrastructure.embeddings.exceptions import (
    EmbeddingConnectionError,
    EmbeddingResponseError,
    EmbeddingStatusError,
    EmbeddingTimeoutError,
)
from src.infrastructure.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)


class LlamaServerEmbeddingProvider:
    """Embedding provider using the llama-server embedding endpoint.

    One request per text, no retries: a single failure is reported to the
    caller, which aborts the whole indexing or retrieval command. Requests
    are bounded by a timeout so a stuck backend cannot hang a command.
    """

    PROVIDER_NAME = "llama-server"
    EMBEDDING_PATH = "/embedding"

    def __init__(
        self,
        *,
        base_url: str = f"http://127.0.0.1:{LLAMA_SERVER_PORT}",
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the embedding provider.

        Args:
            base_url: Base URL of the running llama-server.
            timeout_seconds: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._base_url = base_url
        self._timeout = timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def embed(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: Text to embed.

        Returns:
            The embedding vector.

        Raises:
            EmbeddingConnectionError: If llama-server cannot be reached.
            EmbeddingTimeoutError: If the request times out.
            EmbeddingStatusError: If llama-server returns a non-success status.
            EmbeddingResponseError: If the body is not JSON or holds no vector.
        """
        with tracer.start_as_current_span("embeddings.embed") as span:
            span.set_attribute("embeddings.provider", self.PROVIDER_NAME)
            span.set_attribute("embeddings.input_length", len(text))

            data = await self._request(text)
            vector = self._unwrap(data)

            span.set_attribute("embeddings.dimensions", len(vector))
            logger.debug(
                "embedding_request_success",
                provider=self.PROVIDER_NAME,
                input_length=len(text),
                dimensions=len(vector),
            )
            return vector

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts one request at a time, preserving input order.

        Args:
            texts: List of texts to embed.

        Returns:
            List of embedding vectors.

        Raises:
            EmbeddingProviderError: On the first text that fails.
        """
        return [await self.embed(text) for text in texts]

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(self, text: str) -> Any:
        """POST the text and return the decoded JSON body."""
        try:
            response = await self._client.post(
                self.EMBEDDING_PATH,
                json={"content": text},
            )

        except httpx.TimeoutException as e:
            logger.warning(
                "embedding_timeout",
                provider=self.PROVIDER_NAME,
                timeout_seconds=self._timeout,
            )
            raise EmbeddingTimeoutError(
                f"Embedding request to llama-server timed out after {self._timeout}s",
                provider=self.PROVIDER_NAME,
            ) from e

        except httpx.TransportError as e:
            logger.error(
                "embedding_connection_error",
                provider=self.PROVIDER_NAME,
                base_url=self._base_url,
                error=str(e),
            )
            raise EmbeddingConnectionError(
                f"Failed to send request to llama-server: {e}",
                provider=self.PROVIDER_NAME,
            ) from e

        if not response.is_success:
            body = response.text or "Unknown server error"
            logger.error(
                "embedding_status_error",
                provider=self.PROVIDER_NAME,
                status_code=response.status_code,
                body=body[:200],
            )
            raise EmbeddingStatusError(
                f"llama-server failed with status {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
                provider=self.PROVIDER_NAME,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "embedding_decode_error",
                provider=self.PROVIDER_NAME,
                error=str(e),
            )
            raise EmbeddingResponseError(
                f"Failed to parse JSON from embedding server: {e}",
                provider=self.PROVIDER_NAME,
            ) from e

    def _unwrap(self, data: Any) -> list[float]:
        """Pull the vector out of ``[{"embedding": [[...], ...]}, ...]``.

        The last vector of the last object is used, which covers both the
        single-item and multi-item response shapes llama-server produces.
        """
        if not isinstance(data, list):
            raise self._malformed("Expected a JSON array of embedding objects.")
        if not data:
            raise self._malformed("The top-level JSON array was empty.")

        last_object = data[-1]
        if not isinstance(last_object, dict) or "embedding" not in last_object:
            raise self._malformed("Embedding object is missing the 'embedding' field.")

        inner = last_object["embedding"]
        if not isinstance(inner, list):
            raise self._malformed("The 'embedding' field is not an array.")
        if not inner:
            raise self._malformed("The inner 'embedding' array was empty.")

        vector = inner[-1]
        if not isinstance(vector, list):
            raise self._malformed("Expected the 'embedding' field to hold nested arrays.")
        if not vector:
            raise self._malformed("Server returned an empty embedding vector.")

        try:
            values = [float(value) for value in vector]
        except (TypeError, ValueError) as e:
            raise self._malformed(
                f"Embedding vector contains non-numeric values: {e}"
            ) from e

        # json parses NaN and Infinity literals; stored vectors must be finite
        if not all(math.isfinite(value) for value in values):
            raise self._malformed("Embedding vector contains non-finite values.")

        return values

    def _malformed(self, message: str) -> EmbeddingResponseError:
        logger.error(
            "embedding_malformed_response",
            provider=self.PROVIDER_NAME,
            reason=message,
        )
        return EmbeddingResponseError(message, provider=self.PROVIDER_NAME)
