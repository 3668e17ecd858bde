"""Readiness polling for a freshly spawned llama-server."""

import asyncio
from collections.abc import Callable

import httpx
import structlog

from src.config import LLAMA_SERVER_PORT

logger = structlog.get_logger()


class LlamaServerHealthChecker:
    """Polls the llama-server /health endpoint.

    llama-server accepts connections while the model is still loading and
    answers 503 until it is done, so spawn success alone does not mean the
    embedding endpoint is usable.
    """

    HEALTH_PATH = "/health"

    def __init__(
        self,
        *,
        base_url: str = f"http://127.0.0.1:{LLAMA_SERVER_PORT}",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport)

    async def is_ready(self, *, timeout_seconds: float = 1.0) -> bool:
        """Return True if the server reports ``{"status": "ok"}``.

        Transport errors and unexpected bodies count as "not ready".
        """
        try:
            response = await self._client.get(
                self.HEALTH_PATH,
                timeout=timeout_seconds,
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("llama_server_health_unreachable", error=str(e))
            return False

        return (
            response.status_code == 200
            and isinstance(data, dict)
            and data.get("status") == "ok"
        )

    async def wait_until_ready(
        self,
        *,
        timeout_seconds: float = 60.0,
        interval_seconds: float = 1.0,
        is_alive: Callable[[], bool] | None = None,
    ) -> bool:
        """Poll until the server is healthy or the timeout elapses.

        Args:
            timeout_seconds: Total time to keep polling.
            interval_seconds: Delay between polls.
            is_alive: Checked before every poll; polling stops once it
                returns False.

        Returns:
            True once healthy, False if the timeout elapsed or the server
            process went away first.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_seconds
        probe_timeout = max(interval_seconds - 0.1, 0.1)

        while loop.time() < deadline:
            if is_alive is not None and not is_alive():
                logger.error("llama_server_exited_before_ready", base_url=self._base_url)
                return False
            if await self.is_ready(timeout_seconds=probe_timeout):
                logger.info("llama_server_ready", base_url=self._base_url)
                return True
            await asyncio.sleep(interval_seconds)

        logger.error(
            "llama_server_not_ready",
            base_url=self._base_url,
            timeout_seconds=timeout_seconds,
        )
        return False

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
