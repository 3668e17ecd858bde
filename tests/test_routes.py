"""Tests for the llama-server and RAG command routes."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.infrastructure.embeddings import (
    EmbeddingConnectionError,
    EmbeddingResponseError,
    EmbeddingStatusError,
    EmbeddingTimeoutError,
)
from src.infrastructure.llama_server import (
    LlamaServerHealthChecker,
    LlamaServerSupervisor,
)
from src.infrastructure.vectordb import InMemoryVectorStore
from src.main import app
from src.modules.rag import CONTEXT_DELIMITER, RAGService
from src.state import AppState

SPAWN = "src.infrastructure.llama_server.supervisor.asyncio.create_subprocess_exec"

START_PAYLOAD = {
    "modelPath": "/models/nomic-embed.gguf",
    "gpuLayers": 99,
    "contextSize": 8192,
    "threads": 8,
    "flashAttn": True,
    "embedding": True,
}


class FakeProcess:
    """Minimal asyncio.subprocess.Process stand-in."""

    def __init__(self, pid: int) -> None:
        self.pid = pid
        self.returncode: int | None = None
        self.stderr = asyncio.StreamReader()
        self.killed = False

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9
        self.stderr.feed_eof()

    async def wait(self) -> int:
        while self.returncode is None:
            await asyncio.sleep(0.001)
        return self.returncode


def _fake_spawn(processes: list[FakeProcess]) -> AsyncMock:
    """Build a spawn mock that creates processes inside the running loop."""
    pids = iter(range(1000, 2000))

    async def spawn(*args: str, **kwargs: object) -> FakeProcess:
        process = FakeProcess(pid=next(pids))
        processes.append(process)
        return process

    return AsyncMock(side_effect=spawn)


@pytest.fixture
def embeddings():
    """Create a mock embedding provider returning one fixed vector."""
    provider = MagicMock()
    provider.embed = AsyncMock(return_value=[1.0, 0.0])
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def health_checker():
    """Create a mock health checker that reports ready."""
    checker = MagicMock(spec=LlamaServerHealthChecker)
    checker.wait_until_ready = AsyncMock(return_value=True)
    checker.close = AsyncMock()
    return checker


@pytest.fixture
def app_state(embeddings, health_checker) -> AppState:
    """Create application state around mocked collaborators."""
    return AppState(
        rag=RAGService(embeddings, InMemoryVectorStore()),
        supervisor=LlamaServerSupervisor(
            binary="/opt/llama/llama-server",
            health_checker=health_checker,
        ),
        embedding_provider=embeddings,
    )


@pytest.fixture
def processes() -> list[FakeProcess]:
    """Processes spawned during a test."""
    return []


@pytest.fixture
def client(app_state, processes):
    """Create a test client whose lifespan uses the mocked state."""
    with (
        patch.object(AppState, "from_settings", return_value=app_state),
        patch(SPAWN, _fake_spawn(processes)),
        TestClient(app) as test_client,
    ):
        yield test_client


class TestStartLlamaServer:
    """Tests for POST /llama-server/start."""

    def test_start_returns_running_status(self, client, processes):
        """Start should spawn the backend and report it running."""
        response = client.post("/llama-server/start", json=START_PAYLOAD)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "llama-server start command issued."
        assert data["status"]["state"] == "running"
        assert data["status"]["pid"] == processes[0].pid
        assert data["status"]["ready"] is None
        assert data["status"]["args"][:2] == ["-m", "/models/nomic-embed.gguf"]
        assert "--embedding" in data["status"]["args"]
        assert "-fa" in data["status"]["args"]

    def test_second_start_replaces_first(self, client, processes):
        """Only the latest process should remain live."""
        client.post("/llama-server/start", json=START_PAYLOAD)
        response = client.post(
            "/llama-server/start", json={**START_PAYLOAD, "threads": 2}
        )

        assert len(processes) == 2
        assert processes[0].killed is True
        assert processes[1].killed is False
        assert response.json()["status"]["pid"] == processes[1].pid

    def test_start_can_wait_for_ready(self, client, health_checker):
        """waitForReady should poll health and report the outcome."""
        response = client.post(
            "/llama-server/start", json={**START_PAYLOAD, "waitForReady": True}
        )

        assert response.json()["status"]["ready"] is True
        health_checker.wait_until_ready.assert_awaited_once()

    def test_start_with_missing_model_path_is_rejected(self, client, processes):
        """An incomplete launch config should fail validation."""
        payload = {k: v for k, v in START_PAYLOAD.items() if k != "modelPath"}

        response = client.post("/llama-server/start", json=payload)

        assert response.status_code == 422
        assert processes == []

    def test_spawn_failure_returns_error(self, app_state):
        """A missing binary should be reported as a spawn failure."""
        with (
            patch.object(AppState, "from_settings", return_value=app_state),
            patch(SPAWN, AsyncMock(side_effect=FileNotFoundError("not found"))),
            TestClient(app) as client,
        ):
            response = client.post("/llama-server/start", json=START_PAYLOAD)

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "llama_server_spawn_failed"
        assert "not found" in data["details"]


class TestStopAndStatus:
    """Tests for stop, status and ready."""

    def test_stop_when_idle_succeeds(self, client):
        """Stopping with nothing running is not an error."""
        response = client.post("/llama-server/stop")

        assert response.status_code == 200
        assert response.json()["message"] == "llama-server was not running."
        assert response.json()["status"]["state"] == "stopped"

    def test_stop_kills_running_backend(self, client, processes):
        """Stop should kill the tracked process."""
        client.post("/llama-server/start", json=START_PAYLOAD)

        response = client.post("/llama-server/stop")

        assert response.json()["message"] == "llama-server stopped."
        assert processes[0].killed is True

    def test_status_reports_pid(self, client, processes):
        """Status should describe the running process."""
        client.post("/llama-server/start", json=START_PAYLOAD)

        data = client.get("/llama-server/status").json()

        assert data["state"] == "running"
        assert data["pid"] == processes[0].pid

    def test_ready_when_not_running_is_false(self, client, health_checker):
        """Ready should not poll when nothing is running."""
        data = client.get("/llama-server/ready").json()

        assert data["ready"] is False
        health_checker.wait_until_ready.assert_not_called()

    def test_shutdown_stops_backend(self, app_state, processes):
        """Leaving the lifespan should kill the backend."""
        with (
            patch.object(AppState, "from_settings", return_value=app_state),
            patch(SPAWN, _fake_spawn(processes)),
            TestClient(app) as client,
        ):
            client.post("/llama-server/start", json=START_PAYLOAD)

        assert processes[0].killed is True


class TestRAGRoutes:
    """Tests for the /rag routes."""

    def test_index_then_retrieve(self, client):
        """Indexed text should come back as context."""
        response = client.post("/rag/index", json={"content": "Dogs are great pets."})

        assert response.status_code == 200
        assert response.json() == {"chunks_indexed": 1, "total_chunks": 1}

        response = client.post("/rag/retrieve", json={"query": "pets?"})

        assert response.json() == {"context": "Dogs are great pets."}

    def test_retrieve_joins_chunks_with_delimiter(self, client):
        """Several chunks should be joined by the context delimiter."""
        client.post("/rag/index", json={"content": "first"})
        client.post("/rag/index", json={"content": "second"})

        context = client.post("/rag/retrieve", json={"query": "q"}).json()["context"]

        assert context == f"first{CONTEXT_DELIMITER}second"

    def test_retrieve_with_nothing_indexed_is_empty(self, client):
        """An empty index yields an empty context string."""
        response = client.post("/rag/retrieve", json={"query": "anything"})

        assert response.status_code == 200
        assert response.json() == {"context": ""}

    def test_retrieve_rejects_zero_top_k(self, client):
        """top_k must be at least one."""
        response = client.post("/rag/retrieve", json={"query": "q", "top_k": 0})

        assert response.status_code == 422

    def test_clear_empties_index(self, client):
        """Clear should drop all chunks."""
        client.post("/rag/index", json={"content": "Dogs are great pets."})

        response = client.post("/rag/clear")

        assert response.json() == {"cleared": True}
        assert client.post("/rag/retrieve", json={"query": "q"}).json() == {
            "context": ""
        }

    def test_prompt_wraps_context(self, client):
        """The prompt route should return context and a system prompt."""
        client.post("/rag/index", json={"content": "Dogs are great pets."})

        data = client.post("/rag/prompt", json={"query": "pets?"}).json()

        assert data["context"] == "Dogs are great pets."
        assert "Dogs are great pets." in data["system_prompt"]

    def test_index_requires_content(self, client):
        """A body without content should fail validation."""
        response = client.post("/rag/index", json={})

        assert response.status_code == 422


class TestEmbeddingErrors:
    """Embedding failures should map to one JSON error string."""

    @pytest.mark.parametrize(
        ("error", "status_code", "kind"),
        [
            (
                EmbeddingConnectionError("refused", provider="llama-server"),
                503,
                "embedding_unavailable",
            ),
            (
                EmbeddingTimeoutError("timed out", provider="llama-server"),
                504,
                "embedding_timeout",
            ),
            (
                EmbeddingStatusError(
                    "llama-server failed with status 500: boom",
                    status_code=500,
                    body="boom",
                    provider="llama-server",
                ),
                502,
                "embedding_upstream_error",
            ),
            (
                EmbeddingResponseError("bad shape", provider="llama-server"),
                502,
                "embedding_malformed_response",
            ),
        ],
    )
    def test_index_failure_maps_to_status(
        self, client, embeddings, error, status_code, kind
    ):
        """Each error family should have its own status and kind."""
        embeddings.embed = AsyncMock(side_effect=error)

        response = client.post("/rag/index", json={"content": "text"})

        assert response.status_code == status_code
        assert response.json() == {"error": kind, "details": str(error)}

    def test_failed_index_leaves_store_unchanged(self, client, embeddings):
        """A failed index command should not add anything."""
        embeddings.embed = AsyncMock(
            side_effect=EmbeddingConnectionError("refused", provider="llama-server")
        )

        client.post("/rag/index", json={"content": "text"})

        assert client.get("/health").json()["indexed_chunks"] == 0

    def test_retrieve_failure_is_reported(self, client, embeddings):
        """A failing query embedding should be reported, not swallowed."""
        embeddings.embed = AsyncMock(
            side_effect=EmbeddingConnectionError("refused", provider="llama-server")
        )

        response = client.post("/rag/retrieve", json={"query": "q"})

        assert response.status_code == 503
        assert response.json()["error"] == "embedding_unavailable"
