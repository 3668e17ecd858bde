"""Lifecycle supervisor for the llama-server child process."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum

import structlog

from src.infrastructure.llama_server.arguments import (
    LlamaServerConfig,
    build_server_args,
)
from src.infrastructure.llama_server.exceptions import (
    LlamaServerSpawnError,
    LlamaServerStopError,
)
from src.infrastructure.llama_server.health import LlamaServerHealthChecker
from src.infrastructure.observability import traced

logger = structlog.get_logger()

# Raised from the default 64 KiB so long model-loading lines do not overrun
STDERR_LINE_LIMIT = 1024 * 1024


class ServerState(str, Enum):
    """Supervisor view of the backend process."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


@dataclass
class LlamaServerStatus:
    """Snapshot of the tracked llama-server process."""

    state: ServerState
    pid: int | None = None
    returncode: int | None = None
    args: list[str] = field(default_factory=list)


class LlamaServerSupervisor:
    """Owns the single llama-server child process.

    Start always tears down the tracked process before spawning a new one,
    so at most one backend is ever considered live. Start and stop hold the
    handle lock for their whole duration.
    """

    def __init__(
        self,
        *,
        binary: str = "llama-server",
        stop_timeout_seconds: float = 5.0,
        health_checker: LlamaServerHealthChecker | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            binary: Path or name of the llama-server executable.
            stop_timeout_seconds: How long to wait for a killed process to exit.
            health_checker: Readiness poller for the spawned server.
        """
        self._binary = binary
        self._stop_timeout = stop_timeout_seconds
        self._health = health_checker or LlamaServerHealthChecker()
        self._lock = asyncio.Lock()
        self._process: asyncio.subprocess.Process | None = None
        self._args: list[str] = []
        self._state = ServerState.STOPPED
        self._drain_tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ServerState:
        """Current state; a process that exited on its own reads as stopped."""
        if self._process is not None and self._process.returncode is not None:
            return ServerState.STOPPED
        return self._state

    @property
    def pid(self) -> int | None:
        """PID of the tracked process, if any."""
        return self._process.pid if self._process is not None else None

    @property
    def is_running(self) -> bool:
        """True while a tracked process has not exited."""
        return self.state is ServerState.RUNNING

    def status(self) -> LlamaServerStatus:
        """Return a snapshot of the tracked process."""
        process = self._process
        return LlamaServerStatus(
            state=self.state,
            pid=process.pid if process is not None else None,
            returncode=process.returncode if process is not None else None,
            args=list(self._args),
        )

    @traced(span_name="llama_server.start")
    async def start(self, config: LlamaServerConfig) -> LlamaServerStatus:
        """Replace any running backend with a new one built from config.

        Returns as soon as the process is spawned; use wait_until_ready to
        block until the model has loaded.

        Raises:
            LlamaServerStopError: If the previous process could not be killed.
            LlamaServerSpawnError: If the new process could not be spawned.
        """
        args = build_server_args(config)

        async with self._lock:
            await self._stop_locked()

            self._state = ServerState.STARTING
            logger.info(
                "llama_server_starting",
                binary=self._binary,
                args=" ".join(args),
            )

            try:
                process = await asyncio.create_subprocess_exec(
                    self._binary,
                    *args,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                    limit=STDERR_LINE_LIMIT,
                )
            except OSError as e:
                self._state = ServerState.STOPPED
                logger.error(
                    "llama_server_spawn_failed",
                    binary=self._binary,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise LlamaServerSpawnError(
                    f"Failed to spawn {self._binary}: {e}",
                    binary=self._binary,
                ) from e

            self._process = process
            self._args = args
            self._state = ServerState.RUNNING

            task = asyncio.create_task(
                self._drain_stderr(process),
                name=f"llama-server-stderr-{process.pid}",
            )
            self._drain_tasks.add(task)
            task.add_done_callback(self._drain_tasks.discard)

            logger.info("llama_server_started", pid=process.pid)
            return self.status()

    @traced(span_name="llama_server.stop")
    async def stop(self) -> bool:
        """Kill the tracked process, if any.

        Returns:
            True if a process was stopped, False if nothing was running.

        Raises:
            LlamaServerStopError: If the process could not be killed.
        """
        async with self._lock:
            return await self._stop_locked()

    async def wait_until_ready(
        self,
        *,
        timeout_seconds: float = 60.0,
        interval_seconds: float = 1.0,
    ) -> bool:
        """Poll the backend health endpoint until it reports ok.

        Returns False straight away when no process is running, and stops
        polling as soon as the process exits.
        """
        if not self.is_running:
            return False
        return await self._health.wait_until_ready(
            timeout_seconds=timeout_seconds,
            interval_seconds=interval_seconds,
            is_alive=lambda: self.is_running,
        )

    async def close(self) -> None:
        """Stop the backend, drain its output and close the health client."""
        try:
            await self.stop()
        finally:
            await self._finish_drain_tasks()
            await self._health.close()

    async def _finish_drain_tasks(self) -> None:
        """Wait up to the stop timeout for stderr drains, then cancel the rest."""
        tasks = set(self._drain_tasks)
        if not tasks:
            return

        _, pending = await asyncio.wait(tasks, timeout=self._stop_timeout)
        if pending:
            logger.warning("llama_server_stderr_drain_cancelled", count=len(pending))
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    async def _stop_locked(self) -> bool:
        """Clear the handle and kill its process. Caller holds the lock."""
        process = self._process
        if process is None:
            return False

        self._process = None
        self._args = []
        self._state = ServerState.STOPPED
        logger.info("llama_server_stopping", pid=process.pid)

        try:
            process.kill()
        except ProcessLookupError:
            logger.debug("llama_server_already_exited", pid=process.pid)
        except OSError as e:
            logger.error("llama_server_kill_failed", pid=process.pid, error=str(e))
            raise LlamaServerStopError(
                f"Failed to kill {self._binary} (pid {process.pid}): {e}",
                binary=self._binary,
            ) from e

        try:
            returncode = await asyncio.wait_for(process.wait(), self._stop_timeout)
        except TimeoutError:
            logger.warning(
                "llama_server_stop_timeout",
                pid=process.pid,
                timeout_seconds=self._stop_timeout,
            )
        else:
            logger.info("llama_server_stopped", pid=process.pid, returncode=returncode)

        return True

    async def _drain_stderr(self, process: asyncio.subprocess.Process) -> None:
        """Forward stderr lines to the log until the stream closes."""
        stream = process.stderr
        if stream is not None:
            while True:
                try:
                    raw = await stream.readline()
                except ValueError:
                    logger.warning("llama_server_stderr_line_too_long", pid=process.pid)
                    continue
                if not raw:
                    break
                logger.info(
                    "llama_server_stderr",
                    origin="llama-server",
                    pid=process.pid,
                    line=raw.decode("utf-8", errors="replace"),
                )

        returncode = await process.wait()
        logger.info("llama_server_exited", pid=process.pid, returncode=returncode)
