from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
from collections.abc import Callable
from pathlib import Path

from desktop_monitor.log_setup import TRACE

logger = logging.getLogger(__name__)

READ_SIZE = 4096
STREAM_LIMIT = 2 ** 16
# How long readers may keep draining once the helper has been reaped
EXIT_DRAIN_TIMEOUT = 0.5


class LaunchFailure(Exception):
    """Raised when the helper executable cannot be started."""

    def __init__(self, path: str, os_error: OSError) -> None:
        super().__init__(f"Failed to launch helper {path}: {os_error}")
        self.path = path
        self.os_error = os_error


def describe_exit(code: int) -> str:
    """Render an exit code, naming the signal for negative codes."""
    if code >= 0:
        return f"code {code}"
    try:
        return f"signal {signal.Signals(-code).name}"
    except ValueError:
        return f"signal {-code}"


class _HelperProtocol(asyncio.subprocess.SubprocessStreamProtocol):
    """Stream protocol that also signals the moment the child is reaped.

    ``Process.wait()`` only resolves once every pipe is closed, which never
    happens while a grandchild keeps the helper's stdout open.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__(limit=STREAM_LIMIT, loop=loop)
        self.exited = asyncio.Event()

    def process_exited(self) -> None:
        super().process_exited()
        self.exited.set()


class HelperProcess:
    """Async handle on a running helper executable.

    Spawns the helper with stdout and stderr piped and stdin closed, then
    services three independent listeners on the event loop: a stdout reader,
    a stderr reader and an exit watcher. Each stream has a single reader, so
    handlers see its text in the order it was written. The exit handler runs
    once, after the process is reaped and its pipes are drained; no handler
    is called after it.

    The process is never restarted and has no timeout; it runs until it
    exits or the caller terminates it.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        args: list[str] | tuple[str, ...] = (),
        on_output: Callable[[str], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        on_exit: Callable[[int], None] | None = None,
    ) -> None:
        """Initialize a HelperProcess without spawning it.

        Args:
            path: Filesystem path to the helper executable.
            args: Extra command-line arguments (the desktop helper takes none).
            on_output: Called with each decoded stdout chunk.
            on_error: Called with each decoded stderr chunk.
            on_exit: Called once with the exit code; negative values are
                 the number of the signal that killed the process.
        """
        self._path = str(path)
        self._args = list(args)
        self._on_output = on_output
        self._on_error = on_error
        self._on_exit = on_exit
        self._process: asyncio.subprocess.Process | None = None
        self._transport: asyncio.SubprocessTransport | None = None
        self._tasks: list[asyncio.Task] = []
        self._exited = False
        self._done = asyncio.Event()

    @property
    def name(self) -> str:
        """Executable name without directory or extension, used in logs."""
        return Path(self._path).stem

    @property
    def pid(self) -> int | None:
        """OS process id, or None before the helper is started."""
        return self._process.pid if self._process is not None else None

    async def start(self) -> None:
        """Spawn the helper and begin servicing its streams.

        Returns as soon as the process exists; output is delivered later
        from background tasks.

        Raises:
            LaunchFailure: If the executable is missing, not executable,
                or the OS refuses to create the process.
            RuntimeError: If this handle was already started.
        """
        if self._process is not None:
            raise RuntimeError(f"{self.name} already started (pid={self._process.pid})")
        logger.debug("Spawning helper: path=%s args=%s", self._path, self._args)
        loop = asyncio.get_running_loop()
        try:
            transport, protocol = await loop.subprocess_exec(
                lambda: _HelperProtocol(loop),
                self._path,
                *self._args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("Could not launch %s: %s", self._path, exc)
            raise LaunchFailure(self._path, exc) from exc
        self._transport = transport
        self._process = asyncio.subprocess.Process(transport, protocol, loop)
        logger.debug("Helper spawned pid=%d", self._process.pid)

        stdout_task = asyncio.create_task(
            self._pump(self._process.stdout, self._on_output, "stdout"),
            name=f"{self.name}-stdout",
        )
        stderr_task = asyncio.create_task(
            self._pump(self._process.stderr, self._handle_stderr, "stderr"),
            name=f"{self.name}-stderr",
        )
        exit_task = asyncio.create_task(
            self._watch_exit(protocol.exited, stdout_task, stderr_task),
            name=f"{self.name}-exit",
        )
        self._tasks = [stdout_task, stderr_task, exit_task]

    async def _pump(
        self,
        stream: asyncio.StreamReader,
        handler: Callable[[str], None] | None,
        label: str,
    ) -> None:
        """Read a pipe until EOF, passing decoded text to handler.

        An incremental decoder keeps multibyte UTF-8 sequences intact when
        a read boundary falls inside one.
        """
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await stream.read(READ_SIZE)
            if not data:
                tail = decoder.decode(b"", final=True)
                if tail:
                    self._dispatch(handler, tail, label)
                logger.debug("%s %s reached EOF", self.name, label)
                return
            logger.log(TRACE, "%s %s read len=%d", self.name, label, len(data))
            text = decoder.decode(data)
            if text:
                self._dispatch(handler, text, label)

    def _dispatch(self, handler: Callable[[str], None] | None, text: str, label: str) -> None:
        if handler is None or self._exited:
            return
        try:
            handler(text)
        except Exception:
            logger.exception("%s handler for %s raised", label, self.name)

    def _handle_stderr(self, text: str) -> None:
        logger.warning("[%s error] %s", self.name, text.rstrip("\r\n"))
        if self._on_error is not None:
            self._on_error(text)

    async def _watch_exit(self, exited: asyncio.Event, *readers: asyncio.Task) -> None:
        """Report the exit once the child is reaped and its output drained.

        Readers get ``EXIT_DRAIN_TIMEOUT`` seconds to deliver what the helper
        wrote before exiting. Pipes still open after that belong to a
        process the helper left behind; they are closed unread.
        """
        await exited.wait()
        code = self._process.returncode
        done, pending = await asyncio.wait(readers, timeout=EXIT_DRAIN_TIMEOUT)
        for reader in pending:
            logger.debug("%s still open after exit, closing", reader.get_name())
            reader.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self._transport.close()
        for reader in done:
            if reader.exception() is not None:
                logger.error("%s failed: %r", reader.get_name(), reader.exception())
        self._exited = True
        logger.info("[%s exited with %s]", self.name, describe_exit(code))
        try:
            if self._on_exit is not None:
                self._on_exit(code)
        except Exception:
            logger.exception("exit handler for %s raised", self.name)
        finally:
            self._done.set()

    def is_alive(self) -> bool:
        """Check whether the helper has been started and has not exited."""
        if self._process is None:
            return False
        return self._process.returncode is None

    @property
    def returncode(self) -> int | None:
        """Exit code, negated signal number, or None before exit or start."""
        if self._process is None:
            return None
        return self._process.returncode

    def exit_code(self) -> int | None:
        """Return the exit code, negative signal number, or None while running."""
        return self.returncode

    def terminate(self) -> None:
        """Ask the helper to exit. The exit handler fires as for a normal exit."""
        self._send(self._process.terminate if self._process else None, "terminate")

    def kill(self) -> None:
        """Kill the helper outright. The exit handler still fires once."""
        self._send(self._process.kill if self._process else None, "kill")

    def _send(self, action: Callable[[], None] | None, label: str) -> None:
        if action is None or not self.is_alive():
            return
        logger.debug("Sending %s to %s pid=%d", label, self.name, self._process.pid)
        try:
            action()
        except ProcessLookupError:
            # Exited between the liveness check and the signal
            pass

    async def wait(self) -> int:
        """Wait until the exit notification has been delivered.

        Returns:
            The exit code, or the negated signal number.

        Raises:
            RuntimeError: If the helper was never started.
        """
        if self._process is None:
            raise RuntimeError(f"{self.name} was never started")
        await self._done.wait()
        return self._process.returncode

    async def stop(self, timeout: float = 5.0) -> int | None:
        """Terminate the helper, killing it if it outlives ``timeout`` seconds.

        Does nothing and returns None if the helper was never started.
        """
        if self._process is None:
            return None
        self.terminate()
        try:
            return await asyncio.wait_for(self.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning("%s ignored terminate for %.1fs, killing", self.name, timeout)
            self.kill()
            return await self.wait()
