"""Asynchronous runner for Python scripts following the stdin/stdout JSON contract."""
from __future__ import annotations

import asyncio
import contextlib
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from app.logging import get_logger

from .exceptions import (
    InvocationTimeoutError,
    NonZeroExitError,
    OutputTooLargeError,
    PayloadEncodingError,
    ProcessLaunchError,
)

_READ_CHUNK_SIZE = 64 * 1024

NO_PAYLOAD: Any = object()
"""Marker for requests that write nothing to stdin (``None`` is sent as ``null``)."""

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class InvocationRequest:
    """Everything needed to launch a single interpreter process."""

    script: str
    inline: bool = True
    payload: Any = NO_PAYLOAD
    args: tuple[str, ...] = ()
    spawn_options: Mapping[str, Any] = field(default_factory=dict)
    fallback_key: str = "output"

    def command(self, executable: str) -> list[str]:
        """Return the argv used to launch *executable* for this request."""

        if self.inline:
            return [executable, "-c", self.script, *self.args]
        return [executable, self.script, *self.args]


def encode_payload(payload: Any) -> bytes:
    """Serialize *payload* for stdin.

    Strings are passed through unchanged, :data:`NO_PAYLOAD` writes nothing and
    every other value, ``None`` included, is JSON encoded.
    """

    if payload is NO_PAYLOAD:
        return b""
    if isinstance(payload, str):
        return payload.encode("utf-8")
    try:
        return json.dumps(payload).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PayloadEncodingError(exc) from exc


def parse_output(stdout: str, fallback_key: str = "output") -> Any:
    """Parse *stdout* as JSON, degrading to ``{fallback_key: text}``."""

    try:
        return json.loads(stdout)
    except json.JSONDecodeError:
        logger.info("invoker.output.fallback", fallback_key=fallback_key, size=len(stdout))
        return {fallback_key: stdout.strip()}


@dataclass(slots=True)
class ProcessInvoker:
    """Run one interpreter process per call and classify its outcome.

    ``timeout`` bounds the wall-clock time of a call and ``max_output_bytes``
    bounds each captured stream; ``None`` disables either limit.
    """

    executable: str = sys.executable
    timeout: float | None = None
    max_output_bytes: int | None = None

    async def invoke(self, request: InvocationRequest) -> Any:
        """Launch *request* and resolve to its parsed stdout."""

        command = request.command(self.executable)
        stdin_data = encode_payload(request.payload)
        spawn_kwargs: dict[str, Any] = {
            "stdin": asyncio.subprocess.PIPE,
            "stdout": asyncio.subprocess.PIPE,
            "stderr": asyncio.subprocess.PIPE,
        }
        spawn_kwargs.update(request.spawn_options)
        try:
            process = await asyncio.create_subprocess_exec(  # noqa: S603 - controlled command
                *command, **spawn_kwargs
            )
        except (OSError, ValueError, TypeError) as exc:
            logger.error(
                "invoker.process.launch_failed",
                executable=self.executable,
                error=str(exc),
            )
            raise ProcessLaunchError(self.executable, exc) from exc

        logger.info(
            "invoker.process.spawned",
            pid=process.pid,
            mode="inline" if request.inline else "script",
            script=None if request.inline else request.script,
            args=list(request.args),
            payload_bytes=len(stdin_data),
        )

        try:
            stdout_data, stderr_data = await asyncio.wait_for(
                self._communicate(process, stdin_data), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            await _kill(process)
            logger.warning("invoker.process.timeout", pid=process.pid, timeout=self.timeout)
            raise InvocationTimeoutError(self.timeout) from exc
        except OutputTooLargeError as exc:
            await _kill(process)
            logger.warning(
                "invoker.process.output_too_large",
                pid=process.pid,
                stream=exc.stream,
                limit=exc.limit,
            )
            raise
        except BaseException:
            await _kill(process)
            raise

        exit_code = process.returncode
        stdout = stdout_data.decode("utf-8", errors="replace")
        stderr = stderr_data.decode("utf-8", errors="replace")
        logger.info(
            "invoker.process.exited",
            pid=process.pid,
            exit_code=exit_code,
            stdout_bytes=len(stdout_data),
            stderr_bytes=len(stderr_data),
        )
        if exit_code != 0:
            raise NonZeroExitError(exit_code, stderr, stdout)
        return parse_output(stdout, request.fallback_key)

    async def run_inline(
        self,
        code: str,
        payload: Any = NO_PAYLOAD,
        *,
        args: Sequence[str] = (),
        fallback_key: str = "output",
        **spawn_options: Any,
    ) -> Any:
        """Run *code* through ``-c`` writing *payload* to its stdin."""

        request = InvocationRequest(
            script=code,
            inline=True,
            payload=payload,
            args=tuple(args),
            spawn_options=spawn_options,
            fallback_key=fallback_key,
        )
        return await self.invoke(request)

    async def run_script(
        self,
        path: str,
        *args: str,
        payload: Any = NO_PAYLOAD,
        fallback_key: str = "output",
        **spawn_options: Any,
    ) -> Any:
        """Run the script stored at *path* with positional *args*."""

        request = InvocationRequest(
            script=path,
            inline=False,
            payload=payload,
            args=tuple(args),
            spawn_options=spawn_options,
            fallback_key=fallback_key,
        )
        return await self.invoke(request)

    async def _communicate(
        self, process: asyncio.subprocess.Process, stdin_data: bytes
    ) -> tuple[bytes, bytes]:
        tasks = [
            asyncio.ensure_future(_feed(process.stdin, stdin_data)),
            asyncio.ensure_future(self._collect(process.stdout, "stdout")),
            asyncio.ensure_future(self._collect(process.stderr, "stderr")),
        ]
        try:
            _, stdout_data, stderr_data = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        # Both streams hit EOF; the exit status is final once the process is reaped.
        await process.wait()
        return stdout_data, stderr_data

    async def _collect(self, stream: asyncio.StreamReader | None, name: str) -> bytes:
        buffer = bytearray()
        if stream is None:
            # Redirected by the caller's spawn options; nothing to capture.
            return b""
        while True:
            chunk = await stream.read(_READ_CHUNK_SIZE)
            if not chunk:
                return bytes(buffer)
            buffer.extend(chunk)
            if self.max_output_bytes is not None and len(buffer) > self.max_output_bytes:
                raise OutputTooLargeError(name, self.max_output_bytes)


async def _feed(stream: asyncio.StreamWriter | None, data: bytes) -> None:
    if stream is None:
        return
    try:
        if data:
            stream.write(data)
            await stream.drain()
    except (BrokenPipeError, ConnectionResetError):
        # The child exited without reading stdin; its exit status decides the outcome.
        logger.debug("invoker.stdin.closed_early")
    finally:
        stream.close()


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()


__all__ = [
    "NO_PAYLOAD",
    "InvocationRequest",
    "ProcessInvoker",
    "encode_payload",
    "parse_output",
]
