# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

import json
import subprocess
import sys
import time
from typing import Any, Iterable

import anyio
from anyio.abc import ByteReceiveStream, Process
from anyio.streams.buffered import BufferedByteReceiveStream
from loguru import logger

from infprep_sandbox import evaluation
from infprep_sandbox.evaluation import TIMEOUT_MESSAGE
from infprep_sandbox.exceptions import SandboxError
from infprep_sandbox.models import ExecutionResult
from infprep_sandbox.runtime import SandboxRuntime, elapsed_ms

WORKER_SCRIPT = evaluation.__file__
STDERR_TAIL = 2000


class SubprocessRuntime(SandboxRuntime):
    """Subprocess implementation of the SandboxRuntime.

    Every run gets a fresh isolated interpreter (``python -I``) executing the
    evaluation worker. Console entries stream back as JSON lines, so entries
    written before a timeout are kept, and the child is killed when the timer
    fires.
    """

    def __init__(
        self,
        allowed_modules: Iterable[str] = (),
        max_output_bytes: int = 16 * 1024 * 1024,
        python: str | None = None,
    ):
        """Initializes the SubprocessRuntime.

        Args:
            allowed_modules: Top-level modules the generator body may import.
            max_output_bytes: Upper bound for a single protocol line from the worker.
            python: Interpreter used for the worker. Defaults to the current one.
        """
        self.allowed_modules = frozenset(allowed_modules)
        self.max_output_bytes = max_output_bytes
        self.python = python or sys.executable

    async def execute(self, code: str, timeout_ms: float) -> ExecutionResult:
        """Run a generator body in a child interpreter under a preemptive timeout."""
        logs: list[str] = []
        result: dict[str, Any] | None = None
        error: str | None = None
        start = time.perf_counter()

        process = await anyio.open_process(
            [self.python, "-I", WORKER_SCRIPT],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        try:
            with anyio.fail_after(timeout_ms / 1000):
                result = await self._converse(process, code, logs)
                await process.wait()
        except TimeoutError:
            logger.warning(f"Execution timed out after {timeout_ms}ms; killing worker {process.pid}")
            error = TIMEOUT_MESSAGE
        except anyio.DelimiterNotFound:
            error = f"Sandbox output exceeded {self.max_output_bytes} bytes"
        except SandboxError as e:
            logger.error(str(e))
            error = str(e)
        finally:
            with anyio.CancelScope(shield=True):
                if process.returncode is None:
                    process.kill()
                    await process.wait()

        if error is None and result is None:
            stderr = await self._drain(process.stderr)
            error = f"Sandbox worker exited unexpectedly with code {process.returncode}"
            if stderr:
                error = f"{error}: {stderr[-STDERR_TAIL:]}"
            logger.error(error)

        with anyio.CancelScope(shield=True):
            await process.aclose()

        if result is not None and error is None:
            return ExecutionResult(
                output=result.get("output") or "",
                error=result.get("error"),
                logs=logs,
                execution_time_ms=elapsed_ms(start),
            )
        return ExecutionResult(output="", error=error, logs=logs, execution_time_ms=elapsed_ms(start))

    async def _converse(self, process: Process, code: str, logs: list[str]) -> dict[str, Any] | None:
        """Send the request, then collect log events until the result arrives."""
        assert process.stdin is not None and process.stdout is not None
        request = {"code": code, "allowed_modules": sorted(self.allowed_modules)}
        try:
            await process.stdin.send(json.dumps(request).encode("utf-8"))
            await process.stdin.aclose()
        except (anyio.BrokenResourceError, OSError):
            return None

        stream = BufferedByteReceiveStream(process.stdout)
        while True:
            try:
                line = await stream.receive_until(b"\n", self.max_output_bytes)
            except anyio.IncompleteRead:
                return None
            if len(line) > self.max_output_bytes:
                raise anyio.DelimiterNotFound(self.max_output_bytes)

            try:
                event = json.loads(line)
                kind = event["type"]
                if kind == "log":
                    logs.append(str(event["entry"]))
                elif kind == "result":
                    if not isinstance(event.get("output") or "", str):
                        raise TypeError("output must be a string")
                    if not isinstance(event.get("error") or "", str):
                        raise TypeError("error must be a string")
                    return event
            except (ValueError, KeyError, TypeError) as e:
                raise SandboxError(f"Malformed message from sandbox worker: {line[:200]!r}") from e

    @staticmethod
    async def _drain(stream: ByteReceiveStream | None) -> str:
        if stream is None:
            return ""
        chunks: list[bytes] = []
        try:
            async for chunk in stream:
                chunks.append(chunk)
        except anyio.ClosedResourceError:
            pass
        return b"".join(chunks).decode("utf-8", errors="replace").strip()
