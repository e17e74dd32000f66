# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

import time
from typing import Iterable

import anyio
from loguru import logger

from infprep_sandbox.evaluation import TIMEOUT_MESSAGE, ConsoleCapture, evaluate
from infprep_sandbox.models import ExecutionResult
from infprep_sandbox.runtime import SandboxRuntime, elapsed_ms


class ThreadRuntime(SandboxRuntime):
    """In-process implementation of the SandboxRuntime.

    The generator runs in a worker thread while the caller races it against a
    timer. On timeout the caller stops waiting, but the thread is abandoned, not
    stopped: a body that never returns keeps a thread busy until the process
    exits. Use SubprocessRuntime when the bound has to be preemptive.
    """

    def __init__(self, allowed_modules: Iterable[str] = ()):
        """Initializes the ThreadRuntime.

        Args:
            allowed_modules: Top-level modules the generator body may import.
        """
        self.allowed_modules = frozenset(allowed_modules)

    async def execute(self, code: str, timeout_ms: float) -> ExecutionResult:
        """Run a generator body in a worker thread under a cooperative timeout."""
        console = ConsoleCapture()
        output, error = "", None
        start = time.perf_counter()
        try:
            with anyio.fail_after(timeout_ms / 1000):
                output, error = await anyio.to_thread.run_sync(
                    evaluate, code, console, self.allowed_modules, abandon_on_cancel=True
                )
        except TimeoutError:
            logger.warning(f"Execution timed out after {timeout_ms}ms; abandoning worker thread")
            error = TIMEOUT_MESSAGE

        return ExecutionResult(
            output=output,
            error=error,
            logs=console.snapshot(),
            execution_time_ms=elapsed_ms(start),
        )
