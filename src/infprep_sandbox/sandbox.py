# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from functools import cache

import anyio
from loguru import logger

from infprep_sandbox.config import SandboxConfig
from infprep_sandbox.factory import SandboxFactory
from infprep_sandbox.models import ExecutionResult
from infprep_sandbox.prompts import GENERATOR_TAIL
from infprep_sandbox.runtime import SandboxRuntime
from infprep_sandbox.utils.audit import AuditLogger


class SandboxAsync:
    """Async-native Sandbox Service (The Core).

    Stateless between runs: every call to ``execute`` is independent and only
    configuration is shared.
    """

    def __init__(self, config: SandboxConfig | None = None, runtime: SandboxRuntime | None = None):
        """Initializes the SandboxAsync service.

        Args:
            config: Configuration for the sandbox.
            runtime: Optional runtime override. Defaults to the configured one.
        """
        self.config = config or SandboxConfig()
        self.runtime: SandboxRuntime = runtime or SandboxFactory.get_runtime(self.config)
        self.audit = AuditLogger(enabled=self.config.enable_audit_logging)

    async def execute(self, code: str, timeout_ms: float | None = None) -> ExecutionResult:
        """Executes a generator body in the sandbox.

        Args:
            code: The code to run as the body of a function receiving ``console``.
            timeout_ms: Wall-clock bound in milliseconds. Defaults to the configured timeout.

        Returns:
            ExecutionResult: The result of the execution. Failures of the executed
            code (syntax errors, exceptions, timeouts) are reported in ``error``.

        Raises:
            ValueError: If ``timeout_ms`` is not positive.
        """
        if timeout_ms is None:
            timeout_ms = self.config.execution_timeout_ms
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")

        code_hash = self.audit.log_pre_execution(code)
        result = await self.runtime.execute(code, timeout_ms)
        logger.info(
            "Sandbox execution finished",
            code_hash=code_hash,
            succeeded=result.succeeded,
            log_entries=len(result.logs),
            execution_time_ms=result.execution_time_ms,
        )
        return result

    async def evaluate_expression(self, expression: str, timeout_ms: float | None = None) -> ExecutionResult:
        """Evaluates a single expression and returns its rendered value."""
        return await self.execute(f"return ({expression})", timeout_ms)

    async def run_generator(
        self, code: str, tail: str = GENERATOR_TAIL, timeout_ms: float | None = None
    ) -> ExecutionResult:
        """Runs problem code followed by the tail that invokes the generator.

        Args:
            code: The problem code, typically defining ``generate_problem``.
            tail: Code appended after ``code``; its return value becomes the output.
            timeout_ms: Optional timeout override.
        """
        return await self.execute(code + tail, timeout_ms)


class Sandbox:
    """Sync Facade for SandboxAsync (The Facade).

    Wraps SandboxAsync and executes methods via anyio.run.
    """

    def __init__(self, config: SandboxConfig | None = None, runtime: SandboxRuntime | None = None):
        self._async = SandboxAsync(config, runtime)

    @property
    def config(self) -> SandboxConfig:
        return self._async.config

    def execute(self, code: str, timeout_ms: float | None = None) -> ExecutionResult:
        """Executes a generator body synchronously. See ``SandboxAsync.execute``."""
        return anyio.run(self._async.execute, code, timeout_ms)

    def evaluate_expression(self, expression: str, timeout_ms: float | None = None) -> ExecutionResult:
        return anyio.run(self._async.evaluate_expression, expression, timeout_ms)

    def run_generator(self, code: str, tail: str = GENERATOR_TAIL, timeout_ms: float | None = None) -> ExecutionResult:
        return anyio.run(self._async.run_generator, code, tail, timeout_ms)


@cache
def default_sandbox() -> SandboxAsync:
    """Process-wide sandbox built from environment configuration."""
    return SandboxAsync()
