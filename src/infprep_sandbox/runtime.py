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
from abc import ABC, abstractmethod

from infprep_sandbox.models import ExecutionResult


class SandboxRuntime(ABC):
    """
    Abstract base class for sandbox runtimes (in-process thread, subprocess).
    Follows the Strategy Pattern.
    """

    @abstractmethod
    async def execute(self, code: str, timeout_ms: float) -> ExecutionResult:
        """Run a generator body and capture its result.

        Wraps ``code`` as the body of a function taking the injected ``console``
        logger, invokes it, and reports output, error and logs.

        Args:
            code: The generator body to execute.
            timeout_ms: Wall-clock bound for the run, in milliseconds.

        Returns:
            ExecutionResult: The captured output, error, logs and duration.
            Failures of the executed code are reported in ``error``, never raised.
        """
        pass  # pragma: no cover


def elapsed_ms(start: float) -> float:
    """Milliseconds since ``start`` (a ``time.perf_counter()`` reading), two decimals."""
    return round((time.perf_counter() - start) * 1000, 2)
