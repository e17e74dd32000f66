# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

import pytest

from infprep_sandbox.evaluation import TIMEOUT_MESSAGE
from infprep_sandbox.models import ExecutionResult
from infprep_sandbox.runtimes.thread import ThreadRuntime


@pytest.mark.asyncio
async def test_thread_runtime_execute() -> None:
    runtime = ThreadRuntime(allowed_modules={"math"})

    result = await runtime.execute('import math\nconsole.log("pi")\nreturn round(math.pi, 2)', 5000)

    assert isinstance(result, ExecutionResult)
    assert result.output == "3.14"
    assert result.error is None
    assert result.logs == ["pi"]
    assert result.execution_time_ms >= 0


@pytest.mark.asyncio
async def test_thread_runtime_timeout_keeps_partial_logs() -> None:
    runtime = ThreadRuntime()
    # Finite but slow: the abandoned thread finishes on its own after the test.
    code = 'console.log("start")\ntotal = 0\nfor i in range(20_000_000):\n    total += i\nreturn total'

    result = await runtime.execute(code, 200)

    assert result.error == TIMEOUT_MESSAGE
    assert result.output == ""
    assert result.logs == ["start"]
    assert result.execution_time_ms > 0


@pytest.mark.asyncio
async def test_thread_runtime_runs_are_independent() -> None:
    runtime = ThreadRuntime()

    first = await runtime.execute("counter = 1\nreturn counter", 5000)
    second = await runtime.execute("return counter", 5000)

    assert first.output == "1"
    assert second.error == "name 'counter' is not defined"


@pytest.mark.asyncio
async def test_thread_runtime_contains_base_exception() -> None:
    runtime = ThreadRuntime()

    result = await runtime.execute('console.log("a")\nraise Exception.__base__("boom")', 5000)

    assert result.error == "boom"
    assert result.output == ""
    assert result.logs == ["a"]
