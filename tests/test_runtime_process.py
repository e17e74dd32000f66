# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from pathlib import Path

import pytest

from infprep_sandbox.evaluation import TIMEOUT_MESSAGE
from infprep_sandbox.runtimes.process import SubprocessRuntime


@pytest.mark.asyncio
async def test_process_runtime_execute() -> None:
    runtime = SubprocessRuntime(allowed_modules={"fractions"})
    code = """
from fractions import Fraction
console.log("half")
print("printed")
return {"answer": str(Fraction(1, 2) + Fraction(1, 3))}
"""

    result = await runtime.execute(code, 10_000)

    assert result.error is None
    assert result.logs == ["half", "printed"]
    assert result.output == '{\n  "answer": "5/6"\n}'


@pytest.mark.asyncio
async def test_process_runtime_reports_raised_errors() -> None:
    runtime = SubprocessRuntime()

    result = await runtime.execute('console.warn("w")\nraise KeyError("missing")', 10_000)

    assert result.output == ""
    assert result.error == "'missing'"
    assert result.logs == ["WARNING: w"]


@pytest.mark.asyncio
async def test_process_runtime_preempts_infinite_loop() -> None:
    runtime = SubprocessRuntime()

    result = await runtime.execute('console.log("start")\nwhile True:\n    pass', 3000)

    assert result.error == TIMEOUT_MESSAGE
    assert result.logs == ["start"]
    assert result.output == ""


@pytest.mark.asyncio
async def test_process_runtime_blocks_imports_outside_allow_list() -> None:
    runtime = SubprocessRuntime(allowed_modules={"math"})

    result = await runtime.execute("import subprocess", 10_000)

    assert result.error == "Import of 'subprocess' is not allowed in the sandbox"


@pytest.mark.asyncio
async def test_process_runtime_worker_crash(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    script = tmp_path / "crash.py"
    script.write_text("import sys\nsys.stderr.write('worker exploded')\nsys.exit(3)\n")
    monkeypatch.setattr("infprep_sandbox.runtimes.process.WORKER_SCRIPT", str(script))

    result = await SubprocessRuntime().execute("return 1", 10_000)

    assert result.error is not None
    assert result.error.startswith("Sandbox worker exited unexpectedly with code 3")
    assert "worker exploded" in result.error


@pytest.mark.asyncio
async def test_process_runtime_output_limit() -> None:
    runtime = SubprocessRuntime(max_output_bytes=64)

    result = await runtime.execute('console.log("x" * 1000)', 10_000)

    assert result.error == "Sandbox output exceeded 64 bytes"


@pytest.mark.asyncio
async def test_process_runtime_contains_base_exception() -> None:
    runtime = SubprocessRuntime()

    result = await runtime.execute('console.log("a")\nraise Exception.__base__("boom")', 10_000)

    assert result.error == "boom"
    assert result.output == ""
    assert result.logs == ["a"]


@pytest.mark.asyncio
async def test_process_runtime_reports_corrupted_protocol_channel() -> None:
    runtime = SubprocessRuntime()
    code = """
console.log("a")
channel = console.log.__func__.__globals__["protocol_channel"]
channel.write("garbage\\n")
channel.flush()
return 1
"""

    result = await runtime.execute(code, 10_000)

    assert result.error == "Malformed message from sandbox worker: b'garbage'"
    assert result.output == ""
    assert result.logs == ["a"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "line",
    ['{"kind": "log"}', "[1, 2]", '{"type": "result", "output": 5, "error": null}'],
)
async def test_process_runtime_rejects_unexpected_events(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, line: str
) -> None:
    script = tmp_path / "worker.py"
    script.write_text(f"import sys\nsys.stdin.read()\nprint({line!r})\n")
    monkeypatch.setattr("infprep_sandbox.runtimes.process.WORKER_SCRIPT", str(script))

    result = await SubprocessRuntime().execute("return 1", 10_000)

    assert result.error is not None
    assert result.error.startswith("Malformed message from sandbox worker")
