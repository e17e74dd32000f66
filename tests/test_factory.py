# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from infprep_sandbox.config import SandboxConfig
from infprep_sandbox.factory import SandboxFactory
from infprep_sandbox.runtime import SandboxRuntime
from infprep_sandbox.runtimes import SubprocessRuntime, ThreadRuntime


def test_factory_returns_process_runtime() -> None:
    config = SandboxConfig(runtime="process", allowed_modules={"math"}, max_output_bytes=1024)

    runtime = SandboxFactory.get_runtime(config)

    assert isinstance(runtime, SubprocessRuntime)
    assert isinstance(runtime, SandboxRuntime)
    assert runtime.allowed_modules == frozenset({"math"})
    assert runtime.max_output_bytes == 1024


def test_factory_returns_thread_runtime() -> None:
    config = SandboxConfig(runtime="thread", allowed_modules={"random"})

    runtime = SandboxFactory.get_runtime(config)

    assert isinstance(runtime, ThreadRuntime)
    assert runtime.allowed_modules == frozenset({"random"})
