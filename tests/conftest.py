# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from typing import Any

import pytest

from infprep_sandbox.agent import ModelTurn
from infprep_sandbox.config import SandboxConfig
from infprep_sandbox.models import ToolCall, UserContext
from infprep_sandbox.sandbox import SandboxAsync


class ScriptedModel:
    """ChatModel double that replays canned turns and records what it was sent."""

    def __init__(self, turns: list[ModelTurn], repeat_last: bool = False):
        self.turns = list(turns)
        self.repeat_last = repeat_last
        self.calls: list[tuple[list[dict[str, Any]], list[dict[str, Any]]]] = []

    async def complete(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> ModelTurn:
        self.calls.append((list(messages), tools))
        if self.repeat_last and len(self.turns) == 1:
            return self.turns[0]
        return self.turns.pop(0)


def tool_turn(*calls: tuple[str, str, dict[str, Any]], text: str = "") -> ModelTurn:
    return ModelTurn(text=text, tool_calls=[ToolCall(id=i, name=n, arguments=a) for i, n, a in calls])


@pytest.fixture
def mock_user_context() -> UserContext:
    return UserContext(sub="test-user", email="test@example.com", permissions=["tester"])


@pytest.fixture
def thread_config() -> SandboxConfig:
    return SandboxConfig(runtime="thread", enable_audit_logging=False)


@pytest.fixture
def thread_sandbox(thread_config: SandboxConfig) -> SandboxAsync:
    return SandboxAsync(thread_config)


@pytest.fixture
def process_sandbox() -> SandboxAsync:
    return SandboxAsync(SandboxConfig(runtime="process", enable_audit_logging=False))
