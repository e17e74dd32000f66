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
from pydantic import ValidationError

from infprep_sandbox.models import (
    Difficulty,
    ExecutionResult,
    PatchCodeArgs,
    PatchMode,
    PatchTarget,
    Problem,
    ToolResult,
    UserContext,
)


def test_execution_result_creation() -> None:
    result = ExecutionResult(output="42", logs=["a"], execution_time_ms=1.5)

    assert result.output == "42"
    assert result.error is None
    assert result.logs == ["a"]
    assert result.succeeded


def test_execution_result_camel_case_dump() -> None:
    result = ExecutionResult(output="", error="boom", execution_time_ms=3.25)

    assert result.model_dump(by_alias=True) == {
        "output": "",
        "error": "boom",
        "logs": [],
        "executionTimeMs": 3.25,
    }
    assert ExecutionResult.model_validate({"executionTimeMs": 1.0}).execution_time_ms == 1.0
    assert not result.succeeded


def test_execution_result_is_frozen() -> None:
    result = ExecutionResult(output="1")

    with pytest.raises(ValidationError):
        result.output = "2"  # type: ignore[misc]


def test_execution_result_rejects_negative_duration() -> None:
    with pytest.raises(ValidationError):
        ExecutionResult(execution_time_ms=-1)


def test_tool_result_error_flag() -> None:
    assert ToolResult(call_id="1", name="read_file", output="ERROR: Unknown tool 'x'").is_error
    assert not ToolResult(call_id="1", name="read_file", output="# Empty file").is_error


def test_patch_args_convert_to_target() -> None:
    args = PatchCodeArgs(target="a", replacement="b", mode="replace")

    assert args.to_target() == PatchTarget(target="a", replacement="b", mode=PatchMode.REPLACE)


def test_patch_target_requires_strings() -> None:
    with pytest.raises(ValidationError) as excinfo:
        PatchTarget(target="a", replacement=None, mode="after")  # type: ignore[arg-type]
    assert "replacement" in str(excinfo.value)


def test_problem_defaults_and_display_name() -> None:
    problem = Problem(id="12", owner_id="u", topics=["b", " a ", "b"], difficulty="hard")  # type: ignore[arg-type]

    assert problem.display_name == "Problem #12"
    assert not problem.has_code
    assert problem.topics == ["a", "b"]
    assert problem.difficulty is Difficulty.HARD
    assert problem.created_at.tzinfo is not None


def test_user_context_requires_subject() -> None:
    with pytest.raises(ValidationError):
        UserContext(sub="")
