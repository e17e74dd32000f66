# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

"""
Data models for the sandbox, the patch protocol and the problem store.
"""

from .execution import ExecutionResult
from .identity import UserContext
from .problems import Difficulty, Problem, ProblemUpdate, Source, SourceReference, normalize_topics
from .tools import (
    ERROR_PREFIX,
    SUCCESS_PREFIX,
    PatchCodeArgs,
    PatchMode,
    PatchTarget,
    ReadFileArgs,
    ReplaceStringArgs,
    ToolCall,
    ToolResult,
    UpdateProblemCodeArgs,
)

__all__ = [
    "ERROR_PREFIX",
    "SUCCESS_PREFIX",
    "Difficulty",
    "ExecutionResult",
    "PatchCodeArgs",
    "PatchMode",
    "PatchTarget",
    "Problem",
    "ProblemUpdate",
    "ReadFileArgs",
    "ReplaceStringArgs",
    "Source",
    "SourceReference",
    "ToolCall",
    "ToolResult",
    "UpdateProblemCodeArgs",
    "UserContext",
    "normalize_topics",
]
