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
infprep-sandbox
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import SandboxConfig
from .exceptions import NotFoundError, PatchApplicationError, SandboxError
from .factory import SandboxFactory
from .models import ExecutionResult, PatchMode, PatchTarget, ToolCall, ToolResult
from .patching import CodeBuffer
from .runtime import SandboxRuntime
from .runtimes import SubprocessRuntime, ThreadRuntime
from .sandbox import Sandbox, SandboxAsync, default_sandbox
from .tools import ToolDispatcher, tool_catalog

__all__ = [
    "CodeBuffer",
    "ExecutionResult",
    "NotFoundError",
    "PatchApplicationError",
    "PatchMode",
    "PatchTarget",
    "Sandbox",
    "SandboxAsync",
    "SandboxConfig",
    "SandboxError",
    "SandboxFactory",
    "SandboxRuntime",
    "SubprocessRuntime",
    "ThreadRuntime",
    "ToolCall",
    "ToolDispatcher",
    "ToolResult",
    "default_sandbox",
    "tool_catalog",
]
