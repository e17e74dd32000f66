# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

"""Data models for the tool-call protocol used by the editing assistant."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr

ERROR_PREFIX = "ERROR: "
SUCCESS_PREFIX = "SUCCESS: "


class PatchMode(str, Enum):
    """Where a positional patch places its replacement relative to the target."""

    BEFORE = "before"
    AFTER = "after"
    REPLACE = "replace"


class PatchTarget(BaseModel):
    """A located substring plus the edit to apply around it."""

    target: StrictStr
    replacement: StrictStr
    mode: PatchMode


class ToolCall(BaseModel):
    """A request from the assistant naming one operation and its arguments.

    ``arguments`` is kept as received: a dict for well-formed calls, or the raw
    payload when the model produced something that is not a JSON object.
    """

    id: str
    name: str
    arguments: Any = Field(default_factory=dict)


class ToolResult(BaseModel):
    """The single string answer to a ToolCall, correlated by call id."""

    model_config = ConfigDict(frozen=True)

    call_id: str
    name: str
    output: str

    @property
    def is_error(self) -> bool:
        return self.output.startswith(ERROR_PREFIX)


class ReadFileArgs(BaseModel):
    """read_file takes no arguments."""


class ReplaceStringArgs(BaseModel):
    old_string: StrictStr = Field(..., description="The exact string to replace. Every occurrence is replaced.")
    new_string: StrictStr = Field(..., description="The new string to replace it with.")


class UpdateProblemCodeArgs(BaseModel):
    old_code: StrictStr = Field(
        ..., description="The exact code snippet to replace. Only the first occurrence changes."
    )
    new_code: StrictStr = Field(..., description="The code that replaces the snippet.")


class PatchCodeArgs(BaseModel):
    target: StrictStr = Field(..., description="Exact snippet used as the anchor; the first occurrence is used.")
    replacement: StrictStr = Field(..., description="Text to insert or to put in place of the target.")
    mode: Literal["before", "after", "replace"] = Field(
        ...,
        description="'before' inserts on a line above the target, 'after' on a line below, 'replace' swaps it.",
    )

    def to_target(self) -> PatchTarget:
        return PatchTarget(target=self.target, replacement=self.replacement, mode=PatchMode(self.mode))
