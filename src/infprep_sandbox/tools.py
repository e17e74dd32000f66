# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

"""Tool catalog advertised to the editing assistant, and its dispatcher.

Every tool answers with a single string. Failures start with ``ERROR: `` and
leave the buffer untouched; the dispatcher never raises.
"""

from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger
from pydantic import BaseModel, ValidationError

from infprep_sandbox.exceptions import PatchApplicationError
from infprep_sandbox.models import (
    ERROR_PREFIX,
    SUCCESS_PREFIX,
    PatchCodeArgs,
    ReadFileArgs,
    ReplaceStringArgs,
    ToolCall,
    ToolResult,
    UpdateProblemCodeArgs,
)
from infprep_sandbox.patching import CodeBuffer, preview
from infprep_sandbox.utils.audit import AuditLogger

Handler = Callable[[CodeBuffer, Any, bool], str]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    arguments: type[BaseModel]
    handler: Handler

    def schema(self) -> dict[str, Any]:
        """OpenAI function-tool declaration."""
        parameters = self.arguments.model_json_schema()
        parameters.pop("title", None)
        parameters.pop("description", None)
        parameters.setdefault("properties", {})
        parameters["additionalProperties"] = False
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


def _read_file(buffer: CodeBuffer, args: ReadFileArgs, require_unique: bool) -> str:
    return buffer.read()


def _replace_string_in_file(buffer: CodeBuffer, args: ReplaceStringArgs, require_unique: bool) -> str:
    return buffer.replace_string(args.old_string, args.new_string)


def _update_problem_code(buffer: CodeBuffer, args: UpdateProblemCodeArgs, require_unique: bool) -> str:
    buffer.update_code(args.old_code, args.new_code, require_unique)
    return f"{SUCCESS_PREFIX}Problem code updated."


def _patch_code(buffer: CodeBuffer, args: PatchCodeArgs, require_unique: bool) -> str:
    buffer.patch(args.to_target(), require_unique)
    return f"{SUCCESS_PREFIX}Applied '{args.mode}' patch at target '{preview(args.target)}'."


TOOL_SPECS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name="read_file",
            description="Read the current problem code to understand its state before editing.",
            arguments=ReadFileArgs,
            handler=_read_file,
        ),
        ToolSpec(
            name="replace_string_in_file",
            description=(
                "Replace every occurrence of an exact string in the problem code. "
                "Returns the updated code."
            ),
            arguments=ReplaceStringArgs,
            handler=_replace_string_in_file,
        ),
        ToolSpec(
            name="update_problem_code",
            description="Replace the first occurrence of an exact code snippet in the problem code.",
            arguments=UpdateProblemCodeArgs,
            handler=_update_problem_code,
        ),
        ToolSpec(
            name="patch_code",
            description=(
                "Insert text on its own line before or after the first occurrence of a target snippet, "
                "or replace that occurrence."
            ),
            arguments=PatchCodeArgs,
            handler=_patch_code,
        ),
    )
}


def tool_catalog() -> list[dict[str, Any]]:
    return [spec.schema() for spec in TOOL_SPECS.values()]


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


class ToolDispatcher:
    """Applies assistant tool calls to one CodeBuffer.

    Calls are handled one at a time in the order they are dispatched; callers
    that share a buffer between tasks must hold a lock around ``dispatch``.
    """

    def __init__(
        self,
        buffer: CodeBuffer,
        require_unique_match: bool = False,
        audit: AuditLogger | None = None,
    ):
        self.buffer = buffer
        self.require_unique_match = require_unique_match
        self.audit = audit or AuditLogger()

    def catalog(self) -> list[dict[str, Any]]:
        return tool_catalog()

    def dispatch(self, call: ToolCall) -> ToolResult:
        """Validate and apply one tool call. Always returns a ToolResult."""
        output = self._apply(call)
        result = ToolResult(call_id=call.id, name=call.name, output=output)
        self.audit.log_tool_call(call.name, call.id, result.is_error)
        if result.is_error:
            logger.warning(f"Tool call {call.name} ({call.id}) failed: {output}")
        else:
            logger.info(f"Tool call {call.name} ({call.id}) applied, buffer revision {self.buffer.revision}")
        return result

    def _apply(self, call: ToolCall) -> str:
        spec = TOOL_SPECS.get(call.name)
        if spec is None:
            return f"{ERROR_PREFIX}Unknown tool '{call.name}'"
        if not isinstance(call.arguments, dict):
            return f"{ERROR_PREFIX}Invalid input structure"

        try:
            args = spec.arguments.model_validate(call.arguments)
        except ValidationError as e:
            return f"{ERROR_PREFIX}Invalid parameters: {_describe_validation_error(e)}"

        try:
            return spec.handler(self.buffer, args, self.require_unique_match)
        except PatchApplicationError as e:
            return f"{ERROR_PREFIX}{e}"
