# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from typing import Literal
from uuid import uuid4

from mcp.server.fastmcp import FastMCP
from mcp.types import TextContent

from infprep_sandbox.config import SandboxConfig
from infprep_sandbox.exceptions import NotFoundError
from infprep_sandbox.mcp import ProblemEditorMCP
from infprep_sandbox.models import ExecutionResult, ToolCall, UserContext
from infprep_sandbox.utils.logger import setup_logging

config = SandboxConfig()

# Initialize Editor Logic
editor = ProblemEditorMCP(config)

# Initialize MCP Server
mcp = FastMCP("infprep-sandbox")


def _context() -> UserContext:
    """The MCP transport is local and single-user; the principal comes from config."""
    return UserContext(sub=config.default_owner)


def _render(result: ExecutionResult) -> list[TextContent]:
    output = [TextContent(type="text", text=f"LOG:\n{entry}") for entry in result.logs]
    if result.output:
        output.append(TextContent(type="text", text=f"OUTPUT:\n{result.output}"))
    if result.error:
        output.append(TextContent(type="text", text=f"ERROR:\n{result.error}"))
    output.append(TextContent(type="text", text=f"Duration: {result.execution_time_ms:.2f}ms"))
    return output


async def _call(session_id: str, name: str, arguments: dict[str, object]) -> str:
    call = ToolCall(id=uuid4().hex, name=name, arguments=arguments)
    try:
        result = await editor.call_tool(session_id, _context(), call)
    except (PermissionError, ValueError) as e:
        return f"ERROR: {e!s}"
    return result.output


@mcp.tool()  # type: ignore[misc]
async def execute_code(code: str, timeout_ms: float | None = None) -> list[TextContent]:
    """
    Run code as the body of a function receiving `console`.
    Returns captured console entries, the rendered return value, and any error.
    """
    try:
        result = await editor.execute_code(code, timeout_ms)
    except ValueError as e:
        return [TextContent(type="text", text=f"Error executing code: {e!s}")]
    return _render(result)


@mcp.tool()  # type: ignore[misc]
async def run_problem(session_id: str) -> list[TextContent]:
    """
    Run the session's problem generator and return the problem text.
    """
    try:
        result = await editor.run_code(session_id, _context())
    except (PermissionError, ValueError) as e:
        return [TextContent(type="text", text=f"Error running problem: {e!s}")]
    return _render(result)


@mcp.tool()  # type: ignore[misc]
async def read_file(session_id: str) -> str:
    """
    Read the current problem code before editing it.
    """
    return await _call(session_id, "read_file", {})


@mcp.tool()  # type: ignore[misc]
async def replace_string_in_file(session_id: str, old_string: str, new_string: str) -> str:
    """
    Replace every occurrence of an exact string in the problem code.
    """
    return await _call(session_id, "replace_string_in_file", {"old_string": old_string, "new_string": new_string})


@mcp.tool()  # type: ignore[misc]
async def update_problem_code(session_id: str, old_code: str, new_code: str) -> str:
    """
    Replace the first occurrence of an exact code snippet in the problem code.
    """
    return await _call(session_id, "update_problem_code", {"old_code": old_code, "new_code": new_code})


@mcp.tool()  # type: ignore[misc]
async def patch_code(
    session_id: str, target: str, replacement: str, mode: Literal["before", "after", "replace"]
) -> str:
    """
    Insert text before or after the first occurrence of a target snippet, or replace it.
    """
    return await _call(session_id, "patch_code", {"target": target, "replacement": replacement, "mode": mode})


@mcp.tool()  # type: ignore[misc]
async def load_problem(session_id: str, problem_id: str) -> str:
    """
    Load a stored problem into the session's editor buffer.
    """
    try:
        problem = await editor.load_problem(session_id, _context(), problem_id)
    except (NotFoundError, PermissionError, ValueError) as e:
        return f"Error loading problem: {e!s}"
    return f"Loaded {problem.display_name}."


@mcp.tool()  # type: ignore[misc]
async def save_problem(session_id: str) -> str:
    """
    Save the session's editor buffer back to its problem.
    """
    try:
        problem = await editor.save_problem(session_id, _context())
    except (NotFoundError, PermissionError, ValueError) as e:
        return f"Error saving problem: {e!s}"
    return f"Saved {problem.display_name}."


@mcp.tool()  # type: ignore[misc]
async def chat(session_id: str, message: str, model: str | None = None) -> str:
    """
    Ask the assistant to work on the session's problem. `model` picks one of the configured models.
    """
    try:
        reply = await editor.chat(session_id, _context(), message, model)
    except (PermissionError, ValueError) as e:
        return f"Error contacting assistant: {e!s}"
    return reply.text


@mcp.tool()  # type: ignore[misc]
async def list_sources() -> str:
    """
    List the problem sources, ordered by name.
    """
    sources = await editor.list_sources()
    if not sources:
        return "No sources."
    return "\n".join(f"{source.id}: {source.name}" for source in sources)


@mcp.tool()  # type: ignore[misc]
async def create_source(name: str) -> str:
    """
    Add a problem source. An existing source with the same name is returned instead.
    """
    try:
        source = await editor.create_source(name)
    except ValueError as e:
        return f"Error creating source: {e!s}"
    return f"{source.id}: {source.name}"


def main() -> None:
    """Entry point for the MCP server."""
    setup_logging(config.log_level, config.log_dir)
    mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
