# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

import json
from typing import Any

from mcp.server.fastmcp import FastMCP

from coreason_executor.mcp import SandboxExecutorMCP
from coreason_executor.utils.errors import get_rich_error

# Initialize Executor Logic
executor = SandboxExecutorMCP()

# Initialize MCP Server
mcp = FastMCP("coreason-executor")


@mcp.tool()  # type: ignore[misc]
async def create_sandbox(timeout: int | None = None) -> str:
    """
    Create a new sandbox and return its id.
    """
    try:
        result = await executor.create_sandbox(timeout)
    except Exception as e:
        return get_rich_error("create sandbox", e, {"timeout": timeout}).message
    return json.dumps(result)


@mcp.tool()  # type: ignore[misc]
async def run_command(sandbox_id: str, command: str, args: list[str] | None = None, wait: bool = False) -> str:
    """
    Run a command in the sandbox.
    Returns the process id, or the finished result when wait is set.
    """
    try:
        result = await executor.run_command(sandbox_id, command, args, wait)
    except Exception as e:
        return get_rich_error(
            "run command in sandbox",
            e,
            {"sandbox_id": sandbox_id, "command": command, "args": args},
        ).message
    return json.dumps(result)


@mcp.tool()  # type: ignore[misc]
async def wait_for_command(sandbox_id: str, process_id: str) -> str:
    """
    Wait for a command to finish and return exit code, stdout and stderr.
    """
    try:
        result = await executor.wait_for_command(sandbox_id, process_id)
    except Exception as e:
        return get_rich_error(
            "wait for command", e, {"sandbox_id": sandbox_id, "process_id": process_id}
        ).message
    return json.dumps(result)


@mcp.tool()  # type: ignore[misc]
async def write_files(sandbox_id: str, files: list[dict[str, str]]) -> str:
    """
    Write files into the sandbox. Each file is {"path": ..., "content": ...}.
    """
    try:
        result = await executor.write_files(sandbox_id, files)
    except Exception as e:
        return get_rich_error("write files to sandbox", e, {"sandbox_id": sandbox_id, "files": files}).message
    return json.dumps(result)


@mcp.tool()  # type: ignore[misc]
async def read_file(sandbox_id: str, path: str) -> str:
    """
    Read a file from the sandbox.
    """
    try:
        return await executor.read_file(sandbox_id, path)
    except Exception as e:
        return get_rich_error("read file from sandbox", e, {"sandbox_id": sandbox_id, "path": path}).message


@mcp.tool()  # type: ignore[misc]
async def get_command(sandbox_id: str, process_id: str) -> str:
    """
    Get metadata about a command started in the sandbox.
    """
    try:
        info: dict[str, Any] | None = await executor.get_command(sandbox_id, process_id)
    except Exception as e:
        return get_rich_error("get command", e, {"sandbox_id": sandbox_id, "process_id": process_id}).message
    if info is None:
        return f"Command {process_id} not found in sandbox {sandbox_id}."
    return json.dumps(info)


@mcp.tool()  # type: ignore[misc]
async def get_command_logs(sandbox_id: str, process_id: str) -> str:
    """
    Get the output collected so far for a command, one JSON object per line.
    """
    try:
        logs = await executor.get_command_logs(sandbox_id, process_id)
    except Exception as e:
        return get_rich_error("get command logs", e, {"sandbox_id": sandbox_id, "process_id": process_id}).message
    return "\n".join(json.dumps(entry) for entry in logs)


@mcp.tool()  # type: ignore[misc]
async def follow_command_logs(sandbox_id: str, process_id: str) -> str:
    """
    Follow a command's output until it exits, one JSON object per line.
    """
    try:
        lines = [line async for line in executor.stream_logs_ndjson(sandbox_id, process_id)]
    except Exception as e:
        return get_rich_error("follow command logs", e, {"sandbox_id": sandbox_id, "process_id": process_id}).message
    return "".join(lines)


@mcp.tool()  # type: ignore[misc]
async def get_sandbox_status(sandbox_id: str) -> str:
    """
    Report whether the sandbox is running or stopped.
    """
    try:
        result = await executor.get_sandbox_status(sandbox_id)
    except Exception as e:
        return get_rich_error("get sandbox status", e, {"sandbox_id": sandbox_id}).message
    return json.dumps(result)


@mcp.tool()  # type: ignore[misc]
async def get_sandbox_url(sandbox_id: str, port: int) -> str:
    """
    Get the public URL of a port exposed by the sandbox.
    """
    try:
        result = await executor.get_sandbox_url(sandbox_id, port)
    except Exception as e:
        return get_rich_error("get sandbox url", e, {"sandbox_id": sandbox_id, "port": port}).message
    return json.dumps(result)


@mcp.tool()  # type: ignore[misc]
async def kill_sandbox(sandbox_id: str) -> str:
    """
    Shut down a sandbox.
    """
    try:
        return await executor.kill_sandbox(sandbox_id)
    except Exception as e:
        return get_rich_error("kill sandbox", e, {"sandbox_id": sandbox_id}).message


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
