"""
Shared fixtures: an in-memory backend standing in for an MCP server.
"""

from typing import Any, Dict, List, Optional

import pytest

from mcp_proxy.base import BackendCapability, BackendError, ToolDescriptor
from mcp_proxy.registry import ToolRegistry


class FakeBackend(BackendCapability):
    """Backend that serves fixed tools and records every invocation."""

    def __init__(
        self,
        tools: List[ToolDescriptor],
        result: Any = None,
        error: Optional[str] = None,
        fail_connect: bool = False,
    ):
        self.tools = tools
        self.result = result if result is not None else [{"type": "text", "text": "ok"}]
        self.error = error
        self.fail_connect = fail_connect
        self.is_connected = False
        self.closed = False
        self.calls: List[tuple] = []

    @property
    def connected(self) -> bool:
        return self.is_connected

    async def connect(self) -> None:
        if self.fail_connect:
            raise BackendError("spawn failed")
        self.is_connected = True

    async def close(self) -> None:
        self.closed = True
        self.is_connected = False

    async def list_tools(self) -> List[ToolDescriptor]:
        return list(self.tools)

    async def invoke(self, tool_name: str, arguments: Dict[str, Any]) -> Any:
        self.calls.append((tool_name, dict(arguments)))
        if self.error:
            raise BackendError(self.error)
        return self.result


def make_tool(name: str, description: str = None, /, **properties) -> ToolDescriptor:
    """Build a descriptor; keyword arguments become schema properties."""
    schema: Dict[str, Any] = {"type": "object", "properties": dict(properties)}
    return ToolDescriptor(name=name, description=description, input_schema=schema)


@pytest.fixture
def read_file_tool() -> ToolDescriptor:
    return ToolDescriptor(
        name="read_file",
        description="Read a file from disk",
        input_schema={
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "File path"},
                "limit": {"type": "integer"},
            },
            "required": ["path"],
        },
    )


@pytest.fixture
def files_backend(read_file_tool) -> FakeBackend:
    backend = FakeBackend([read_file_tool, make_tool("list_files")])
    backend.is_connected = True
    return backend


@pytest.fixture
def registry(files_backend) -> ToolRegistry:
    """Registry with the files backend bound and its tools registered."""
    reg = ToolRegistry()
    reg.bind_backend("files", files_backend)
    for tool in files_backend.tools:
        reg.register("files", tool)
    return reg
