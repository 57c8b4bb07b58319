"""
Stdio MCP backend.

Spawns an MCP server process and talks to it through the `mcp` SDK client.
The SDK's stdio transport must be entered and exited from the same task, so
each backend owns one long-lived task that holds the session open until
close() is called.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from ..base import BackendCapability, BackendError, ToolDescriptor
from ..config import BackendConfig

logger = logging.getLogger(__name__)


def _content_text(content: List[Any]) -> str:
    texts = [getattr(item, "text", "") for item in content]
    return "\n".join(t for t in texts if t) or "Tool reported an error"


class StdioBackend(BackendCapability):
    """BackendCapability over an MCP server launched as a subprocess."""

    def __init__(self, name: str, config: BackendConfig):
        self.name = name
        self.config = config
        self._session: Optional[ClientSession] = None
        self._task: Optional[asyncio.Task] = None
        self._ready = asyncio.Event()
        self._closing = asyncio.Event()
        self._error: Optional[BaseException] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    def _server_parameters(self) -> StdioServerParameters:
        return StdioServerParameters(
            command=self.config.command,
            args=list(self.config.args),
            env=self.config.env,
        )

    async def _run(self) -> None:
        try:
            async with stdio_client(self._server_parameters()) as (read_stream, write_stream):
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    self._session = session
                    self._ready.set()
                    await self._closing.wait()
        except Exception as e:
            self._error = e
            if self._session is not None:
                logger.error(f"MCP server {self.name} session ended: {e}")
        finally:
            self._session = None
            self._ready.set()

    async def connect(self) -> None:
        if self._task is not None:
            return

        logger.info(f"Command: {self.config.command} {' '.join(self.config.args)}")
        self._task = asyncio.create_task(self._run(), name=f"mcp-backend-{self.name}")
        await self._ready.wait()

        if self._session is None:
            raise BackendError(f"Could not start MCP server {self.name}: {self._error}")

    async def close(self) -> None:
        if self._task is None:
            return
        self._closing.set()
        try:
            await self._task
        finally:
            self._task = None
        logger.info(f"Disconnected from MCP server: {self.name}")

    async def list_tools(self) -> List[ToolDescriptor]:
        session = self._require_session()
        response = await session.list_tools()
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description,
                input_schema=dict(tool.inputSchema or {}),
            )
            for tool in response.tools
        ]

    async def invoke(self, tool_name: str, arguments: Dict[str, Any]) -> Any:
        session = self._require_session()
        result = await session.call_tool(tool_name, arguments)

        if result.isError:
            raise BackendError(_content_text(result.content))

        return [
            item.model_dump(mode="json", by_alias=True, exclude_none=True)
            for item in result.content
        ]

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise BackendError(f"MCP server '{self.name}' not connected")
        return self._session
