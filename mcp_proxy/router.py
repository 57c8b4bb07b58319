"""
Invocation Router

Looks up the owning backend of a tool, delegates the call and normalizes
the outcome. Failures are returned, not raised, so every caller sees the
same two shapes.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .base import (
    BackendInvocationFailure,
    BackendUnavailable,
    ProxyError,
    ToolNotFound,
)
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class InvocationSuccess:
    result: Any
    tool: str
    backend: str
    elapsed_ms: int

    success = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "result": self.result,
            "tool": self.tool,
            "backend": self.backend,
            "executionTime": self.elapsed_ms,
        }


@dataclass
class InvocationFailure:
    message: str
    elapsed_ms: Optional[int] = None
    error: Optional[ProxyError] = None

    success = False

    def to_dict(self) -> Dict[str, Any]:
        # Message only: failure kinds are not exposed to callers.
        return {"error": self.message}


InvocationResult = Union[InvocationSuccess, InvocationFailure]


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


class InvocationRouter:
    """Routes tool calls to the backend bound in the registry."""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def invoke(self, tool_name: str, arguments: Dict[str, Any]) -> InvocationResult:
        """
        Execute a tool by name with already-resolved arguments.

        Arguments are passed to the backend verbatim; schema `required` and
        `type` fields are descriptive only.
        """
        entry = self.registry.lookup(tool_name)
        if entry is None:
            logger.error(f"Tool not found: {tool_name}")
            error = ToolNotFound(f"Tool '{tool_name}' not found", tool_name=tool_name)
            return InvocationFailure(message=error.message, error=error)

        backend = self.registry.get_backend(entry.backend_name)
        if backend is None or not backend.connected:
            logger.error(f"MCP server not connected: {entry.backend_name}")
            error = BackendUnavailable(
                f"MCP server '{entry.backend_name}' not connected",
                tool_name=tool_name,
            )
            return InvocationFailure(message=error.message, error=error)

        logger.info(
            f"Executing tool: {tool_name} "
            f"(server: {entry.backend_name}, args: {len(arguments)} parameters)"
        )
        start_time = time.monotonic()

        try:
            result = await backend.invoke(entry.descriptor.name, arguments)
        except Exception as e:
            elapsed = _elapsed_ms(start_time)
            logger.error(f"Tool execution failed: {tool_name} - error after {elapsed}ms: {e}")
            error = BackendInvocationFailure(
                f"Tool execution failed: {e}",
                tool_name=tool_name,
                details={"backend": entry.backend_name},
            )
            return InvocationFailure(message=error.message, elapsed_ms=elapsed, error=error)

        elapsed = _elapsed_ms(start_time)
        logger.info(f"Tool executed successfully: {tool_name} - completed in {elapsed}ms")
        return InvocationSuccess(
            result=result,
            tool=tool_name,
            backend=entry.backend_name,
            elapsed_ms=elapsed,
        )
