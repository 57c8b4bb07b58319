"""
MCP Proxy Base Classes

Tool descriptors, the backend capability interface, and the error hierarchy
shared by the registry, the resolver and the router.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolParameter:
    """One declared property of a tool's input schema."""
    name: str
    type: Optional[str] = None
    required: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class ToolDescriptor:
    """Canonical representation of one backend tool."""
    name: str
    description: Optional[str] = None
    input_schema: Dict[str, Any] = field(default_factory=dict)

    @property
    def parameters(self) -> List[ToolParameter]:
        """
        Schema properties in declared order.

        Boolean (`true`/`false`) or otherwise non-object property schemas
        carry no type or description.
        """
        schema = self.input_schema if isinstance(self.input_schema, dict) else {}
        properties = schema.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        required = schema.get("required")
        if not isinstance(required, list):
            required = []

        params = []
        for param_name, param_schema in properties.items():
            if not isinstance(param_schema, dict):
                param_schema = {}
            params.append(ToolParameter(
                name=param_name,
                type=param_schema.get("type"),
                required=param_name in required,
                description=param_schema.get("description"),
            ))
        return params


class ProxyError(Exception):
    """Base exception for proxy errors."""
    def __init__(self, message: str, tool_name: str = None, details: Dict = None):
        self.message = message
        self.tool_name = tool_name
        self.details = details or {}
        super().__init__(self.message)


class MissingToolName(ProxyError):
    """Raised when no tool name can be extracted from a selector."""
    def __init__(self, message: str = "Tool name is required as query parameter"):
        super().__init__(message)


class ToolNotFound(ProxyError):
    """No registry entry exists for the requested tool."""
    pass


class BackendUnavailable(ProxyError):
    """The tool is registered but its backend handle is missing or disconnected."""
    pass


class BackendInvocationFailure(ProxyError):
    """The backend executed the tool and reported an error."""
    pass


class BackendError(Exception):
    """Raised by backend implementations when a call or connection fails."""
    pass


class SettingsError(Exception):
    """Raised when the backend settings document cannot be used."""
    pass


class BackendCapability(ABC):
    """
    Abstract connection to one tool-providing backend.

    Implementations must provide:
    - list_tools(): the backend's tool descriptors, in listing order
    - invoke(): execute a named tool with an argument mapping
    """

    @property
    def connected(self) -> bool:
        """Whether the backend can currently accept invocations."""
        return True

    async def connect(self) -> None:
        """Establish the backend session. No-op for in-process backends."""
        return None

    async def close(self) -> None:
        """Release the backend session. No-op for in-process backends."""
        return None

    @abstractmethod
    async def list_tools(self) -> List[ToolDescriptor]:
        """Return every tool the backend advertises."""
        pass

    @abstractmethod
    async def invoke(self, tool_name: str, arguments: Dict[str, Any]) -> Any:
        """
        Execute a tool and return its raw result content.
        Raises BackendError (or any exception) on failure.
        """
        pass
