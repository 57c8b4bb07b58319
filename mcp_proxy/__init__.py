"""
MCP REST Proxy

Discovers the tools of one or more MCP servers and exposes them through a
single HTTP surface. See server.py for the entrypoint.
"""

from .base import BackendCapability, ToolDescriptor
from .exporter import export_all, generate_id
from .params import parse_tool_selector, resolve_body_arguments, resolve_query_arguments
from .registry import ToolRegistry, discover_backends
from .router import InvocationFailure, InvocationRouter, InvocationSuccess

__all__ = [
    "BackendCapability",
    "ToolDescriptor",
    "ToolRegistry",
    "discover_backends",
    "parse_tool_selector",
    "resolve_query_arguments",
    "resolve_body_arguments",
    "InvocationRouter",
    "InvocationSuccess",
    "InvocationFailure",
    "export_all",
    "generate_id",
]
