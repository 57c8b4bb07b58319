"""
MCP Proxy Tool Registry

Single Source of Truth (SSOT) for the tool name -> backend mapping.
Populated once at startup by discover_backends(); read-only afterwards.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .base import BackendCapability, ToolDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    """A tool bound to exactly one backend."""
    tool_name: str
    backend_name: str
    descriptor: ToolDescriptor


MergePolicy = Callable[[Optional[RegistryEntry], RegistryEntry], RegistryEntry]


def last_write_wins(existing: Optional[RegistryEntry], incoming: RegistryEntry) -> RegistryEntry:
    """Later registrations silently replace earlier ones with the same name."""
    return incoming


class ToolRegistry:
    """
    In-memory mapping from tool name to (backend, descriptor).

    Entries keep insertion order. Collisions go through a single merge
    policy so an alternative (reject, namespace-prefix) can be swapped in.
    """

    def __init__(self, merge_policy: MergePolicy = last_write_wins):
        self._entries: Dict[str, RegistryEntry] = {}
        self._backends: Dict[str, BackendCapability] = {}
        self._merge_policy = merge_policy
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tool_name: str) -> bool:
        return tool_name in self._entries

    def register(self, backend_name: str, descriptor: ToolDescriptor) -> RegistryEntry:
        incoming = RegistryEntry(descriptor.name, backend_name, descriptor)
        entry = self._merge_policy(self._entries.get(descriptor.name), incoming)
        self._entries[entry.tool_name] = entry
        return entry

    def lookup(self, tool_name: str) -> Optional[RegistryEntry]:
        return self._entries.get(tool_name)

    def list_all(self) -> List[RegistryEntry]:
        return list(self._entries.values())

    def tool_names(self) -> List[str]:
        return list(self._entries.keys())

    def bind_backend(self, backend_name: str, handle: BackendCapability) -> None:
        self._backends[backend_name] = handle

    def get_backend(self, backend_name: str) -> Optional[BackendCapability]:
        return self._backends.get(backend_name)

    def backend_names(self) -> List[str]:
        return list(self._backends.keys())

    async def add_backend(
        self,
        backend_name: str,
        handle: BackendCapability,
        tools: Iterable[ToolDescriptor],
    ) -> int:
        """Bind a backend and merge its tool list. Serialized across callers."""
        async with self._lock:
            self.bind_backend(backend_name, handle)
            count = 0
            for descriptor in tools:
                self.register(backend_name, descriptor)
                count += 1
        return count

    def log_summary(self) -> None:
        """Log the available tools grouped by backend."""
        if not self._entries:
            logger.warning("No tools available from connected MCP servers")
            return

        by_backend: Dict[str, List[RegistryEntry]] = {}
        for entry in self._entries.values():
            by_backend.setdefault(entry.backend_name, []).append(entry)

        logger.info("Available tools summary:")
        for backend_name, entries in by_backend.items():
            logger.info(f"Server: {backend_name} ({len(entries)} tools)")
            for entry in entries:
                logger.info(f"  - {entry.tool_name}")
                if entry.descriptor.description:
                    logger.info(f"      {entry.descriptor.description}")

                params = entry.descriptor.parameters
                if not params:
                    continue
                logger.info(f"      Parameters: {len(params)}")
                for param in params:
                    marker = " *required" if param.required else ""
                    logger.info(f"        {param.name} ({param.type or 'any'}){marker}")
                    if param.description:
                        logger.info(f"          {param.description}")

        logger.info(
            f"SUMMARY: {len(self._entries)} tools across "
            f"{len(self._backends)} connected servers"
        )


async def _connect_and_list(
    backend_name: str,
    backend: BackendCapability,
) -> Optional[Tuple[str, BackendCapability, List[ToolDescriptor]]]:
    try:
        logger.info(f"Connecting to MCP server: {backend_name}")
        await backend.connect()
        tools = await backend.list_tools()
    except Exception as e:
        logger.error(f"Failed to connect to MCP server {backend_name}: {e}")
        return None

    logger.info(f"Connected to {backend_name}: {len(tools)} tools discovered")
    return backend_name, backend, tools


async def discover_backends(
    backends: Dict[str, BackendCapability],
    registry: Optional[ToolRegistry] = None,
) -> ToolRegistry:
    """
    Connect every backend concurrently and merge their tools.

    A backend that fails to connect or list its tools is logged and
    skipped. Merges happen in the order of `backends`, so collisions
    resolve deterministically regardless of which connection finished first.
    """
    if registry is None:
        registry = ToolRegistry()

    logger.info(f"Found {len(backends)} MCP server(s) in configuration")

    results = await asyncio.gather(
        *(_connect_and_list(name, backend) for name, backend in backends.items())
    )

    for result in results:
        if result is None:
            continue
        backend_name, backend, tools = result
        await registry.add_backend(backend_name, backend, tools)

    logger.info(f"Tool discovery complete. Total tools: {len(registry)}")
    return registry
