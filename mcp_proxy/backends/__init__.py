"""Backend transports implementing BackendCapability."""

from typing import Dict

from ..base import BackendCapability
from ..config import BackendSettings
from .stdio import StdioBackend


def build_backends(settings: BackendSettings) -> Dict[str, BackendCapability]:
    """Create one (not yet connected) backend per configured server, in order."""
    return {
        name: StdioBackend(name, config)
        for name, config in settings.mcpServers.items()
    }


__all__ = ["StdioBackend", "build_backends"]
