from skilldeploy.adapters.claude import ClaudeAdapter
from skilldeploy.adapters.codex import CodexAdapter
from skilldeploy.adapters.protocol import Adapter, Destination, InstallRoots
from skilldeploy.adapters.registry import ADAPTERS, available_adapters, get_adapter

__all__ = [
    "ADAPTERS",
    "Adapter",
    "ClaudeAdapter",
    "CodexAdapter",
    "Destination",
    "InstallRoots",
    "available_adapters",
    "get_adapter",
]
