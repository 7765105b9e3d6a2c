from __future__ import annotations

from skilldeploy.adapters.claude import ClaudeAdapter
from skilldeploy.adapters.codex import CodexAdapter
from skilldeploy.adapters.protocol import Adapter
from skilldeploy.exceptions import AdapterLookupError

ADAPTERS: dict[str, Adapter] = {
    adapter.name: adapter for adapter in (CodexAdapter(), ClaudeAdapter())
}


def get_adapter(name: str) -> Adapter:
    try:
        return ADAPTERS[name]
    except KeyError:
        known = ", ".join(sorted(ADAPTERS))
        raise AdapterLookupError(
            f"Unknown adapter {name!r} (expected one of: {known})", adapter=name
        ) from None


def available_adapters() -> list[str]:
    return sorted(ADAPTERS)
