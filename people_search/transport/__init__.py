"""Transport registry with lazy loading.

Usage:
    from people_search.transport import get_transport

    transport = get_transport("http", settings.api)
    body = await transport.search("python", limit=10, offset=0)
"""

from __future__ import annotations

import importlib

from people_search.core.config import ApiConfig
from people_search.transport.base import SearchTransport, TransportError

__all__ = ["SearchTransport", "TransportError", "available_transports", "get_transport"]

# Lazy registry: maps transport name -> (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "http": ("people_search.transport.http", "HttpSearchTransport"),
    "file": ("people_search.transport.file", "FileSearchTransport"),
}


def get_transport(name: str, config: ApiConfig) -> SearchTransport:
    """Instantiate a transport by name.

    Raises:
        ValueError: If the name is unknown, or "file" is requested without
            ``fixture_path``.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown transport '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)

    if name == "file":
        if not config.fixture_path:
            msg = "The 'file' transport requires api.fixture_path"
            raise ValueError(msg)
        return cls(config.fixture_path)  # type: ignore[no-any-return]
    return cls(config)  # type: ignore[no-any-return]


def available_transports() -> list[str]:
    """Return sorted list of registered transport names."""
    return sorted(_REGISTRY)
