from .fetchers import get_fetcher, register_fetcher, unregister_fetcher
from .registry import DEFAULT_SOURCES, SourceConfig, SourceRegistry, load_source_configs

__all__ = [
    "DEFAULT_SOURCES", "SourceConfig", "SourceRegistry", "load_source_configs",
    "get_fetcher", "register_fetcher", "unregister_fetcher",
]
