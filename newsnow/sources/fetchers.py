"""
Registry of per-source fetchers.

Fetch and scrape implementations live outside the cache layer; they
register here so request handlers can refresh a stale source.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

Fetcher = Callable[[], Awaitable[List[Dict[str, Any]]]]

_fetchers: Dict[str, Fetcher] = {}


def register_fetcher(source_id: str) -> Callable[[Fetcher], Fetcher]:
    def decorator(func: Fetcher) -> Fetcher:
        _fetchers[source_id] = func
        return func
    return decorator


def get_fetcher(source_id: str) -> Optional[Fetcher]:
    return _fetchers.get(source_id)


def unregister_fetcher(source_id: str) -> None:
    _fetchers.pop(source_id, None)
