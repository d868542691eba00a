"""
Known news sources and their refresh intervals.

Intervals are in milliseconds: a cached batch younger than its source's
interval is served as fresh.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from ..exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

MINUTE = 60 * 1000


class SourceConfig(BaseModel):
    """Per-source configuration"""
    name: str
    interval: int = Field(default=10 * MINUTE, gt=0, description="Max age in ms still considered fresh")
    home: Optional[str] = None
    disabled: bool = False


DEFAULT_SOURCES: Dict[str, SourceConfig] = {
    "hackernews": SourceConfig(name="Hacker News", interval=30 * MINUTE, home="https://news.ycombinator.com"),
    "producthunt": SourceConfig(name="Product Hunt", interval=30 * MINUTE, home="https://www.producthunt.com"),
    "github-trending-today": SourceConfig(name="GitHub Trending", interval=30 * MINUTE, home="https://github.com/trending"),
    "v2ex-share": SourceConfig(name="V2EX", interval=10 * MINUTE, home="https://v2ex.com"),
    "ithome": SourceConfig(name="IT之家", interval=10 * MINUTE, home="https://www.ithome.com"),
    "zhihu": SourceConfig(name="知乎", interval=10 * MINUTE, home="https://www.zhihu.com"),
    "weibo": SourceConfig(name="微博", interval=2 * MINUTE, home="https://weibo.com"),
    "wallstreetcn-quick": SourceConfig(name="华尔街见闻", interval=5 * MINUTE, home="https://wallstreetcn.com"),
    "cls-telegraph": SourceConfig(name="财联社", interval=5 * MINUTE, home="https://www.cls.cn"),
    "solidot": SourceConfig(name="Solidot", interval=60 * MINUTE, home="https://www.solidot.org"),
}


class SourceRegistry:
    """Lookup of enabled sources by id."""

    def __init__(self, sources: Optional[Dict[str, SourceConfig]] = None):
        configs = DEFAULT_SOURCES if sources is None else sources
        self._sources = {k: v for k, v in configs.items() if not v.disabled}

    def __contains__(self, source_id: str) -> bool:
        return source_id in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def get(self, source_id: str) -> Optional[SourceConfig]:
        return self._sources.get(source_id)

    def ids(self) -> List[str]:
        return list(self._sources)

    def known(self, source_ids: Iterable[str]) -> List[str]:
        """Keep only ids of enabled sources, dropping duplicates and unknown ids."""
        return [s for s in dict.fromkeys(source_ids) if s in self._sources]


def load_source_configs(path: Optional[str] = None) -> Dict[str, SourceConfig]:
    """Built-in sources, with entries from a JSON file merged on top."""
    sources = dict(DEFAULT_SOURCES)
    if not path:
        return sources

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Could not read sources file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Sources file {path} must contain a JSON object")

    for source_id, entry in raw.items():
        try:
            base = sources[source_id].model_dump() if source_id in sources else {"name": source_id}
            sources[source_id] = SourceConfig(**{**base, **entry})
        except (TypeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid config for source {source_id}: {e}") from e

    logger.info("sources_loaded", path=path, total=len(sources))
    return sources
