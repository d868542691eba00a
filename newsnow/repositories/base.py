"""
Backend-agnostic contracts for the cache and user tables.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class CacheRecord:
    """Latest cached batch for a single source."""
    id: str
    updated: int
    items: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class UserRecord:
    id: str
    email: Optional[str] = None
    data: Optional[str] = None
    type: Optional[str] = None
    created: Optional[int] = None
    updated: Optional[int] = None


def serialize_items(items: Sequence[Any]) -> str:
    return json.dumps(list(items), ensure_ascii=False, default=str)


def record_from_row(row: Dict[str, Any]) -> Optional[CacheRecord]:
    """Build a CacheRecord from a stored row; undecodable rows count as absent."""
    try:
        items = json.loads(row["data"])
        updated = int(row["updated"])
    except (TypeError, ValueError) as e:
        logger.warning("cache_row_undecodable", id=row.get("id"), error=str(e))
        return None
    return CacheRecord(id=row["id"], updated=updated, items=items)


class CacheStore(ABC):
    """Durable key -> latest batch storage.

    Reads never raise on backend failure, they degrade to a miss.
    Writes raise WriteError and deletes raise DeleteError.
    """

    @abstractmethod
    async def init(self) -> None:
        """Ensure the backing relation exists. Idempotent."""

    @abstractmethod
    async def set(self, id: str, items: Sequence[Any]) -> None:
        """Insert or fully replace the batch stored under ``id``."""

    @abstractmethod
    async def get(self, id: str) -> Optional[CacheRecord]:
        """Return the record for ``id`` or None."""

    @abstractmethod
    async def get_entire(self, ids: Sequence[str]) -> List[CacheRecord]:
        """Return records for the requested ids that exist, in no particular order."""

    @abstractmethod
    async def delete(self, id: str) -> None:
        """Remove the record for ``id`` if present."""


class UserStore(ABC):

    @abstractmethod
    async def init(self) -> None:
        pass

    @abstractmethod
    async def add_user(self, id: str, email: str, type: str) -> None:
        pass

    @abstractmethod
    async def get_user(self, id: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def set_data(self, id: str, data: str, updated: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def get_data(self, id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def delete_user(self, id: str) -> None:
        pass
