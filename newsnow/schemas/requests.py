from typing import List, Optional

from pydantic import BaseModel, Field


class EntireRequest(BaseModel):
    """Batch lookup of cached sources"""
    sources: Optional[List[str]] = Field(default=None, description="Source ids to read from cache")
