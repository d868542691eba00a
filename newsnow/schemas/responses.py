"""Source API response schemas"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class NewsItem(BaseModel):
    """Item shape produced by fetchers. The cache stores items opaquely."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Union[str, int]
    title: str
    url: str
    mobile_url: Optional[str] = Field(default=None, alias="mobileUrl")
    pub_date: Optional[Union[int, str]] = Field(default=None, alias="pubDate")
    extra: Optional[Dict[str, Any]] = None


class SourceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success", "cache"]
    id: str
    updated_time: int = Field(alias="updatedTime")
    items: List[Dict[str, Any]] = []


class CachedSourceResponse(SourceResponse):
    """Entry of a batch cache lookup, stamped at read time"""
    status: Literal["cache"] = "cache"
    fresh: bool
