# models/article.py

"""
Article data models.
"""

from typing import Optional

from pydantic import BaseModel, Field


class RawContentItem(BaseModel):
    """One harvested list entry before normalization."""

    title: str = ""
    link: str = ""
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    published_at: Optional[str] = Field(None, description="Raw date string")
    content: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return bool(self.title.strip()) and bool(self.link.strip())


class ContentResult(BaseModel):
    """Body preview returned by fetch_content, with an optional image."""

    content: Optional[str] = None
    thumbnail_url: Optional[str] = None


class CrawledArticle(BaseModel):
    """A harvested item resolved into persistence-ready form."""

    id: str = Field(..., description="Identifier derived from the link")
    source_id: str
    source_name: str
    url: str
    title: str
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    published_at: Optional[str] = Field(None, description="ISO-8601 timestamp")
    content_preview: Optional[str] = None
