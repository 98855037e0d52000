# models/api.py

"""
Models describing JSON API crawl targets and auto-detected endpoints.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResponseMapping(BaseModel):
    """Dotted paths locating the item list and item fields in a response."""

    items: str = Field("data", description="Path to the array of items")
    title: str = Field("title", description="Item field holding the title")
    link: str = Field("url", description="Item field holding the link or slug")
    thumbnail: Optional[str] = Field(None, description="Item field for the image")
    author: Optional[str] = Field(None, description="Item field for the author")
    date: Optional[str] = Field("created_at", description="Item field for the date")
    content: Optional[str] = Field(None, description="Item field for the body")

    model_config = ConfigDict(frozen=True)


class UrlTransform(BaseModel):
    """Rules for turning relative item fields into absolute article links."""

    link_template: Optional[str] = Field(
        None, description="Template such as https://site/posts/{id}"
    )
    link_fields: List[str] = Field(
        default_factory=list, description="Item fields substituted into the template"
    )
    thumbnail_prefix: Optional[str] = Field(
        None, description="Prefix for relative thumbnail paths"
    )
    base_url: Optional[str] = Field(None, description="Base for relative links")

    model_config = ConfigDict(frozen=True)


class ApiPaginationType(str, Enum):
    """How the API pages through results."""

    OFFSET = "offset"
    PAGE = "page"
    CURSOR = "cursor"


class ApiPagination(BaseModel):
    """Pagination settings for API crawling."""

    type: ApiPaginationType = ApiPaginationType.PAGE
    param: str = Field("page", description="Query/body parameter carrying the page")
    limit_param: Optional[str] = Field("limit", description="Page size parameter")
    limit: int = Field(20, ge=1, le=500)
    max_pages: int = Field(3, ge=1, le=50)
    cursor_path: Optional[str] = Field(
        None, description="Response path holding the next cursor"
    )
    delay_ms: int = Field(500, ge=0)

    model_config = ConfigDict(frozen=True)


class APIConfig(BaseModel):
    """Complete description of an article-list API."""

    endpoint: str = Field(..., description="Absolute endpoint URL")
    method: str = Field("GET", description="HTTP method")
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Any] = Field(None, description="JSON body for POST requests")
    query_params: Dict[str, Any] = Field(default_factory=dict)
    response_mapping: ResponseMapping = Field(default_factory=ResponseMapping)
    pagination: Optional[ApiPagination] = None
    url_transform: Optional[UrlTransform] = None

    model_config = ConfigDict(frozen=True)


class CapturedRequest(BaseModel):
    """One JSON response captured while a page was loading."""

    url: str
    method: str = "GET"
    request_body: Optional[str] = None
    response_preview: str = Field("", description="Truncated JSON response text")
    item_count: int = Field(0, description="Length of the array found in the body")
    items_path: str = Field("", description="Dotted path to that array")


class DetectedApiConfig(BaseModel):
    """Verdict of the hidden API detector."""

    endpoint: str
    method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Any] = None
    response_mapping: ResponseMapping
    url_transform: Optional[UrlTransform] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: str = ""

    def to_api_config(self) -> APIConfig:
        """Convert the detection verdict into a crawlable API configuration."""
        return APIConfig(
            endpoint=self.endpoint,
            method=self.method.upper(),
            headers=self.headers,
            body=self.body,
            response_mapping=self.response_mapping,
            url_transform=self.url_transform,
        )
