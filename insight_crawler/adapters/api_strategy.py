# adapters/api_strategy.py

"""
JSON API technique.

Calls a list endpoint described by an APIConfig and maps each element of the
returned array onto a RawContentItem through dotted field paths.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from ..core.exceptions import CrawlerError
from ..models.api import APIConfig, ApiPagination, ApiPaginationType, UrlTransform
from ..models.article import ContentResult, RawContentItem
from ..models.crawler import ContentSelectors, CrawlerType, Source
from ..utils.content_extractor import extract_content, generate_preview, html_to_text
from ..utils.json_path import PathStatus, get_list, get_text, lookup
from ..utils.url_utils import normalize_url, origin
from .base_strategy import BaseCrawlStrategy

# Keys tried when the configured items path does not resolve to a list
FALLBACK_ITEM_KEYS = ("data", "items", "results", "posts")

# Keys tried when a detail endpoint returns JSON
CONTENT_KEYS = ("content", "body", "text", "description")


def find_items(response: Any, items_path: Optional[str]) -> Optional[List[Any]]:
    """
    Locate the item array in a decoded response.

    The mapping path wins when it resolves to a list. Otherwise a bare list
    response or one of the conventional top-level keys is used.
    """
    result = get_list(response, items_path)
    if result.found:
        return result.value

    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        for key in FALLBACK_ITEM_KEYS:
            value = response.get(key)
            if isinstance(value, list):
                return value
    return None


def fill_link_template(
    template: str, item: Dict[str, Any], fields: List[str]
) -> Optional[str]:
    """Substitute {field} placeholders with item values; None if one is missing."""
    link = template
    for name in fields:
        value = get_text(item, name)
        if value is None:
            return None
        link = link.replace(f"{{{name}}}", value)
    return link


def absolutize(value: str, base: str) -> str:
    if value.startswith(("http://", "https://")):
        return value
    if value.startswith("//"):
        return f"https:{value}"
    return urljoin(base.rstrip("/") + "/", value.lstrip("/"))


class APIStrategy(BaseCrawlStrategy):
    """Crawls article lists exposed as JSON."""

    crawler_type = CrawlerType.API

    def api_config(self, source: Source) -> APIConfig:
        return source.config.api or APIConfig(endpoint=source.effective_url)

    async def list_items(self, source: Source) -> List[RawContentItem]:
        api = self.api_config(source)
        self.logger.info(f"Calling API for {source.name}: {api.method} {api.endpoint}")

        if api.pagination:
            items = await self._fetch_paginated(api, api.pagination)
        else:
            response = await self._request(api, api.query_params, api.body)
            items = self.parse_response(response, api)

        result = self.finalize_items(items, source)
        self.logger.info(f"Found {len(result)} items for {source.name}")
        return result

    async def _fetch_paginated(
        self, api: APIConfig, pagination: ApiPagination
    ) -> List[RawContentItem]:
        items: List[RawContentItem] = []
        cursor: Optional[str] = None

        for page in range(pagination.max_pages):
            params = dict(api.query_params)
            if pagination.type == ApiPaginationType.OFFSET:
                params[pagination.param] = str(page * pagination.limit)
            elif pagination.type == ApiPaginationType.PAGE:
                params[pagination.param] = str(page + 1)
            elif cursor is not None:
                params[pagination.param] = cursor
            if pagination.limit_param and pagination.type != ApiPaginationType.CURSOR:
                params[pagination.limit_param] = str(pagination.limit)

            body = api.body
            if api.method.upper() != "GET" and isinstance(body, dict):
                body = {**body, **params}
                params = dict(api.query_params)

            try:
                response = await self._request(api, params, body)
            except CrawlerError as e:
                if page == 0:
                    raise
                self.logger.warning(f"Stopping API pagination at page {page + 1}: {e}")
                break

            page_items = self.parse_response(response, api)
            if not page_items:
                break
            items.extend(page_items)

            if pagination.type == ApiPaginationType.CURSOR:
                cursor = get_text(response, pagination.cursor_path)
                if not cursor:
                    break

            await self.delay(pagination.delay_ms)

        return items

    async def _request(
        self, api: APIConfig, params: Dict[str, Any], body: Optional[Any]
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        headers.update(api.headers)
        return await self.fetcher.request_json(
            api.method,
            api.endpoint,
            headers=headers,
            params=params,
            body=body,
        )

    def parse_response(self, response: Any, api: APIConfig) -> List[RawContentItem]:
        """Map a decoded response onto raw items."""
        mapping = api.response_mapping
        raw_items = find_items(response, mapping.items)
        if raw_items is None:
            status = lookup(response, mapping.items).status
            if status == PathStatus.WRONG_TYPE:
                self.logger.warning(
                    f"Items path '{mapping.items}' does not point to an array"
                )
            else:
                self.logger.warning("Cannot find items array in API response")
            return []

        transform = api.url_transform or UrlTransform()
        link_base = transform.base_url or origin(api.endpoint)
        items: List[RawContentItem] = []

        for raw in raw_items:
            if not isinstance(raw, dict):
                continue
            title = get_text(raw, mapping.title)
            link = self._item_link(raw, api, transform, link_base)
            if not title or not link:
                continue

            thumbnail = get_text(raw, mapping.thumbnail)
            if thumbnail:
                thumbnail = absolutize(thumbnail, transform.thumbnail_prefix or link_base)

            content = get_text(raw, mapping.content)
            if content:
                content = generate_preview(html_to_text(content)) or None

            items.append(
                RawContentItem(
                    title=title,
                    link=link,
                    thumbnail_url=thumbnail,
                    author=get_text(raw, mapping.author),
                    published_at=get_text(raw, mapping.date),
                    content=content,
                )
            )

        return items

    def _item_link(
        self,
        raw: Dict[str, Any],
        api: APIConfig,
        transform: UrlTransform,
        link_base: str,
    ) -> Optional[str]:
        if transform.link_template:
            fields = transform.link_fields or [api.response_mapping.link]
            link = fill_link_template(transform.link_template, raw, fields)
        else:
            link = get_text(raw, api.response_mapping.link)
        if not link:
            return None
        return normalize_url(absolutize(link, link_base))

    async def fetch_content(
        self, url: str, hints: Optional[ContentSelectors] = None
    ) -> Optional[ContentResult]:
        """
        Fetch an item's detail.

        JSON detail endpoints are searched for a body field; HTML article
        pages go through the regular extractor.
        """
        try:
            response = await self.fetcher.get(url)
        except CrawlerError as e:
            self.logger.warning(f"Content fetch failed for {url}: {e}")
            return None
        if not response.ok:
            self.logger.warning(f"Content fetch failed for {url}: HTTP {response.status}")
            return None

        if "json" in response.content_type:
            try:
                data = response.json()
            except ValueError:
                return None
            for key in CONTENT_KEYS:
                text = get_text(data, key)
                if text:
                    return ContentResult(content=generate_preview(html_to_text(text)))
            return None

        content = extract_content(response.text, url, hints)
        return ContentResult(content=generate_preview(content) or None)
