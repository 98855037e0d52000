# utils/listing_parser.py

"""
Selector-driven extraction of article entries from a listing page.

Shared by every DOM-based technique so static, rendered and platform
pages are read the same way.
"""

from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.exceptions import ConfigurationError
from ..models.article import RawContentItem
from ..models.crawler import LinkProcessing, SelectorConfig
from .content_extractor import clean_text
from .url_utils import apply_link_template, extract_js_args, normalize_url, origin, resolve_url

logger = LoggerFactory.get_logger(
    name="listing-parser", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)

DEFAULT_SELECTORS = SelectorConfig(
    item="article, .article, .post, .item, .card, .list-item, tr",
    title="h2, h3, h1, .title, .headline, a",
    link="a",
    thumbnail="img",
    author=".author, .writer, .byline, .name",
    date=".date, time, .time, .published, .datetime",
)

IMAGE_ATTRIBUTES = ("src", "data-src", "data-lazy-src", "data-original")


def merge_selectors(
    custom: Optional[SelectorConfig], defaults: SelectorConfig = DEFAULT_SELECTORS
) -> SelectorConfig:
    """Overlay the non-empty fields of custom selectors on the defaults."""
    if custom is None:
        return defaults
    overrides = custom.model_dump(exclude_none=True)
    return defaults.model_copy(update=overrides)


def _select(root: Tag, selector: Optional[str]) -> List[Tag]:
    if not selector:
        return []
    try:
        return root.select(selector)
    except SelectorSyntaxError as e:
        raise ConfigurationError(f"Invalid selector '{selector}': {e}")


def _select_one(root: Tag, selector: Optional[str]) -> Optional[Tag]:
    if not selector:
        return None
    try:
        return root.select_one(selector)
    except SelectorSyntaxError as e:
        raise ConfigurationError(f"Invalid selector '{selector}': {e}")


def image_url(element: Optional[Tag], base_url: str) -> Optional[str]:
    """Absolute URL of an <img>, honoring lazy-loading attributes."""
    if element is None:
        return None
    if element.name != "img":
        element = element.find("img") or element
    for attribute in IMAGE_ATTRIBUTES:
        value = element.get(attribute)
        if value and not value.startswith("data:"):
            return resolve_url(value, base_url)
    return None


def _base_url(page_url: str, link_processing: Optional[LinkProcessing]) -> str:
    base = (link_processing.base_url if link_processing else None) or origin(page_url)
    return base.rstrip("/") + "/"


def build_link(
    href: Optional[str],
    page_url: str,
    link_processing: Optional[LinkProcessing] = None,
) -> Optional[str]:
    """
    Turn an href into a normalized absolute link.

    javascript: links are only usable with a link template; without one
    they are dropped.
    """
    if not href:
        return None
    href = href.strip()
    base_url = _base_url(page_url, link_processing)
    remove_params = link_processing.remove_params if link_processing else []

    if href.lower().startswith("javascript:"):
        template = link_processing.link_template if link_processing else None
        args = extract_js_args(href)
        if not template or not args:
            return None
        return normalize_url(apply_link_template(template, args, base_url), remove_params)

    absolute = resolve_url(
        href, page_url if href.startswith(("?", "./", "../")) else base_url
    )
    if not absolute:
        return None
    return normalize_url(absolute, remove_params)


def _parse_item(
    element: Tag,
    selectors: SelectorConfig,
    page_url: str,
    link_processing: Optional[LinkProcessing],
) -> Optional[RawContentItem]:
    title_el = _select_one(element, selectors.title)
    title = clean_text(title_el.get_text(" ")) if title_el else ""
    if not title:
        anchor = element if element.name == "a" else element.find("a")
        title = clean_text(anchor.get_text(" ")) if anchor else ""
    if not title:
        return None

    link_el = _select_one(element, selectors.link)
    href = link_el.get("href") if link_el else None
    if not href:
        anchor = element if element.name == "a" else element.find("a", href=True)
        href = anchor.get("href") if anchor else None
    link = build_link(href, page_url, link_processing)
    if not link:
        return None

    thumbnail = image_url(
        _select_one(element, selectors.thumbnail), _base_url(page_url, link_processing)
    )

    author = None
    author_el = _select_one(element, selectors.author)
    if author_el:
        author = clean_text(author_el.get_text(" ")) or None

    date_value = None
    date_el = _select_one(element, selectors.date)
    if date_el:
        date_value = (
            date_el.get(selectors.date_attribute or "datetime")
            or date_el.get("content")
            or clean_text(date_el.get_text(" "))
            or None
        )

    return RawContentItem(
        title=title,
        link=link,
        thumbnail_url=thumbnail,
        author=author,
        published_at=date_value,
    )


def parse_listing(
    html: str,
    page_url: str,
    selectors: Optional[SelectorConfig] = None,
    link_processing: Optional[LinkProcessing] = None,
    exclude_selectors: Iterable[str] = (),
) -> List[RawContentItem]:
    """
    Extract raw entries from listing HTML.

    Args:
        html: Page HTML
        page_url: URL the HTML was loaded from
        selectors: Item/title/link/... selectors, merged over the defaults
        link_processing: Link normalization rules
        exclude_selectors: Elements removed before parsing

    Returns:
        Entries with a title and a usable link, in document order
    """
    soup = BeautifulSoup(html, "html.parser")
    for selector in exclude_selectors:
        for element in _select(soup, selector):
            element.decompose()

    merged = merge_selectors(selectors)
    roots: List[Tag] = _select(soup, merged.container) if merged.container else []
    if not roots:
        roots = [soup.body or soup]

    items: List[RawContentItem] = []
    for root in roots:
        for element in _select(root, merged.item):
            item = _parse_item(element, merged, page_url, link_processing)
            if item is not None:
                items.append(item)

    logger.debug(f"Parsed {len(items)} entries from {page_url}")
    return items
