# utils/content_extractor.py

"""
Article body and metadata extraction.

Body text is taken from the first source that yields enough text:
caller selector, readability, conventional content containers, then the
whole document.
"""

import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError
from readability import Document

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.constants import MIN_CONTENT_CHARS, PREVIEW_MAX_CHARS
from ..models.crawler import ContentSelectors

logger = LoggerFactory.get_logger(
    name="content-extractor", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)

DEFAULT_CONTENT_SELECTORS: List[str] = [
    "article",
    '[role="main"]',
    "main",
    ".article-content",
    ".article-body",
    ".post-content",
    ".post-body",
    ".entry-content",
    ".content-body",
    ".story-content",
    ".blog-content",
    ".news-content",
    ".text-content",
    "#content",
    "#article",
    "#post",
    ".content",
    ".post",
    ".article",
]

DEFAULT_REMOVE_SELECTORS: List[str] = [
    "script",
    "style",
    "noscript",
    "iframe",
    "nav",
    "header",
    "footer",
    ".ad",
    ".ads",
    ".advertisement",
    ".banner",
    ".sidebar",
    ".related",
    ".related-posts",
    ".related-articles",
    ".recommended",
    ".comments",
    ".comment",
    ".share",
    ".social",
    ".author-bio",
    ".newsletter",
    ".subscribe",
    '[class*="ad-"]',
    '[class*="ads-"]',
    '[id*="ad-"]',
    '[id*="ads-"]',
]

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: Optional[str]) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def _remove(soup: BeautifulSoup, selectors: List[str]) -> None:
    for selector in selectors:
        try:
            for element in soup.select(selector):
                element.decompose()
        except SelectorSyntaxError:
            logger.debug(f"Skipping invalid remove selector: {selector}")


def _with_selector(html: str, hints: ContentSelectors) -> str:
    soup = BeautifulSoup(html, "html.parser")
    _remove(soup, hints.remove_selectors or DEFAULT_REMOVE_SELECTORS)
    try:
        element = soup.select_one(hints.content)
    except SelectorSyntaxError:
        logger.warning(f"Invalid content selector: {hints.content}")
        return ""
    if element is None:
        return ""
    if hints.content_type == "html":
        return element.decode_contents().strip()
    return clean_text(element.get_text(" "))


def _with_readability(html: str) -> str:
    try:
        summary = Document(html).summary(html_partial=True)
    except Exception as e:
        logger.debug(f"Readability extraction failed: {e}")
        return ""
    return clean_text(BeautifulSoup(summary, "html.parser").get_text(" "))


def _with_fallback_selectors(html: str, hints: Optional[ContentSelectors]) -> str:
    soup = BeautifulSoup(html, "html.parser")
    remove = hints.remove_selectors if hints and hints.remove_selectors else None
    _remove(soup, remove or DEFAULT_REMOVE_SELECTORS)
    for selector in DEFAULT_CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = clean_text(element.get_text(" "))
        if len(text) > MIN_CONTENT_CHARS:
            return text
    return ""


def html_to_text(html: Optional[str]) -> str:
    """Strip markup and boilerplate blocks from an HTML fragment."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    _remove(soup, DEFAULT_REMOVE_SELECTORS)
    root = soup.body or soup
    return clean_text(root.get_text(" "))


def extract_content(
    html: str, url: str = "", hints: Optional[ContentSelectors] = None
) -> str:
    """
    Extract the article body from a page.

    Args:
        html: Page HTML
        url: Page URL, used for logging
        hints: Optional caller-supplied selector and removal list

    Returns:
        Cleaned body text, possibly empty
    """
    if not html:
        return ""

    if hints and hints.content:
        content = _with_selector(html, hints)
        if len(content) > MIN_CONTENT_CHARS:
            return content

    if hints is None or hints.use_readability:
        content = _with_readability(html)
        if len(content) > MIN_CONTENT_CHARS:
            return content

    content = _with_fallback_selectors(html, hints)
    if content:
        return content

    logger.debug(f"Falling back to whole-document text for {url}")
    return html_to_text(html)


def generate_preview(content: Optional[str], max_length: int = PREVIEW_MAX_CHARS) -> str:
    """
    Cut text to a preview, preferring sentence then word boundaries.
    """
    cleaned = clean_text(content)
    if len(cleaned) <= max_length:
        return cleaned

    truncated = cleaned[:max_length]
    sentence_end = max(truncated.rfind("."), truncated.rfind("?"), truncated.rfind("!"))
    if sentence_end > max_length * 0.5:
        return truncated[: sentence_end + 1]

    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        return truncated[:last_space] + "..."

    return truncated + "..."


def _meta(soup: BeautifulSoup, *queries: Dict[str, str]) -> Optional[str]:
    for attrs in queries:
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content"):
            value = tag["content"].strip()
            if value:
                return value
    return None


def extract_metadata(html: str) -> Dict[str, Optional[str]]:
    """
    Read page metadata independently of the body.

    Returns:
        Dict with title, description, image, author and published_time
    """
    soup = BeautifulSoup(html or "", "html.parser")

    title = _meta(soup, {"property": "og:title"}, {"name": "title"})
    if not title and soup.title and soup.title.string:
        title = clean_text(soup.title.string) or None

    published = _meta(
        soup, {"property": "article:published_time"}, {"name": "pubdate"}
    )
    if not published:
        time_tag = soup.find("time", attrs={"datetime": True})
        if time_tag:
            published = time_tag["datetime"].strip() or None

    return {
        "title": title,
        "description": _meta(
            soup, {"property": "og:description"}, {"name": "description"}
        ),
        "image": _meta(
            soup,
            {"property": "og:image"},
            {"name": "twitter:image"},
            {"property": "twitter:image"},
        ),
        "author": _meta(soup, {"name": "author"}, {"property": "article:author"}),
        "published_time": published,
    }
