# services/page_analyzer.py

"""
Structural analysis of a fetched page.

Provides the rendering-requirement score, the rule-based listing selector
detector, CMS fingerprinting and feed-link discovery. All functions are pure
over the HTML they receive.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional

from bs4 import BeautifulSoup, Comment, Tag

from ..core.constants import (
    FEED_LINK_TYPES,
    RULE_BASE_SCORE,
    RULE_BONUS_ITEM_COUNT,
    RULE_COUNT_BONUS,
    RULE_DATE_BONUS,
    RULE_MIN_ITEMS,
    RULE_THUMBNAIL_BONUS,
    SPA_EMPTY_BODY_CHARS,
    SPA_JS_LINK_RATIO_HIGH,
    SPA_JS_LINK_RATIO_LOW,
    SPA_MIN_JS_LINKS,
    SPA_NOSCRIPT_BODY_CHARS,
    SPA_ONCLICK_HIGH_COUNT,
    SPA_ONCLICK_LOW_COUNT,
    SPA_PENALTY_ARTICLES_HIGH,
    SPA_PENALTY_ARTICLES_LOW,
    SPA_RICH_BODY_CHARS_HIGH,
    SPA_RICH_BODY_CHARS_LOW,
    SPA_SCRIPT_HEAVY_MIN_JS_LINKS,
    SPA_SCRIPT_TEXT_RATIO,
    SPA_WEIGHT_BUILDER_COMMENT,
    SPA_WEIGHT_FRAMEWORK,
    SPA_WEIGHT_JS_LINK_HIGH,
    SPA_WEIGHT_JS_LINK_LOW,
    SPA_WEIGHT_NOSCRIPT_ROOT,
    SPA_WEIGHT_ONCLICK_HIGH,
    SPA_WEIGHT_ONCLICK_LOW,
    SPA_WEIGHT_PUBLIC_SECTOR,
    SPA_WEIGHT_SCRIPT_HEAVY,
    SPA_WEIGHT_SERVER_RENDERED,
)
from ..models.crawler import SelectorConfig
from ..utils.url_utils import resolve_url

MOUNT_POINTS = ("#root", "#app", "#__next")

_WHITESPACE = re.compile(r"\s+")
_NAV_HANDLER = re.compile(r"go[a-z_]|fn[a-z_]|moveToPage|goToPage|pageMove", re.I)
_VUE = re.compile(r"vue|vuex|vue-router|nuxt", re.I)
_REACT = re.compile(r"react|react-dom|next\.js|webpack|chunk|bundle|app\.[a-f0-9]{8}\.js", re.I)
_ANGULAR = re.compile(r"angular|ng-|@angular", re.I)
_PUBLIC_SECTOR = re.compile(r"\.go\.kr|\.or\.kr", re.I)
_BUILDER_COMMENT = re.compile(
    r"(surfit|created by|built with|powered by).*(vue|react|next|nuxt)", re.I | re.S
)

NOISE_SELECTOR = (
    'nav, header, footer, aside, [role="navigation"], [role="banner"], '
    '[role="contentinfo"]'
)
TITLE_CANDIDATES = [
    "h1", "h2", "h3", "h4", "h5", "h6",
    ".title", ".subject", ".tit", ".headline",
    '[class*="title"]', '[class*="subject"]',
    "a",
]
DATE_CANDIDATES = [
    "time[datetime]",
    "time",
    ".date",
    ".time",
    ".datetime",
    ".published",
    '[class*="date"]',
    '[class*="time"]',
]
_DATE_TEXT = [
    re.compile(r"\d{4}[-./]\d{1,2}[-./]\d{1,2}"),
    re.compile(r"\d{1,2}[./-]\d{1,2}"),
    re.compile(r"\d+[시간일주월년]"),
    re.compile(r"ago|전"),
]


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _body_text(soup: BeautifulSoup) -> str:
    body = soup.body or soup
    return _WHITESPACE.sub(" ", body.get_text(" ")).strip()


# ---------------------------------------------------------------------------
# Rendering requirement
# ---------------------------------------------------------------------------


def calculate_spa_score(html: str, url: str = "") -> float:
    """
    Score in [0, 1] estimating whether a page needs a browser to render.

    A near-empty body with a framework mount point is decisive (1.0). Other
    signals add weight: noscript fallbacks, javascript: links, onclick
    navigation, script-heavy markup, bundler fingerprints, public-sector
    portals and builder comments. Server-rendered article lists subtract.
    """
    soup = _soup(html)
    body_text = _body_text(soup)
    has_mount_point = any(soup.select_one(selector) for selector in MOUNT_POINTS)

    if len(body_text) < SPA_EMPTY_BODY_CHARS and has_mount_point:
        return 1.0

    score = 0.0

    if soup.find("noscript") and has_mount_point and len(body_text) < SPA_NOSCRIPT_BODY_CHARS:
        score += SPA_WEIGHT_NOSCRIPT_ROOT

    if soup.select_one('[data-server-rendered="true"]') and has_mount_point:
        score += SPA_WEIGHT_SERVER_RENDERED

    links = soup.find_all("a", href=True)
    js_links = [a for a in links if a["href"].strip().lower().startswith("javascript:")]
    if links and len(js_links) >= SPA_MIN_JS_LINKS:
        ratio = len(js_links) / len(links)
        if ratio >= SPA_JS_LINK_RATIO_HIGH:
            score += SPA_WEIGHT_JS_LINK_HIGH
        elif ratio >= SPA_JS_LINK_RATIO_LOW:
            score += SPA_WEIGHT_JS_LINK_LOW

    handlers = [
        element
        for element in soup.find_all(attrs={"onclick": True})
        if _NAV_HANDLER.search(element.get("onclick") or "")
    ]
    if len(handlers) >= SPA_ONCLICK_HIGH_COUNT:
        score += SPA_WEIGHT_ONCLICK_HIGH
    elif len(handlers) >= SPA_ONCLICK_LOW_COUNT:
        score += SPA_WEIGHT_ONCLICK_LOW

    scripts = soup.find_all("script")
    script_length = sum(len(_WHITESPACE.sub("", s.get_text())) for s in scripts)
    text_length = len(_WHITESPACE.sub("", body_text))
    if (
        text_length > 0
        and script_length > text_length * SPA_SCRIPT_TEXT_RATIO
        and len(js_links) >= SPA_SCRIPT_HEAVY_MIN_JS_LINKS
    ):
        score += SPA_WEIGHT_SCRIPT_HEAVY

    script_src = " ".join(s.get("src", "") for s in scripts if s.get("src"))
    inline_scripts = " ".join(s.get_text() for s in scripts if not s.get("src"))
    if (
        _VUE.search(script_src + inline_scripts)
        or _REACT.search(script_src)
        or _ANGULAR.search(script_src + inline_scripts)
    ):
        score += SPA_WEIGHT_FRAMEWORK

    canonical = soup.find("link", rel="canonical")
    base = soup.find("base", href=True)
    host_hint = (
        (canonical.get("href") if canonical else None)
        or (base.get("href") if base else None)
        or url
    )
    if _PUBLIC_SECTOR.search(host_hint or "") and js_links:
        score += SPA_WEIGHT_PUBLIC_SECTOR

    comments = soup.find_all(string=lambda text: isinstance(text, Comment))
    if any(_BUILDER_COMMENT.search(comment) for comment in comments):
        score += SPA_WEIGHT_BUILDER_COMMENT

    article_count = len(soup.find_all("article"))
    nested_articles = len(soup.select("main article, section article"))
    if len(body_text) > SPA_RICH_BODY_CHARS_HIGH and article_count >= 3:
        score -= SPA_PENALTY_ARTICLES_HIGH
    elif len(body_text) > SPA_RICH_BODY_CHARS_LOW and (
        article_count >= 2 or nested_articles >= 2
    ):
        score -= SPA_PENALTY_ARTICLES_LOW

    return min(max(score, 0.0), 1.0)


# ---------------------------------------------------------------------------
# Rule-based selector detection
# ---------------------------------------------------------------------------


@dataclass
class SelectorCandidate:
    """A repeating structure that looks like an article list."""

    container: str
    item: str
    title: str
    link: str
    date: Optional[str]
    thumbnail: Optional[str]
    score: float
    count: int

    def to_selector_config(self) -> SelectorConfig:
        return SelectorConfig(
            container=self.container or None,
            item=self.item,
            title=self.title,
            link=self.link,
            date=self.date,
            thumbnail=self.thumbnail,
        )


def _has_link(element: Tag) -> bool:
    return element.find("a", href=True) is not None


def _find_title_selector(element: Tag) -> Optional[str]:
    for selector in TITLE_CANDIDATES:
        found = element.select_one(selector)
        if found is not None and len(found.get_text(strip=True)) > 2:
            return selector
    return None


def _find_date_selector(element: Tag) -> Optional[str]:
    for selector in DATE_CANDIDATES:
        found = element.select_one(selector)
        if found is None:
            continue
        text = found.get_text(strip=True)
        if found.get("datetime") or any(p.search(text) for p in _DATE_TEXT):
            return selector
    return None


def _find_thumbnail_selector(element: Tag) -> Optional[str]:
    if element.select_one("img[src], img[data-src], img[data-lazy-src]"):
        return "img"
    return None


def _analyze_items(items: List[Tag]) -> Optional[SelectorCandidate]:
    first = items[0]
    title = _find_title_selector(first)
    if not title or not _has_link(first):
        return None

    date = _find_date_selector(first)
    thumbnail = _find_thumbnail_selector(first)

    score = RULE_BASE_SCORE
    if date:
        score += RULE_DATE_BONUS
    if thumbnail:
        score += RULE_THUMBNAIL_BONUS
    if len(items) >= RULE_BONUS_ITEM_COUNT:
        score += RULE_COUNT_BONUS

    return SelectorCandidate(
        container="",
        item="",
        title=title,
        link="a",
        date=date,
        thumbnail=thumbnail,
        score=min(round(score, 2), 1.0),
        count=len(items),
    )


def unique_selector(soup: BeautifulSoup, element: Tag) -> str:
    """#id, else tag.class when that matches once, else the tag name."""
    element_id = element.get("id")
    if element_id:
        return f"#{element_id}"
    classes = element.get("class") or []
    if classes:
        selector = f"{element.name}.{classes[0]}"
        if len(soup.select(selector)) == 1:
            return selector
    return element.name


def _table_candidates(soup: BeautifulSoup) -> List[SelectorCandidate]:
    candidates = []
    for table in soup.find_all("table"):
        rows = [
            row
            for row in table.find_all("tr")
            if row.find("th") is None and _has_link(row)
        ]
        if len(rows) < RULE_MIN_ITEMS:
            continue
        candidate = _analyze_items(rows)
        if candidate:
            candidate.container = unique_selector(soup, table)
            candidate.item = "tbody > tr" if table.find("tbody") else "tr"
            candidates.append(candidate)
    return candidates


def _list_candidates(soup: BeautifulSoup) -> List[SelectorCandidate]:
    candidates = []
    for list_element in soup.find_all(["ul", "ol"]):
        items = [
            li for li in list_element.find_all("li", recursive=False) if _has_link(li)
        ]
        if len(items) < RULE_MIN_ITEMS:
            continue
        candidate = _analyze_items(items)
        if candidate:
            candidate.container = unique_selector(soup, list_element)
            candidate.item = "li"
            candidates.append(candidate)
    return candidates


def _repeating_candidates(soup: BeautifulSoup) -> List[SelectorCandidate]:
    groups: Dict[str, List[Tag]] = {}
    for element in soup.find_all(["div", "article", "section", "li"]):
        classes = element.get("class")
        if not classes:
            continue
        groups.setdefault(f"{element.name}.{classes[0]}", []).append(element)

    candidates = []
    for key, elements in groups.items():
        with_links = [element for element in elements if _has_link(element)]
        if len(with_links) < RULE_MIN_ITEMS:
            continue
        candidate = _analyze_items(with_links)
        if candidate:
            parent = with_links[0].parent
            candidate.container = (
                unique_selector(soup, parent) if isinstance(parent, Tag) else ""
            )
            candidate.item = key
            candidates.append(candidate)
    return candidates


def detect_by_rules(html: str) -> Optional[SelectorCandidate]:
    """
    Find the most article-list-like repeating structure on a page.

    Navigation, header, footer and aside blocks are removed first. Tables,
    lists and class-repetition groups are scored by whether their first
    entry has a title, a link, a date and a thumbnail.
    """
    soup = _soup(html)
    for element in soup.select(NOISE_SELECTOR):
        element.decompose()

    candidates = (
        _table_candidates(soup) + _list_candidates(soup) + _repeating_candidates(soup)
    )
    if not candidates:
        return None
    # Stable sort keeps document-order priority among equal scores
    return sorted(candidates, key=lambda candidate: candidate.score, reverse=True)[0]


# ---------------------------------------------------------------------------
# CMS fingerprints and feed links
# ---------------------------------------------------------------------------


class CmsSignature(NamedTuple):
    name: str
    feed_path: str


def detect_cms(html: str) -> Optional[CmsSignature]:
    """Recognize WordPress, Tistory, Ghost and Medium pages."""
    soup = _soup(html)
    generator_tag = soup.find("meta", attrs={"name": "generator"})
    generator = (generator_tag.get("content") or "") if generator_tag else ""

    if re.search("wordpress", generator, re.I):
        return CmsSignature("WordPress", "/feed")
    if soup.select_one('link[href*="wp-content"], script[src*="wp-content"]'):
        return CmsSignature("WordPress", "/feed")
    if soup.select_one('script[src*="tistory"]'):
        return CmsSignature("Tistory", "/rss")
    if re.search("ghost", generator, re.I):
        return CmsSignature("Ghost", "/rss")

    android_package = soup.find("meta", attrs={"property": "al:android:package"})
    if android_package and "com.medium.reader" in (android_package.get("content") or ""):
        return CmsSignature("Medium", "/feed")
    return None


def discover_feed_link(html: str, url: str) -> Optional[str]:
    """Absolute URL of the first RSS/Atom <link> declared by the page."""
    soup = _soup(html)
    for link in soup.find_all("link", href=True):
        if (link.get("type") or "").lower() in FEED_LINK_TYPES:
            return resolve_url(link["href"], url)
    return None
