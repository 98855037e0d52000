# utils/quality_gate.py

"""
Statistical acceptance test for a harvested batch.

A technique that "runs" but returns login links, pagination numbers or
forty copies of the same banner is treated as a failure so that the
fallback chain can try the next technique.
"""

import re
from typing import Iterable, List, Sequence

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.constants import (
    QUALITY_MAX_GARBAGE_RATIO,
    QUALITY_MIN_UNIQUE_TITLE_RATIO,
    QUALITY_MIN_UNIQUE_URL_RATIO,
    QUALITY_MIN_VALID_ITEMS,
)
from ..models.article import CrawledArticle, RawContentItem
from ..models.crawler import QualityReport

logger = LoggerFactory.get_logger(
    name="quality-gate", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)

GARBAGE_TITLE_PATTERNS: List[re.Pattern] = [
    # Account
    re.compile(r"^로그인$"),
    re.compile(r"^로그아웃$"),
    re.compile(r"^회원가입$"),
    re.compile(r"^비밀번호"),
    re.compile(r"^Login$", re.IGNORECASE),
    re.compile(r"^Logout$", re.IGNORECASE),
    re.compile(r"^Sign\s*[Ii]n$"),
    re.compile(r"^Sign\s*[Uu]p$"),
    re.compile(r"^Register$", re.IGNORECASE),
    re.compile(r"^(Subscribe|구독|구독하기)$", re.IGNORECASE),
    # Pagination
    re.compile(r"^(이전|다음|처음|마지막)\s*페이지$"),
    re.compile(r"^(Previous|Next|First|Last)\s*Page$", re.IGNORECASE),
    re.compile(r"^(Prev|Next)$", re.IGNORECASE),
    # Search and menus
    re.compile(r"^(검색|Search)$", re.IGNORECASE),
    re.compile(r"^(홈|Home|메인|Main)$", re.IGNORECASE),
    re.compile(r"^(메뉴|Menu)$", re.IGNORECASE),
    re.compile(r"^(닫기|Close)$", re.IGNORECASE),
    # Terms
    re.compile(r"^(이용약관|개인정보|Privacy)", re.IGNORECASE),
    re.compile(r"^Terms\s*of\s*Service$", re.IGNORECASE),
    re.compile(r"^Privacy\s*Policy$", re.IGNORECASE),
    # Sharing
    re.compile(r"^(공유하기|스크랩|좋아요)$"),
    re.compile(r"^(Share|Like|Bookmark)$", re.IGNORECASE),
    re.compile(r"블로그\s*새창으로\s*열기"),
    re.compile(r"^(페이스북|트위터|인스타)\s*새창"),
    re.compile(r"^(Facebook|Twitter|Instagram)\s*new\s*window", re.IGNORECASE),
    # Listing controls
    re.compile(r"^(목록|List)$", re.IGNORECASE),
    re.compile(r"^(더\s*보기|More)$", re.IGNORECASE),
    re.compile(r"^View\s*All$", re.IGNORECASE),
    re.compile(r"^See\s*More$", re.IGNORECASE),
    re.compile(r"^(TOP|맨위로)$", re.IGNORECASE),
    re.compile(r"^Scroll\s*to\s*Top$", re.IGNORECASE),
    re.compile(r"^Back\s*to\s*Top$", re.IGNORECASE),
    # Too short, blank, punctuation only, digits only
    re.compile(r"^.{0,3}$"),
    re.compile(r"^\s*$"),
    re.compile(r"^[.,!?;:\-_]+$"),
    re.compile(r"^\d+$"),
]

GARBAGE_URL_PATTERNS: List[re.Pattern] = [
    re.compile(r"/login", re.IGNORECASE),
    re.compile(r"/signup", re.IGNORECASE),
    re.compile(r"/register", re.IGNORECASE),
    re.compile(r"/auth/", re.IGNORECASE),
    re.compile(r"/logout", re.IGNORECASE),
    re.compile(r"^javascript:", re.IGNORECASE),
    re.compile(r"^#"),
    re.compile(r"^mailto:"),
    re.compile(r"^tel:"),
    re.compile(r"/terms", re.IGNORECASE),
    re.compile(r"/privacy", re.IGNORECASE),
    re.compile(r"/policy", re.IGNORECASE),
    re.compile(r"/admin", re.IGNORECASE),
    re.compile(r"/settings", re.IGNORECASE),
    re.compile(r"/config", re.IGNORECASE),
]


def is_garbage_item(item: RawContentItem) -> bool:
    """Check whether an item is boilerplate rather than an article."""
    title = (item.title or "").strip()
    link = (item.link or "").strip()
    if not title or not link:
        return True

    if any(pattern.search(title) for pattern in GARBAGE_TITLE_PATTERNS):
        return True

    return any(pattern.search(link) for pattern in GARBAGE_URL_PATTERNS)


def _ratio(values: Sequence[str]) -> float:
    if not values:
        return 0.0
    return len(set(values)) / len(values)


def evaluate_quality(items: Sequence[RawContentItem]) -> QualityReport:
    """
    Evaluate a batch of harvested items.

    The batch is rejected when it is empty, more than half of it is garbage,
    fewer than two real items remain, or titles/URLs repeat for more than
    half of the batch.

    Args:
        items: Items returned by one technique

    Returns:
        QualityReport with the pass/fail verdict and diagnostics
    """
    total = len(items)
    if total == 0:
        return QualityReport(passed=False, reasons=["no items found"])

    garbage = sum(1 for item in items if is_garbage_item(item))
    valid = total - garbage
    garbage_ratio = garbage / total
    unique_title_ratio = _ratio([item.title.strip() for item in items])
    unique_url_ratio = _ratio([item.link.strip() for item in items])

    reasons: List[str] = []
    if garbage_ratio > QUALITY_MAX_GARBAGE_RATIO:
        reasons.append(f"garbage ratio {garbage_ratio:.2f} exceeds {QUALITY_MAX_GARBAGE_RATIO}")
    if valid < QUALITY_MIN_VALID_ITEMS:
        reasons.append(f"only {valid} valid items")
    if unique_title_ratio < QUALITY_MIN_UNIQUE_TITLE_RATIO:
        reasons.append(f"unique title ratio {unique_title_ratio:.2f}")
    if unique_url_ratio < QUALITY_MIN_UNIQUE_URL_RATIO:
        reasons.append(f"unique URL ratio {unique_url_ratio:.2f}")

    return QualityReport(
        passed=not reasons,
        total=total,
        valid=valid,
        garbage=garbage,
        garbage_ratio=garbage_ratio,
        unique_title_ratio=unique_title_ratio,
        unique_url_ratio=unique_url_ratio,
        reasons=reasons,
    )


def filter_garbage_items(items: Iterable[RawContentItem]) -> List[RawContentItem]:
    """Drop garbage entries from an accepted batch."""
    return [item for item in items if not is_garbage_item(item)]


def filter_garbage_articles(
    articles: Sequence[CrawledArticle], source_name: str
) -> List[CrawledArticle]:
    """Drop converted articles whose title or URL looks like boilerplate."""
    kept = [
        article
        for article in articles
        if not is_garbage_item(RawContentItem(title=article.title, link=article.url))
    ]
    removed = len(articles) - len(kept)
    if removed:
        logger.info(
            f"[{source_name}] Removed {removed}/{len(articles)} garbage articles"
        )
    return kept
