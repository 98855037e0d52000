# utils/title_cleaner.py

"""
Title normalization: strip embedded metadata and reject UI labels.
"""

import re
from typing import Optional

MIN_TITLE_LENGTH = 3

UI_LABELS = {
    "소매시장분석",
    "앱시장분석",
    "비교하기",
    "더보기",
    "전체보기",
    "목록",
    "이전",
    "다음",
    "처음",
    "마지막",
    "홈",
    "메인",
    "로그인",
    "회원가입",
    "마이페이지",
    "장바구니",
    "주문",
    "결제",
    "배송",
    "문의",
    "서비스 문의",
    "제품 문의",
    "고객센터",
    "공지사항",
    "이벤트",
    "이용약관",
    "개인정보",
    "회사소개",
    "검색",
    "알림",
    "설정",
    "인사이트",
    "분석",
    "통계",
    "리포트",
    "read more",
    "more",
    "view all",
    "see more",
    "subscribe",
}

SIMPLE_KEYWORDS = {"순위", "랭킹", "top", "베스트", "best"}

_WHITESPACE = re.compile(r"\s+")
_NOTICE_PREFIX = re.compile(r"^공지\s+")
_NOTICE_SUFFIX = re.compile(r"\s+공지$")
_READ_TIME = re.compile(r"\d+\s*(min|분)\s*(read|읽는 시간|소요)", re.IGNORECASE)
_FULL_DATE = re.compile(r"\b\d{4}[-./]\d{1,2}[-./]\d{1,2}\b")
_SHORT_DATE = re.compile(r"\b\d{1,2}[-./]\d{1,2}\b")
_TIME = re.compile(r"\b\d{1,2}:\d{2}(:\d{2})?\b")
_BRACKETED = re.compile(r"\[.*?\]")
_SEPARATORS = re.compile(r"[․·•\-_|]+")
_STATUS_BADGES = re.compile(r"\b(업데이트|수정|NEW|신규|추가)\s*", re.IGNORECASE)
_WORD_CHARACTER = re.compile(r"[a-zA-Z가-힣ぁ-んァ-ヶ一-龯]")
_COUNTER_LABEL = re.compile(
    r"^\(?\d[\d,]*\)?\s*(items?|posts?|articles?|results?|entries|개|건|편|件)$",
    re.IGNORECASE,
)
_RANKING_SUFFIX = re.compile(r"순위$")


def clean_title(raw_title: Optional[str]) -> str:
    """Remove labels, timestamps and badges embedded in a title."""
    if not raw_title:
        return ""

    cleaned = _WHITESPACE.sub(" ", raw_title).strip()
    cleaned = _NOTICE_PREFIX.sub("", cleaned)
    cleaned = _NOTICE_SUFFIX.sub("", cleaned)
    cleaned = _READ_TIME.sub("", cleaned)
    cleaned = _FULL_DATE.sub("", cleaned)
    cleaned = _SHORT_DATE.sub("", cleaned)
    cleaned = _TIME.sub("", cleaned)
    cleaned = _BRACKETED.sub("", cleaned)
    cleaned = _SEPARATORS.sub(" ", cleaned)
    cleaned = _STATUS_BADGES.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def is_title_valid(title: Optional[str]) -> bool:
    """Check that a cleaned title names content rather than a UI element."""
    if not title or len(title) < MIN_TITLE_LENGTH:
        return False

    lowered = title.lower().strip()
    if lowered in UI_LABELS or lowered in SIMPLE_KEYWORDS:
        return False

    if not _WORD_CHARACTER.search(title):
        return False

    if _COUNTER_LABEL.match(lowered):
        return False

    # Short ranking pages ("리테일 순위") are navigation, longer titles are articles
    if len(title) < 15 and _RANKING_SUFFIX.search(title):
        return False

    return True


def process_title(raw_title: Optional[str]) -> Optional[str]:
    """Clean and validate a title. Returns None when the title should be dropped."""
    cleaned = clean_title(raw_title)
    return cleaned if is_title_valid(cleaned) else None
