# core/constants.py

"""
Tuning constants for detection and quality scoring.

The values were tuned against real sites. Changing them changes which
technique gets picked for existing sources.
"""

from typing import Dict, List, Tuple

# Feed / sitemap discovery
FEED_PROBE_PATHS: List[str] = [
    "/feed",
    "/rss",
    "/feed.xml",
    "/rss.xml",
    "/atom.xml",
    "/index.xml",
]
SITEMAP_PROBE_PATHS: List[str] = [
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap-index.xml",
    "/post-sitemap.xml",
    "/sitemap/sitemap.xml",
]
FEED_SNIFF_BYTES = 2048
FEED_LINK_TYPES: Tuple[str, ...] = ("application/rss+xml", "application/atom+xml")

# URL optimizer
CONTENT_PATH_PROBES: List[str] = [
    "/feed",
    "/rss",
    "/blog",
    "/articles",
    "/news",
    "/posts",
    "/archive",
]
ROOT_PATHS: Tuple[str, ...] = ("", "/", "/index.html", "/index.htm", "/index.php")
NAV_LINK_KEYWORDS: List[str] = [
    "blog",
    "article",
    "news",
    "post",
    "블로그",
    "아티클",
    "뉴스",
    "콘텐츠",
]
DOMAIN_URL_MAPPINGS: Dict[str, str] = {}
PATH_PROBE_CONFIDENCE = 0.8
FEED_LINK_CONFIDENCE = 0.9
NAV_LINK_CONFIDENCE = 0.75

# Rendering requirement score
SPA_EMPTY_BODY_CHARS = 200
SPA_NOSCRIPT_BODY_CHARS = 500
SPA_WEIGHT_NOSCRIPT_ROOT = 0.8
SPA_WEIGHT_SERVER_RENDERED = 0.7
SPA_MIN_JS_LINKS = 5
SPA_JS_LINK_RATIO_HIGH = 0.3
SPA_WEIGHT_JS_LINK_HIGH = 0.4
SPA_JS_LINK_RATIO_LOW = 0.15
SPA_WEIGHT_JS_LINK_LOW = 0.25
SPA_WEIGHT_ONCLICK_HIGH = 0.3
SPA_WEIGHT_ONCLICK_LOW = 0.15
SPA_WEIGHT_SCRIPT_HEAVY = 0.2
SPA_WEIGHT_FRAMEWORK = 0.4
SPA_WEIGHT_PUBLIC_SECTOR = 0.2
SPA_WEIGHT_BUILDER_COMMENT = 0.3
SPA_PENALTY_ARTICLES_HIGH = 0.3
SPA_PENALTY_ARTICLES_LOW = 0.2
SPA_ONCLICK_HIGH_COUNT = 5
SPA_ONCLICK_LOW_COUNT = 3
SPA_SCRIPT_TEXT_RATIO = 3
SPA_SCRIPT_HEAVY_MIN_JS_LINKS = 3
SPA_RICH_BODY_CHARS_HIGH = 3000
SPA_RICH_BODY_CHARS_LOW = 2000

# Rule-based selector scoring
RULE_BASE_SCORE = 0.6
RULE_DATE_BONUS = 0.2
RULE_THUMBNAIL_BONUS = 0.1
RULE_COUNT_BONUS = 0.1
RULE_MIN_ITEMS = 3
RULE_BONUS_ITEM_COUNT = 5

# CMS feed validation
CMS_FEED_CONFIDENCE = 0.9

# Hidden API capture
API_MIN_ITEMS = 2
API_MAX_ITEMS = 100
API_SEARCH_DEPTH = 3
API_PREVIEW_CHARS = 2000
API_PROMPT_MAX_REQUESTS = 10
API_PROMPT_BODY_CHARS = 200
API_PROMPT_PREVIEW_CHARS = 400

# Classifier HTML excerpt
CLASSIFIER_HTML_CHARS = 15000

# Quality gate
QUALITY_MAX_GARBAGE_RATIO = 0.5
QUALITY_MIN_VALID_ITEMS = 2
QUALITY_MIN_UNIQUE_TITLE_RATIO = 0.5
QUALITY_MIN_UNIQUE_URL_RATIO = 0.5

# Content extraction
MIN_CONTENT_CHARS = 100
PREVIEW_MAX_CHARS = 500

# Sitemap strategy
SITEMAP_MAX_CHILDREN = 3
SITEMAP_MAX_PAGES = 15
SITEMAP_BATCH_SIZE = 5

# Query parameters dropped during link normalization
TRACKING_PARAMS: Tuple[str, ...] = ("fbclid", "gclid", "ref")
TRACKING_PARAM_PREFIXES: Tuple[str, ...] = ("utm_",)
