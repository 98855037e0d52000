# services/type_inference.py

"""
Technique inference from the shape of a URL alone.
"""

from typing import List, NamedTuple, Tuple

from ..models.crawler import CrawlerType

NEWSLETTER_MARKERS = ("stibee.com", "substack.com", "mailchimp.com", "campaign-archive")
API_MARKERS = ("/api/", ".json", "graphql")
FEED_MARKERS = ("/rss", "/feed", ".xml", "atom.xml")
CMS_MARKERS = (
    "wp-content",
    "wp-includes",
    "wordpress",
    "tistory.com",
    "medium.com",
    "/ghost/",
)
PUBLIC_SECTOR_MARKERS = (".go.kr", ".or.kr")
FRAMEWORK_MARKERS = ("react-app", "vue-app", "angular")


class TypeInference(NamedTuple):
    crawler_type: CrawlerType
    confidence: float


# Checked in order; the first rule with a matching marker wins
URL_RULES: List[Tuple[Tuple[str, ...], CrawlerType, float]] = [
    (FEED_MARKERS, CrawlerType.RSS, 0.95),
    (("blog.naver.com",), CrawlerType.PLATFORM_NAVER, 0.95),
    (("naver.com",), CrawlerType.PLATFORM_NAVER, 0.85),
    (("brunch.co.kr",), CrawlerType.PLATFORM_KAKAO, 0.95),
    (NEWSLETTER_MARKERS, CrawlerType.NEWSLETTER, 0.9),
    (API_MARKERS, CrawlerType.API, 0.85),
    (CMS_MARKERS, CrawlerType.STATIC, 0.75),
    (PUBLIC_SECTOR_MARKERS, CrawlerType.SPA, 0.95),
    (FRAMEWORK_MARKERS, CrawlerType.SPA, 0.7),
]

DEFAULT_INFERENCE = TypeInference(CrawlerType.SPA, 0.5)


def infer_crawler_type(url: str) -> TypeInference:
    """
    Guess a technique from the URL.

    Unknown URLs default to the rendered technique, which can read almost
    any page, with a confidence of 0.5.
    """
    lowered = url.lower()
    for markers, crawler_type, confidence in URL_RULES:
        if any(marker in lowered for marker in markers):
            return TypeInference(crawler_type, confidence)
    return DEFAULT_INFERENCE
