# adapters/newsletter_strategy.py

"""
Newsletter archive technique for Stibee, Substack, Mailchimp and generic
archive pages.
"""

from enum import Enum
from typing import Dict, List, Optional

from ..core.exceptions import CrawlerError
from ..models.article import ContentResult, RawContentItem
from ..models.crawler import (
    ContentSelectors,
    CrawlerType,
    LinkProcessing,
    SelectorConfig,
    Source,
)
from ..utils.content_extractor import extract_content, generate_preview
from ..utils.listing_parser import merge_selectors, parse_listing
from .base_strategy import BaseCrawlStrategy

MIN_NEWSLETTER_TITLE_LENGTH = 5
NEWSLETTER_TRACKING_PARAMS = ["mc_cid", "mc_eid"]


class NewsletterPlatform(str, Enum):
    STIBEE = "stibee"
    SUBSTACK = "substack"
    MAILCHIMP = "mailchimp"
    GENERIC = "generic"


PLATFORM_SELECTORS: Dict[NewsletterPlatform, SelectorConfig] = {
    NewsletterPlatform.STIBEE: SelectorConfig(
        item=".archive-list-item, .letter-item, article",
        title=".archive-list-title, .title, h2, h3",
        link="a",
        date=".archive-list-date, .date, time",
    ),
    NewsletterPlatform.SUBSTACK: SelectorConfig(
        item=".post-preview, .post-item, article.post",
        title=".post-preview-title, .post-title, h2",
        link="a",
        date=".post-date, time, .pencraft",
        thumbnail="img",
        author=".author-name, .pencraft .profile-hover-card-target",
    ),
    NewsletterPlatform.MAILCHIMP: SelectorConfig(
        item=".campaign, .archive-list-item, li.campaign-item",
        title=".campaign-title, h2, h3, .title",
        link="a",
        date=".campaign-date, .date, time",
    ),
    NewsletterPlatform.GENERIC: SelectorConfig(
        item="article, .post, .newsletter-item, .archive-item, li",
        title="h2, h3, .title, a",
        link="a",
        date=".date, time, .datetime, .published",
        thumbnail="img",
    ),
}

PLATFORM_CONTENT_SELECTORS: Dict[NewsletterPlatform, str] = {
    NewsletterPlatform.STIBEE: ".stb-text-box, .letter-content, article",
    NewsletterPlatform.SUBSTACK: ".body, .available-content, article",
    NewsletterPlatform.MAILCHIMP: ".email-body, .campaign-content, article",
    NewsletterPlatform.GENERIC: "article, .content, .post-content, .newsletter-content",
}


def detect_platform(url: str) -> NewsletterPlatform:
    lowered = url.lower()
    if "stibee.com" in lowered or ".stibee." in lowered:
        return NewsletterPlatform.STIBEE
    if "substack.com" in lowered or ".substack." in lowered:
        return NewsletterPlatform.SUBSTACK
    if "mailchimp.com" in lowered or "campaign-archive" in lowered:
        return NewsletterPlatform.MAILCHIMP
    return NewsletterPlatform.GENERIC


class NewsletterStrategy(BaseCrawlStrategy):
    """Crawls the public archive page of a newsletter."""

    crawler_type = CrawlerType.NEWSLETTER

    async def list_items(self, source: Source) -> List[RawContentItem]:
        url = source.effective_url
        config = source.config
        platform = detect_platform(url)
        self.logger.info(f"Crawling {platform.value} archive for {source.name}: {url}")

        html = await self.fetcher.get_html(url)
        selectors = merge_selectors(config.selectors, PLATFORM_SELECTORS[platform])

        link_processing = config.link_processing or LinkProcessing()
        link_processing = link_processing.model_copy(
            update={
                "remove_params": list(link_processing.remove_params)
                + NEWSLETTER_TRACKING_PARAMS
            }
        )

        items = [
            item
            for item in parse_listing(
                html,
                url,
                selectors=selectors,
                link_processing=link_processing,
                exclude_selectors=config.exclude_selectors,
            )
            if len(item.title) >= MIN_NEWSLETTER_TITLE_LENGTH
        ]

        result = self.finalize_items(items, source)
        self.logger.info(f"Found {len(result)} items for {source.name}")
        return result

    async def fetch_content(
        self, url: str, hints: Optional[ContentSelectors] = None
    ) -> Optional[ContentResult]:
        try:
            html = await self.fetcher.get_html(url)
        except CrawlerError as e:
            self.logger.warning(f"Content fetch failed for {url}: {e}")
            return None

        if hints is None or not hints.content:
            hints = (hints or ContentSelectors()).model_copy(
                update={"content": PLATFORM_CONTENT_SELECTORS[detect_platform(url)]}
            )
        content = generate_preview(extract_content(html, url, hints))
        return ContentResult(content=content or None)
