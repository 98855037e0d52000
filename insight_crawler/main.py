# main.py

"""
Command line entry point.

    insight-crawler resolve <url>
    insight-crawler crawl <url> [--type TYPE]
    insight-crawler run --sources sources.json
"""

import argparse
import asyncio
import json
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, NamedTuple, Optional
from urllib.parse import urlparse

from common.logger import LoggerFactory, LoggerType, LogLevel

from .core.config import settings
from .core.crawl_engine import CrawlEngine
from .core.strategy_factory import StrategyFactory
from .models.crawler import CrawlerType, Source
from .repositories.in_memory_repository import InMemorySourceRepository
from .services.classifier_service import create_classifier
from .services.crawler_service import CrawlerService
from .services.strategy_resolver import StrategyResolver
from .utils.browser_pool import BrowserPool
from .utils.http_client import HttpFetcher
from .utils.url_utils import generate_article_id

logger = LoggerFactory.get_logger(
    name="insight-crawler-main",
    logger_type=LoggerType.STANDARD,
    level=LogLevel.INFO,
    console_level=LogLevel.INFO,
    use_colors=True,
    log_file=f"{settings.log_file_path}insight_crawler.log"
    if settings.enable_file_logging
    else None,
)


class Components(NamedTuple):
    service: CrawlerService
    repository: InMemorySourceRepository


@asynccontextmanager
async def build_components(
    sources: Optional[List[Source]] = None,
) -> AsyncIterator[Components]:
    """Wire the fetcher, browser pool, classifier, engine and service together."""
    fetcher = HttpFetcher()
    browser_pool = BrowserPool()
    factory = StrategyFactory(fetcher=fetcher, browser_pool=browser_pool)
    repository = InMemorySourceRepository(sources)
    resolver = StrategyResolver(fetcher, browser_pool, create_classifier())
    service = CrawlerService(
        repository=repository,
        engine=CrawlEngine(factory),
        resolver=resolver,
        browser_pool=browser_pool,
    )
    try:
        yield Components(service, repository)
    finally:
        await factory.close()
        await browser_pool.close()
        await fetcher.close()


def ad_hoc_source(url: str, crawler_type: CrawlerType) -> Source:
    return Source(
        id=generate_article_id(url),
        name=urlparse(url).netloc or url,
        url=url,
        crawler_type=crawler_type,
    )


def load_sources(path: str) -> List[Source]:
    """Read a JSON array of source objects."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of sources")
    return [Source.model_validate(entry) for entry in data]


def dump(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


async def run_resolve(args: argparse.Namespace) -> int:
    async with build_components() as components:
        resolution = await components.service.preview_resolution(args.url)
    dump(resolution.model_dump(mode="json"))
    return 0


async def run_crawl(args: argparse.Namespace) -> int:
    source = ad_hoc_source(args.url, CrawlerType(args.type))
    async with build_components([source]) as components:
        result = await components.service.crawl_source(source)
        articles = components.repository.articles
    dump(
        {
            "result": result.model_dump(mode="json"),
            "articles": [article.model_dump(mode="json") for article in articles],
        }
    )
    return 0 if result.success else 1


async def run_batch(args: argparse.Namespace) -> int:
    sources = load_sources(args.sources)
    async with build_components(sources) as components:
        results = await components.service.crawl_all_sources()
    dump([result.model_dump(mode="json") for result in results])
    return 0 if all(result.success for result in results) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="insight-crawler", description="Insight article crawler"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    resolve = commands.add_parser("resolve", help="Print the strategy for a URL")
    resolve.add_argument("url", help="Source URL")
    resolve.set_defaults(handler=run_resolve)

    crawl = commands.add_parser("crawl", help="Crawl one URL and print articles")
    crawl.add_argument("url", help="Source URL")
    crawl.add_argument(
        "--type",
        default=CrawlerType.AUTO.value,
        choices=[t.value for t in CrawlerType],
        help="Technique to start with (default: resolve automatically)",
    )
    crawl.set_defaults(handler=run_crawl)

    run = commands.add_parser("run", help="Crawl every source in a JSON file")
    run.add_argument("--sources", required=True, help="Path to a JSON array of sources")
    run.set_defaults(handler=run_batch)
    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """Main function for CLI execution."""
    args = build_parser().parse_args(argv)
    logger.info(f"Running {args.command}")
    return await args.handler(args)


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
