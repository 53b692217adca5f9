import asyncio
import logging
import re

import httpx

from app.config import settings
from app.schemas.web_search import (
    GenericItem,
    GenericResults,
    HandbagResults,
    Product,
    ProductInfo,
    SearchResult,
    UnavailableResults,
)
from app.services.page_scraper import PageScraper
from app.services.search_provider import ExaSearchProvider, SearchProviderError

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL_NAME = "webSearch"
WEB_SEARCH_TOOL_DESCRIPTION = (
    "Search the web for up-to-date information. For handbag queries, returns 4-5 "
    "product recommendations with image, price, and link."
)

HANDBAG_KEYWORDS = ("bag", "handbag", "tote", "sling", "satchel", "backpack", "hobo", "crossbody")
HANDBAG_REGEX = re.compile(r"\b(?:" + "|".join(HANDBAG_KEYWORDS) + r")\b", re.IGNORECASE)


def is_handbag_query(query: str) -> bool:
    return bool(HANDBAG_REGEX.search(query))


def expand_query(query: str, suffix: str | None = None) -> str:
    """Bias handbag queries toward shopping pages; leave everything else alone."""
    if not is_handbag_query(query):
        return query
    suffix = settings.handbag_query_suffix if suffix is None else suffix
    return f"{query}{suffix}"


def is_valid_product(product: Product, require_image: bool = False) -> bool:
    if not product.name or not product.url:
        return False
    if require_image and not product.image_url:
        return False
    return True


def product_score(product: Product) -> int:
    return int(bool(product.image_url)) + int(bool(product.price))


def rank_products(products: list[Product], limit: int) -> list[Product]:
    # sorted() is stable, so equal scores keep search order
    ranked = sorted(products, key=product_score, reverse=True)
    return ranked[:limit]


class WebSearchService:
    def __init__(
        self,
        provider: ExaSearchProvider | None = None,
        scraper: PageScraper | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.provider = provider or ExaSearchProvider()
        self.scraper = scraper or PageScraper()
        self.transport = transport

    async def run(self, query: str) -> HandbagResults | GenericResults | UnavailableResults:
        handbag_mode = is_handbag_query(query)
        search_query = expand_query(query)
        num_results = settings.handbag_num_results if handbag_mode else settings.generic_num_results

        try:
            results = await self.provider.search(
                search_query,
                num_results=num_results,
                include_domains=settings.search_include_domains or None,
            )
        except SearchProviderError as exc:
            logger.exception("Error searching the web for: %s", query)
            return UnavailableResults(query=query, error=str(exc))

        if not handbag_mode:
            return GenericResults(
                query=query,
                items=[
                    GenericItem(
                        title=r.title,
                        url=r.url,
                        content=(r.text or "")[: settings.generic_content_chars],
                        published_date=r.published_date,
                    )
                    for r in results
                ],
            )

        products = await self.collect_products(results)
        logger.info("Kept %d of %d results as products for: %s", len(products), len(results), query)
        return HandbagResults(query=query, items=products)

    async def collect_products(self, results: list[SearchResult]) -> list[Product]:
        """Scrape every result concurrently, then filter, rank and truncate."""
        infos = await self.scrape_all(results)

        products = [
            Product.from_result(result, info)
            for result, info in zip(results, infos)
            if info is not None
        ]
        products = [p for p in products if is_valid_product(p, settings.require_product_image)]
        return rank_products(products, settings.max_products)

    async def scrape_all(self, results: list[SearchResult]) -> list[ProductInfo | None]:
        semaphore = asyncio.Semaphore(max(1, settings.scrape_concurrency))

        async with httpx.AsyncClient(
            timeout=settings.scrape_timeout, transport=self.transport
        ) as client:

            async def scrape_one(result: SearchResult) -> ProductInfo | None:
                async with semaphore:
                    try:
                        return await asyncio.wait_for(
                            self.scraper.scrape(result.url, client),
                            timeout=settings.scrape_timeout,
                        )
                    except asyncio.TimeoutError:
                        logger.warning("Timed out scraping %s", result.url)
                        return None
                    except Exception:
                        # CancelledError is a BaseException and still propagates
                        logger.exception("Error scraping %s", result.url)
                        return None

            return await asyncio.gather(*(scrape_one(r) for r in results))
