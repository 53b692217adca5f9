import logging
import re
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from app.config import settings
from app.schemas.web_search import ProductInfo

logger = logging.getLogger(__name__)

# currency sigil, optional space, grouped/decimal amount: "₹2,499", "Rs. 1,299.00", "$45"
PRICE_REGEX = re.compile(r"(?:₹|Rs\.?|INR|\$|€|£)\s?\d[\d,]*(?:\.\d+)?")

BAG_ALT_REGEX = re.compile(r"\b(?:hand)?bags?\b", re.IGNORECASE)
PRICE_CLASS_REGEX = re.compile(r"price", re.IGNORECASE)


def find_price(text: str | None) -> str | None:
    if not text:
        return None
    match = PRICE_REGEX.search(text)
    return match.group(0).strip() if match else None


def _meta_content(soup: BeautifulSoup, prop: str) -> str | None:
    tag = soup.find("meta", attrs={"property": prop}) or soup.find("meta", attrs={"name": prop})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _extract_name(soup: BeautifulSoup) -> str | None:
    name = _meta_content(soup, "og:title")
    if name:
        return name
    if soup.title:
        title = soup.title.get_text(strip=True)
        return title or None
    return None


def _has_src(src: str | None) -> bool:
    return bool(src and src.strip())


def _extract_image(soup: BeautifulSoup, base_url: str) -> str | None:
    src = _meta_content(soup, "og:image")
    if not src:
        img = soup.find("img", alt=BAG_ALT_REGEX, src=_has_src) or soup.find("img", src=_has_src)
        src = (img.get("src") or "").strip() if img else None
    if not src:
        return None
    return urljoin(base_url, src) if base_url else src


def _extract_price(soup: BeautifulSoup) -> str | None:
    candidates = soup.find_all(attrs={"itemprop": "price"}) + soup.find_all(class_=PRICE_CLASS_REGEX)
    for el in candidates:
        price = find_price(el.get_text(" ", strip=True)) or find_price(el.get("content"))
        if price:
            return price

    # fall back to scanning the visible text of the whole page
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    body = soup.body or soup
    return find_price(body.get_text(" ", strip=True))


def extract_product_info(html: str, base_url: str = "") -> ProductInfo | None:
    """Pull name, price and image out of a product page.

    Returns None when none of the three can be found, which is how a
    non-product page (article, listing, error page) is reported.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    name = _extract_name(soup)
    image_url = _extract_image(soup, base_url)
    price = _extract_price(soup)

    info = ProductInfo(name=name, price=price, image_url=image_url)
    if info.is_empty:
        return None
    return info


class PageScraper:
    def __init__(self, user_agent: str | None = None):
        self.headers = {"User-Agent": user_agent or settings.scrape_user_agent}

    async def scrape(self, url: str, client: httpx.AsyncClient | None = None) -> ProductInfo | None:
        """Fetch one candidate page and extract product fields from it."""
        if client is None:
            async with httpx.AsyncClient(timeout=settings.scrape_timeout) as own_client:
                return await self._scrape(url, own_client)
        return await self._scrape(url, client)

    async def _scrape(self, url: str, client: httpx.AsyncClient) -> ProductInfo | None:
        try:
            resp = await client.get(url, headers=self.headers, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Failed to fetch %s: %s", url, exc)
            return None

        if not resp.is_success:
            logger.warning("Failed to fetch %s: %s", url, resp.status_code)
            return None

        try:
            return extract_product_info(resp.text, str(resp.url))
        except Exception:
            logger.exception("Error scraping %s", url)
            return None
