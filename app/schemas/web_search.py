from typing import Annotated, Literal
from urllib.parse import urlparse

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter


class WebSearchInput(BaseModel):
    query: str = Field(min_length=1, description="The search query")


class SearchResult(BaseModel):
    url: str
    title: str = ""
    text: str | None = None
    published_date: str | None = None


class ProductInfo(BaseModel):
    """Fields scraped from a single page. All empty means "not a product page"."""

    name: str | None = None
    price: str | None = None  # raw matched text, e.g. "₹2,499"
    image_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.price or self.image_url)


class Product(BaseModel):
    name: str = Field(validation_alias=AliasChoices("name", "productName"))
    price: str | None = None
    image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("image_url", "imageUrl")
    )
    url: str
    store: str | None = Field(default=None, validation_alias=AliasChoices("store", "domain"))

    @classmethod
    def from_result(cls, result: SearchResult, info: ProductInfo) -> "Product":
        return cls(
            name=info.name or result.title,
            price=info.price or None,
            image_url=info.image_url or None,
            url=result.url,
            store=store_from_url(result.url),
        )


class GenericItem(BaseModel):
    title: str
    url: str
    content: str = ""
    published_date: str | None = None


class HandbagResults(BaseModel):
    type: Literal["handbags"] = "handbags"
    query: str
    items: list[Product] = []


class GenericResults(BaseModel):
    type: Literal["generic"] = "generic"
    query: str
    items: list[GenericItem] = []


class UnavailableResults(BaseModel):
    """The search provider could not be reached; distinct from an empty result."""

    type: Literal["unavailable"] = "unavailable"
    query: str
    items: list = []
    error: str = ""


WebSearchOutput = Annotated[
    HandbagResults | GenericResults | UnavailableResults,
    Field(discriminator="type"),
]

web_search_output_adapter = TypeAdapter(WebSearchOutput)


def store_from_url(url: str) -> str | None:
    host = urlparse(url).hostname
    if not host:
        return None
    return host.removeprefix("www.")
