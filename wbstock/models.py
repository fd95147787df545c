"""Value types shared by the scraper, the matcher and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_ARTICLE_ID = 146972802
DEFAULT_URL_TEMPLATE = "https://www.wildberries.ru/catalog/{article_id}/detail.aspx"
DEFAULT_URL_PATTERN = "/cards/v1/detail"


@dataclass(frozen=True)
class ScrapeTarget:
    """Article to scrape and the template its product page URL is built from."""

    article_id: int
    url_template: str = DEFAULT_URL_TEMPLATE

    @property
    def url(self) -> str:
        return self.url_template.format(article_id=self.article_id)


@dataclass(frozen=True)
class ScraperSettings:
    """Per-run knobs for the browser session."""

    url_pattern: str = DEFAULT_URL_PATTERN
    # None waits for the matching response indefinitely.
    response_timeout: float | None = None
    viewport_width: int = 1200
    viewport_height: int = 800
    goto_timeout_ms: int = 60000
    wait_until: str = "load"
    headless: bool | None = None
    stealth: bool = True


@dataclass
class ProductStock:
    """Per-size stock totals for one product variant."""

    art: Any
    stock: dict[str, int | float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"art": self.art, "stock": dict(self.stock)}


class ResultStatus(str, Enum):
    """Outcome of a scrape run."""

    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


@dataclass
class StockResult:
    """Tagged result of one scrape run.

    ``OK`` carries the products parsed from the matched response. ``EMPTY`` is
    the default envelope (no products were processed). ``ERROR`` carries a
    reportable failure message.
    """

    status: ResultStatus
    art: int
    products: list[ProductStock] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def ok(cls, art: int, products: list[ProductStock]) -> StockResult:
        return cls(status=ResultStatus.OK, art=art, products=list(products))

    @classmethod
    def empty(cls, art: int) -> StockResult:
        return cls(status=ResultStatus.EMPTY, art=art)

    @classmethod
    def failed(cls, art: int, error: str) -> StockResult:
        return cls(status=ResultStatus.ERROR, art=art, error=error)

    def to_dict(self) -> dict[str, Any]:
        if self.status is ResultStatus.OK:
            return {
                "status": self.status.value,
                "products": [product.to_dict() for product in self.products],
            }
        if self.status is ResultStatus.ERROR:
            return {"status": self.status.value, "art": self.art, "error": self.error}
        return {"status": self.status.value, "art": self.art, "stock": {}}

    def to_legacy(self) -> list[dict[str, Any]] | dict[str, Any]:
        """Return the untagged shape: a product list, or the default envelope."""

        if self.status is ResultStatus.OK:
            return [product.to_dict() for product in self.products]
        return {"art": self.art, "stock": {}}


__all__ = [
    "DEFAULT_ARTICLE_ID",
    "DEFAULT_URL_PATTERN",
    "DEFAULT_URL_TEMPLATE",
    "ProductStock",
    "ResultStatus",
    "ScrapeTarget",
    "ScraperSettings",
    "StockResult",
]
