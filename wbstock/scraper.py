"""Browser session that loads a product page and captures its stock response."""

from __future__ import annotations

from typing import Any, Callable

from playwright.async_api import Browser, Route, async_playwright

from wbstock.errors import ResponseParseError, ResponseTimeoutError
from wbstock.logging_config import get_logger
from wbstock.matcher import ResponseMatcher
from wbstock.models import ScrapeTarget, ScraperSettings, StockResult
from wbstock.playwright_env import apply_stealth, close_browser, launch_browser, page_kwargs

LOGGER = get_logger(__name__)


async def _pass_through(route: Route) -> None:
    await route.continue_()


class StockScraper:
    """Drive one browser session against ``target`` and return its stock.

    Launch and navigation failures are logged and produce the default
    (empty) result. A malformed stock response or an elapsed response
    deadline produces an error result. Without a deadline the run waits
    for the matching response indefinitely.
    """

    def __init__(
        self,
        target: ScrapeTarget,
        settings: ScraperSettings | None = None,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.target = target
        self.settings = settings or ScraperSettings()
        self._playwright_factory = playwright_factory

    async def run(self) -> StockResult:
        result = StockResult.empty(self.target.article_id)

        try:
            async with self._playwright_factory() as playwright:
                if self.settings.stealth:
                    apply_stealth(playwright)
                browser: Browser | None = None
                try:
                    browser = await launch_browser(playwright, headless=self.settings.headless)
                    result = await self._capture(browser, result)
                finally:
                    await close_browser(browser)
        except (ResponseParseError, ResponseTimeoutError) as exc:
            LOGGER.error("Stock capture failed for article %s: %s", self.target.article_id, exc)
            result = StockResult.failed(self.target.article_id, str(exc))
        except Exception:
            LOGGER.exception("Error launching browser for article %s", self.target.article_id)

        return result

    async def _capture(self, browser: Browser, result: StockResult) -> StockResult:
        page = await browser.new_page(**page_kwargs())
        await page.set_viewport_size(
            {
                "width": self.settings.viewport_width,
                "height": self.settings.viewport_height,
            }
        )
        await page.route("**/*", _pass_through)

        matcher = ResponseMatcher(self.settings.url_pattern)
        matcher.attach(page)

        LOGGER.info("Opening %s", self.target.url)
        await page.goto(
            self.target.url,
            wait_until=self.settings.wait_until,
            timeout=self.settings.goto_timeout_ms,
        )

        products = await matcher.wait(self.settings.response_timeout)
        if products is None:
            LOGGER.debug("Matched response %s carried no products", matcher.matched_url)
            return result

        LOGGER.info(
            "Captured stock | article=%s products=%d url=%s",
            self.target.article_id,
            len(products),
            matcher.matched_url,
        )
        return StockResult.ok(self.target.article_id, products)


async def fetch_stock(
    target: ScrapeTarget,
    settings: ScraperSettings | None = None,
    *,
    playwright_factory: Callable[[], Any] = async_playwright,
) -> StockResult:
    """Run a single scrape for ``target``."""

    return await StockScraper(target, settings, playwright_factory=playwright_factory).run()


__all__ = ["StockScraper", "fetch_stock"]
