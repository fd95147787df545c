"""One-shot capture of the stock-detail response emitted by a product page."""

from __future__ import annotations

import asyncio
from typing import Any

from playwright.async_api import Error as PlaywrightError

from wbstock.errors import ResponseParseError, ResponseTimeoutError
from wbstock.logging_config import get_logger
from wbstock.models import DEFAULT_URL_PATTERN, ProductStock
from wbstock.normalizers import extract_products

LOGGER = get_logger(__name__)


class ResponseMatcher:
    """Resolve a future with the products of the first response matching ``pattern``.

    The listener stays registered on the page after the future settles; later
    matching responses are ignored without being read.
    """

    def __init__(self, pattern: str = DEFAULT_URL_PATTERN) -> None:
        self.pattern = pattern
        self.matched_url: str | None = None
        self._future: asyncio.Future[list[ProductStock] | None] | None = None

    @property
    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def attach(self, page: Any) -> None:
        """Register the response listener; call before navigating."""

        self._future = asyncio.get_running_loop().create_future()
        page.on("response", self._on_response)

    def matches(self, url: str) -> bool:
        return self.pattern in url

    async def _on_response(self, response: Any) -> None:
        future = self._future
        if future is None or future.done():
            return
        url = response.url
        if not self.matches(url):
            return

        LOGGER.debug("Matched stock response: %s", url)
        try:
            payload = await response.json()
            products = extract_products(payload, url=url)
        except ResponseParseError as exc:
            self._settle_error(future, url, exc)
            return
        except (PlaywrightError, ValueError) as exc:
            self._settle_error(
                future,
                url,
                ResponseParseError(f"Malformed JSON body: {exc}", url=url),
            )
            return

        # Another matching response may have settled the future while the body was read.
        if future.done():
            return
        self.matched_url = url
        future.set_result(products)

    def _settle_error(
        self,
        future: asyncio.Future[list[ProductStock] | None],
        url: str,
        exc: ResponseParseError,
    ) -> None:
        if future.done():
            return
        LOGGER.debug("Failed to parse stock response %s: %s", url, exc)
        self.matched_url = url
        future.set_exception(exc)

    async def wait(self, timeout: float | None = None) -> list[ProductStock] | None:
        """Wait for the first matching response; ``timeout=None`` waits forever."""

        if self._future is None:
            raise RuntimeError("ResponseMatcher.wait() called before attach()")
        if timeout is None:
            return await self._future
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError as exc:
            raise ResponseTimeoutError(timeout, self.pattern) from exc


__all__ = ["ResponseMatcher"]
