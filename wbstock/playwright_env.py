"""Chromium launch options for the product-page session, read from the environment."""

from __future__ import annotations

import os
from typing import Any

from playwright.async_api import Browser, Playwright
from playwright_stealth import Stealth

from wbstock.logging_config import get_logger

LOGGER = get_logger(__name__)

CHROMIUM_ARGS = (
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--lang=ru-RU",
)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def headless_enabled() -> bool:
    return _env_flag("WBSTOCK_HEADLESS", True)


def stealth_enabled() -> bool:
    return _env_flag("WBSTOCK_STEALTH", True)


def apply_stealth(playwright: Playwright) -> None:
    """Patch ``playwright`` so new pages present a Russian-locale desktop Chrome."""

    stealth = Stealth(
        navigator_languages_override=("ru-RU", "ru"),
        navigator_user_agent_override=os.getenv("USER_AGENT") or None,
    )
    try:
        stealth.hook_playwright_context(playwright)
    except Exception as exc:
        LOGGER.warning("Stealth hook failed; continuing without it: %s", exc)


def launch_kwargs(headless: bool | None = None) -> dict[str, Any]:
    """Keyword arguments for ``chromium.launch``.

    ``WBSTOCK_BROWSER_CHANNEL`` picks an installed Chrome build and
    ``WBSTOCK_PROXY`` (``host:port`` or a full URL) routes traffic through a proxy.
    """

    kwargs: dict[str, Any] = {
        "headless": headless_enabled() if headless is None else headless,
        "args": list(CHROMIUM_ARGS),
    }
    channel = (os.getenv("WBSTOCK_BROWSER_CHANNEL") or "").strip()
    if channel:
        kwargs["channel"] = channel
    proxy = (os.getenv("WBSTOCK_PROXY") or "").strip()
    if proxy:
        kwargs["proxy"] = {"server": proxy if "://" in proxy else f"http://{proxy}"}
    return kwargs


def page_kwargs() -> dict[str, Any]:
    """Keyword arguments for ``browser.new_page``."""

    kwargs: dict[str, Any] = {}
    user_agent = (os.getenv("USER_AGENT") or "").strip()
    if user_agent:
        kwargs["user_agent"] = user_agent
    if _env_flag("WBSTOCK_IGNORE_HTTPS_ERRORS", False):
        kwargs["ignore_https_errors"] = True
    return kwargs


async def launch_browser(playwright: Playwright, *, headless: bool | None = None) -> Browser:
    return await playwright.chromium.launch(**launch_kwargs(headless))


async def close_browser(browser: Browser | None) -> None:
    """Close ``browser`` if it was launched; a failing close is logged, not raised."""

    if browser is None:
        return
    try:
        await browser.close()
    except Exception as exc:
        LOGGER.warning("Browser close failed: %s", exc)
