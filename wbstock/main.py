"""Command-line interface entry point for the wbstock scraper."""

from __future__ import annotations

import argparse
import asyncio
from copy import deepcopy
import json
from pathlib import Path
import sys
from typing import Any, Iterable

import yaml
from dotenv import load_dotenv

from wbstock.errors import ConfigError
from wbstock.logging_config import configure_logging, get_logger
from wbstock.models import (
    DEFAULT_ARTICLE_ID,
    DEFAULT_URL_PATTERN,
    DEFAULT_URL_TEMPLATE,
    ResultStatus,
    ScrapeTarget,
    ScraperSettings,
    StockResult,
)
from wbstock.playwright_env import stealth_enabled
from wbstock.scraper import fetch_stock

LOGGER = get_logger(__name__)

DEFAULT_CONFIG_PATH = str(Path(__file__).with_name("config.yml"))
WAIT_UNTIL_STATES = {"load", "domcontentloaded", "networkidle", "commit"}

DEFAULT_CONFIG: dict[str, Any] = {
    "target": {
        "article_id": DEFAULT_ARTICLE_ID,
        "url_template": DEFAULT_URL_TEMPLATE,
    },
    "matcher": {
        "url_pattern": DEFAULT_URL_PATTERN,
        "response_timeout": None,
    },
    "browser": {
        "viewport": {"width": 1200, "height": 800},
        "goto_timeout_ms": 60000,
        "wait_until": "load",
    },
}


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Print per-size stock for a Wildberries article as JSON."
    )
    parser.add_argument(
        "--article",
        type=int,
        help="Article id to scrape (overrides target.article_id).",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to the YAML configuration file (default: the config.yml shipped with wbstock).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for the stock response (default: wait indefinitely).",
    )
    parser.add_argument(
        "--legacy-output",
        action="store_true",
        help="Print the product list, or the bare {art, stock} envelope, without a status tag.",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window.",
    )

    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.article is not None and args.article <= 0:
        parser.error("--article must be a positive integer")
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be a positive number of seconds")
    return args


def _deep_merge(default: Any, override: Any) -> Any:
    if not isinstance(default, dict) or not isinstance(override, dict):
        return deepcopy(override)

    merged: dict[str, Any] = deepcopy(default)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _load_config(path: Path) -> dict[str, Any]:
    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = yaml.safe_load(handle) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    else:
        LOGGER.warning("Configuration file %s not found; using defaults", path)
        data = {}

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root in {path} must be a mapping")
    return _deep_merge(DEFAULT_CONFIG, data) if data else deepcopy(DEFAULT_CONFIG)


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from exc
    if number <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return number


def _optional_timeout(value: Any) -> float | None:
    if value is None:
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"matcher.response_timeout must be a number, got {value!r}") from exc
    if timeout <= 0:
        raise ConfigError("matcher.response_timeout must be greater than zero")
    return timeout


def build_target(config: dict[str, Any], article_id: int | None = None) -> ScrapeTarget:
    target_conf = config.get("target") or {}
    template = str(target_conf.get("url_template") or "").strip()
    if "{article_id}" not in template:
        raise ConfigError("target.url_template must contain an {article_id} placeholder")
    try:
        template.format(article_id=1)
    except (KeyError, IndexError, ValueError) as exc:
        raise ConfigError(
            f"target.url_template may only use the {{article_id}} placeholder: {template!r}"
        ) from exc
    article = article_id if article_id is not None else target_conf.get("article_id")
    return ScrapeTarget(
        article_id=_positive_int(article, "target.article_id"),
        url_template=template,
    )


def build_settings(
    config: dict[str, Any],
    *,
    timeout: float | None = None,
    headed: bool = False,
) -> ScraperSettings:
    matcher_conf = config.get("matcher") or {}
    browser_conf = config.get("browser") or {}
    viewport = browser_conf.get("viewport") or {}

    pattern = str(matcher_conf.get("url_pattern") or "").strip()
    if not pattern:
        raise ConfigError("matcher.url_pattern must not be empty")

    wait_until = str(browser_conf.get("wait_until") or "load").strip()
    if wait_until not in WAIT_UNTIL_STATES:
        raise ConfigError(
            f"browser.wait_until must be one of {sorted(WAIT_UNTIL_STATES)}, got {wait_until!r}"
        )

    return ScraperSettings(
        url_pattern=pattern,
        response_timeout=timeout if timeout is not None else _optional_timeout(
            matcher_conf.get("response_timeout")
        ),
        viewport_width=_positive_int(viewport.get("width", 1200), "browser.viewport.width"),
        viewport_height=_positive_int(viewport.get("height", 800), "browser.viewport.height"),
        goto_timeout_ms=_positive_int(
            browser_conf.get("goto_timeout_ms", 60000), "browser.goto_timeout_ms"
        ),
        wait_until=wait_until,
        headless=False if headed else None,
        stealth=stealth_enabled(),
    )


def render_result(result: StockResult, *, legacy: bool = False) -> str:
    payload = result.to_legacy() if legacy else result.to_dict()
    return json.dumps(payload, ensure_ascii=False)


async def _async_main(argv: Iterable[str] | None = None) -> StockResult:
    args = parse_args(argv)
    load_dotenv()

    config = _load_config(Path(args.config))
    target = build_target(config, args.article)
    settings = build_settings(config, timeout=args.timeout, headed=args.headed)
    LOGGER.info(
        "Starting scrape | article=%s pattern=%s response_timeout=%s",
        target.article_id,
        settings.url_pattern,
        settings.response_timeout,
    )

    result = await fetch_stock(target, settings)
    print(render_result(result, legacy=args.legacy_output))
    return result


def main(argv: Iterable[str] | None = None) -> None:
    configure_logging()
    try:
        result = asyncio.run(_async_main(argv))
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except KeyboardInterrupt:  # pragma: no cover - interactive safety
        LOGGER.info("Interrupted by user")
        sys.exit(130)

    if result.status is ResultStatus.ERROR:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
