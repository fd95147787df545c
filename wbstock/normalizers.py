"""Helpers for reducing the Wildberries card payload to stock totals."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from wbstock.errors import ResponseParseError
from wbstock.models import ProductStock


def _coerce_qty(value: Any) -> int | float:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return 0
        return number if math.isfinite(number) else 0
    return 0


def calc_quantity(stocks: Any) -> int | float:
    """Sum the ``qty`` of every stock entry; absent or odd input counts as 0."""

    if stocks is None or isinstance(stocks, (str, bytes, Mapping)):
        return 0
    if not isinstance(stocks, Iterable):
        return 0

    total: int | float = 0
    for entry in stocks:
        if isinstance(entry, Mapping):
            total += _coerce_qty(entry.get("qty"))

    if isinstance(total, float) and total.is_integer():
        return int(total)
    return total


def build_product_info(product: Mapping[str, Any]) -> ProductStock:
    """Map one raw product record to its per-size stock totals.

    Sizes sharing an ``origName`` are not merged: the last one wins.
    """

    stock: dict[str, int | float] = {}
    sizes = product.get("sizes")
    if isinstance(sizes, list):
        for size in sizes:
            if not isinstance(size, Mapping):
                continue
            name = size.get("origName")
            if name is None:
                continue
            stock[str(name)] = calc_quantity(size.get("stocks"))

    return ProductStock(art=product.get("id"), stock=stock)


def extract_products(payload: Any, *, url: str | None = None) -> list[ProductStock] | None:
    """Return the products found under ``data.products``, or None when absent."""

    data = payload.get("data") if isinstance(payload, Mapping) else None
    products = data.get("products") if isinstance(data, Mapping) else None
    if products is None:
        return None
    if not isinstance(products, list):
        raise ResponseParseError(
            f"Expected data.products to be a list, got {type(products).__name__}",
            url=url,
        )

    result: list[ProductStock] = []
    for product in products:
        if not isinstance(product, Mapping):
            raise ResponseParseError(
                f"Expected product record to be an object, got {type(product).__name__}",
                url=url,
            )
        result.append(build_product_info(product))
    return result


__all__ = ["build_product_info", "calc_quantity", "extract_products"]
