"""Tolerant decoding of OpenFoodFacts JSON payloads.

The upstream schema is not contractually stable, so every optional field is
mapped to a typed value with a fixed fallback here and nowhere else:

* ``product_name`` missing, null or blank -> ``"Unnamed Product"``
* ``ingredients_text`` missing, null or blank -> ``"No ingredients listed"``
* a search entry without a usable ``code`` is skipped, not fatal

Only structurally broken documents raise :class:`~offviewer.errors.DecodeError`:
a bad HTTP status, an empty body, invalid JSON, or a missing top-level
container. A search should show partial results rather than none, while a
broken product page should say so instead of rendering an empty detail view.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from .errors import DecodeError
from .models import NO_INGREDIENTS, UNNAMED_PRODUCT, ProductDetail, ProductSummary
from .utils import normalize_code

logger = logging.getLogger(__name__)


def _text_or(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _load_document(status: int, body: bytes) -> Dict[str, Any]:
    if not 200 <= status <= 299:
        raise DecodeError("http_status", status=status)
    if not body or not body.strip():
        raise DecodeError("empty", "server returned an empty response")
    try:
        document = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError("malformed", "response was not valid JSON") from exc
    if not isinstance(document, dict):
        raise DecodeError("malformed", "response was not a JSON object")
    return document


def decode_search(status: int, body: bytes) -> List[ProductSummary]:
    document = _load_document(status, body)
    entries = document.get("products")
    if not isinstance(entries, list):
        raise DecodeError("malformed", "response has no product list")

    products: List[ProductSummary] = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning("Skipping search entry %s: not an object", position)
            continue
        code = normalize_code(entry.get("code"))
        if not code:
            logger.warning("Skipping search entry %s: missing code", position)
            continue
        products.append(ProductSummary(code=code, name=_text_or(entry.get("product_name"), UNNAMED_PRODUCT)))

    logger.info("Decoded %s of %s search entries", len(products), len(entries))
    return products


def decode_detail(status: int, body: bytes, requested_code: str) -> ProductDetail:
    document = _load_document(status, body)
    product = document.get("product")
    if not isinstance(product, dict):
        # Unknown codes come back as 200 with {"status": 0, "status_verbose": "product not found"}.
        if document.get("status") == 0:
            verbose = _text_or(document.get("status_verbose"), "product not found")
            raise DecodeError("empty", verbose)
        raise DecodeError("malformed", "response has no product object")

    code = (
        normalize_code(product.get("code"))
        or normalize_code(document.get("code"))
        or requested_code
    )
    detail = ProductDetail(
        code=code,
        name=_text_or(product.get("product_name"), UNNAMED_PRODUCT),
        ingredients=_text_or(product.get("ingredients_text"), NO_INGREDIENTS),
    )
    logger.info("Decoded product %s (%s)", detail.code, detail.name)
    return detail
