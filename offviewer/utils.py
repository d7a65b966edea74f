"""Utility helpers for query normalization and catalog URL construction.

Search terms are sent to OpenFoodFacts almost verbatim: the catalog does its
own matching, so the only cleanup here is trimming and collapsing whitespace.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Optional
from urllib.parse import quote

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_query(q: Optional[str]) -> str:
    """Trim the term and collapse internal runs of whitespace."""
    if not q:
        return ""
    return _WHITESPACE_RE.sub(" ", q).strip()


def normalize_code(code: Any) -> str:
    """Coerce a catalog identifier to a stripped string.

    The catalog mostly sends codes as strings but older records carry plain
    integers. Anything else (nulls, lists, booleans) yields ``""``.
    """
    if isinstance(code, bool):
        return ""
    if isinstance(code, int):
        return str(code)
    if isinstance(code, str):
        return code.strip()
    return ""


def search_params(term: str) -> Dict[str, Any]:
    return {"search_terms": term, "search_simple": 1, "json": 1}


def product_url(template: str, code: str) -> str:
    # Codes are path segments, so "/" and friends must be escaped too.
    return template.format(code=quote(code, safe=""))
