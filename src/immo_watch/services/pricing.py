"""Price text normalisation and the minimum-price filter."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from immo_watch.models import CandidateListing


_NOT_PRICE_CHARS = re.compile(r"[^0-9.]")


def normalize_price(text: Optional[str]) -> int:
    """Turn loosely formatted price text into an integer amount.

    Dots are read as thousands separators, so "€ 1.250" gives 1250. Returns 0
    when nothing usable is found. Examples: "€ 250.000", "1.250", "n/a".
    """
    if not text:
        return 0
    cleaned = _NOT_PRICE_CHARS.sub("", text)
    digits = "".join(cleaned.split("."))
    try:
        return int(digits)
    except ValueError:
        return 0


def parse_min_price(raw: Optional[str]) -> int:
    """Threshold from a user-supplied value; 0 disables the filter."""
    return normalize_price(raw) if raw else 0


def filter_by_min_price(items: Iterable[CandidateListing], min_price: int) -> List[CandidateListing]:
    items = list(items)
    if min_price <= 0:
        return items
    return [l for l in items if normalize_price(l.raw_price) >= min_price]
