"""Ordered selector fallbacks over parsed documents.

Pages on the listing site come in more than one template generation. Each
field is described by a list of strategies; the first one that produces
non-empty text wins, so supporting a new template means adding an entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from scrapy import Selector
from scrapy.selector import SelectorList

from immo_watch.config import UNKNOWN
from immo_watch.models import FeatureEntry


@dataclass(frozen=True)
class Css:
    query: str

    def select(self, node: Selector) -> SelectorList:
        return node.css(self.query)


@dataclass(frozen=True)
class XPath:
    query: str

    def select(self, node: Selector) -> SelectorList:
        return node.xpath(self.query)


SelectorStrategy = Union[Css, XPath]


def as_strategies(chain: Iterable[Union[str, SelectorStrategy]]) -> List[SelectorStrategy]:
    """Plain strings in a chain are CSS queries."""
    return [Css(s) if isinstance(s, str) else s for s in chain]


def text_of(node: Optional[Selector]) -> str:
    if node is None:
        return ""
    return "".join(node.xpath(".//text()").getall()).strip()


def extract_first(
    node: Selector,
    strategies: Sequence[Union[str, SelectorStrategy]],
    default: str = UNKNOWN,
) -> str:
    """Trimmed text of the first strategy whose first match is non-empty."""
    for strategy in as_strategies(strategies):
        matches = strategy.select(node)
        if not matches:
            continue
        text = text_of(matches[0])
        if text:
            return text
    return default


def extract_all(node: Selector, strategies: Sequence[Union[str, SelectorStrategy]]) -> List[str]:
    """Texts of every match of the first strategy that yields any non-empty text."""
    for strategy in as_strategies(strategies):
        texts = [text_of(m) for m in strategy.select(node)]
        texts = [t for t in texts if t]
        if texts:
            return texts
    return []


def extract_pairs(terms: Iterable[Selector], value_class: Optional[str] = None) -> List[FeatureEntry]:
    """Pair each ``dt`` with the ``dd`` immediately after it.

    Terms without a following description, or with empty key or value, are
    skipped.
    """
    out: List[FeatureEntry] = []
    for dt in terms:
        key = text_of(dt)
        following = dt.xpath("following-sibling::*[1][self::dd]")
        if value_class:
            following = [d for d in following if value_class in (d.attrib.get("class") or "").split()]
        value = text_of(following[0]) if following else ""
        if key and value:
            out.append(FeatureEntry(key=key, value=value))
    return out


def extract_list_pairs(
    node: Selector, containers: Sequence[Union[str, SelectorStrategy]]
) -> List[FeatureEntry]:
    """Term/description pairs from the first container chain entry that has any."""
    for strategy in as_strategies(containers):
        pairs: List[FeatureEntry] = []
        for container in strategy.select(node):
            pairs.extend(extract_pairs(container.xpath("./dt")))
        if pairs:
            return pairs
    return []
