"""
query_context.py
─────────────────────────────────────────────────────────────────────────────
Classifies a free-text chat message into at most one filter directive.

Rules run in a fixed priority order and the first match wins:
  region keyword          → region:   <keyword>
  category <word>         → category: <word>
  product <word>          → product:  <word>
  top + selling/performing → top:     performance
  q1..q4                  → quarter:  <digit>
Directives never combine; a message with no match clears the filter.
─────────────────────────────────────────────────────────────────────────────
"""

import re
from typing import Callable, Optional, Tuple

from ai_dashboard.models import FilterDirective, FilterKind

REGION_KEYWORDS = (
    "west", "east", "north", "south", "central",
    "northeast", "northwest", "southeast", "southwest",
)

_CATEGORY_RE = re.compile(r"(?:category|categories)\s+(?:like\s+)?[\"']?(\w+)[\"']?", re.IGNORECASE)
_PRODUCT_RE  = re.compile(r"product\s+(?:like\s+)?[\"']?(\w+)[\"']?", re.IGNORECASE)
_QUARTER_RE  = re.compile(r"q([1-4])", re.IGNORECASE)


# ── rules (each takes the lower-cased query) ─────────────────────────────────
def _region_rule(q: str) -> Optional[FilterDirective]:
    # Substring match in list order, so "northwest" resolves to "west".
    for region in REGION_KEYWORDS:
        if region in q:
            return FilterDirective(kind=FilterKind.REGION, value=region)
    return None


def _category_rule(q: str) -> Optional[FilterDirective]:
    if "category" not in q and "categories" not in q:
        return None
    match = _CATEGORY_RE.search(q)
    if match:
        return FilterDirective(kind=FilterKind.CATEGORY, value=match.group(1))
    return None


def _product_rule(q: str) -> Optional[FilterDirective]:
    if "product" not in q:
        return None
    match = _PRODUCT_RE.search(q)
    if match:
        return FilterDirective(kind=FilterKind.PRODUCT, value=match.group(1))
    return None


def _top_rule(q: str) -> Optional[FilterDirective]:
    if "top" in q and ("selling" in q or "performing" in q):
        return FilterDirective(kind=FilterKind.TOP, value="performance")
    return None


def _quarter_rule(q: str) -> Optional[FilterDirective]:
    match = _QUARTER_RE.search(q)
    if match:
        return FilterDirective(kind=FilterKind.QUARTER, value=match.group(1))
    return None


RULES: Tuple[Callable[[str], Optional[FilterDirective]], ...] = (
    _region_rule,
    _category_rule,
    _product_rule,
    _top_rule,
    _quarter_rule,
)


def extract_directive(query: str) -> Optional[FilterDirective]:
    """Return the first matching directive for `query`, or None."""
    q = (query or "").lower()
    for rule in RULES:
        directive = rule(q)
        if directive is not None:
            return directive
    return None
