import math
from datetime import date
from typing import List, Optional, Sequence

import pandas as pd

from ai_dashboard.config import settings
from ai_dashboard.core.columns import parse_number, resolve_column, resolve_numeric_column
from ai_dashboard.models import Dataset, FilterDirective, FilterKind, FilteredView, Row
from ai_dashboard.utils.logger import get_logger

logger = get_logger(__name__)


def _row_quarter(value) -> Optional[int]:
    """Calendar quarter of a date-like cell, or None when it is not a date."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float, date)):
        return None
    if value == "":
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return (ts.month - 1) // 3 + 1


def _matches_quarter(value, quarter: int) -> bool:
    if f"q{quarter}" in str(value).lower():
        return True
    return _row_quarter(value) == quarter


def _contains(rows: Sequence[Row], col: str, needle: str) -> List[Row]:
    needle = needle.lower()
    return [row for row in rows if needle in str(row.get(col)).lower()]


def _top_rows(rows: Sequence[Row], col: str, limit: int) -> List[Row]:
    def key(row: Row) -> float:
        number = parse_number(row.get(col))
        return -math.inf if number is None else number

    # sorted() keeps ties in input order even with reverse=True
    return sorted(rows, key=key, reverse=True)[:limit]


def resolve_filter_column(rows: Sequence[Row], directive: FilterDirective) -> Optional[str]:
    """The column a directive filters on, or None when the schema has no match."""
    if not rows:
        return None
    if directive.kind == FilterKind.TOP:
        return resolve_numeric_column(rows)
    return resolve_column(rows[0].keys(), directive.kind)


def filter_rows(rows: Sequence[Row], directive: Optional[FilterDirective], top_n: Optional[int] = None) -> List[Row]:
    """
    Narrow `rows` according to `directive`.

    Returns the input rows unchanged (as a new list) when there are no rows,
    no directive, or no column in the schema matches the directive's kind.
    """
    if not rows or directive is None:
        return list(rows)

    col = resolve_filter_column(rows, directive)
    if col is None:
        logger.info(f"No column resolved for directive '{directive.label}'")
        return list(rows)

    if directive.kind in (FilterKind.REGION, FilterKind.CATEGORY, FilterKind.PRODUCT):
        return _contains(rows, col, directive.value)

    if directive.kind == FilterKind.QUARTER:
        quarter = int(directive.value)
        return [row for row in rows if _matches_quarter(row.get(col), quarter)]

    if directive.kind == FilterKind.TOP:
        limit = top_n if top_n is not None else settings.TOP_N_ROWS
        return _top_rows(rows, col, limit)

    return list(rows)


def apply_directive(dataset: Optional[Dataset], directive: Optional[FilterDirective]) -> FilteredView:
    """
    Build the dashboard view for a directive.

    Falls back to the full dataset (label "none") when there is no directive,
    the directive's column cannot be resolved, or nothing matched.
    """
    rows = dataset.rows if dataset is not None else []
    if directive is None or not rows:
        return FilteredView(rows=list(rows), directive=directive)

    if resolve_filter_column(rows, directive) is None:
        return FilteredView(rows=list(rows), directive=directive)

    filtered = filter_rows(rows, directive)
    if not filtered:
        logger.info(f"Directive '{directive.label}' matched no rows, showing full dataset")
        return FilteredView(rows=list(rows), directive=directive)

    logger.info(f"Directive '{directive.label}' kept {len(filtered)}/{len(rows)} rows")
    return FilteredView(rows=filtered, directive=directive, active=True, matched_rows=len(filtered))
