"""
Column-name heuristics shared by the filter engine, the analyst prompt
and the dashboard metrics. Everything here is pure: schema in, answer out.
"""
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ai_dashboard.models import FilterKind, Row

# Substrings that identify a semantic column in an arbitrary uploaded schema.
SYNONYMS: Dict[FilterKind, Tuple[str, ...]] = {
    FilterKind.REGION:   ("region", "area", "territory", "zone", "location"),
    FilterKind.CATEGORY: ("category", "type", "segment"),
    FilterKind.PRODUCT:  ("product", "item", "name"),
    FilterKind.QUARTER:  ("date", "quarter", "period"),
}


def resolve_column(columns: Iterable[str], kind: FilterKind) -> Optional[str]:
    """First column whose lower-cased name contains one of the kind's synonyms."""
    synonyms = SYNONYMS.get(kind)
    if not synonyms:
        return None
    for col in columns:
        name = str(col).lower()
        if any(s in name for s in synonyms):
            return col
    return None


def parse_number(value) -> Optional[float]:
    """
    Numeric value of a cell, or None.
    Booleans are not numbers here; strings must parse entirely
    (surrounding whitespace and thousands separators allowed).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if value != value else float(value)  # NaN
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return None if number != number else number


def is_numeric(value) -> bool:
    return parse_number(value) is not None


def _first_non_null(rows: Sequence[Row], col: str):
    for row in rows:
        value = row.get(col)
        if value is not None and value != "":
            return value
    return None


def numeric_columns(rows: Sequence[Row], first_non_null: bool = False) -> List[str]:
    """
    Columns treated as numeric.
    By default only the first row is inspected (dashboard behaviour);
    `first_non_null` looks at the first populated value per column instead.
    """
    if not rows:
        return []
    cols = list(rows[0].keys())
    if first_non_null:
        return [c for c in cols if is_numeric(_first_non_null(rows, c))]
    return [c for c in cols if is_numeric(rows[0].get(c))]


def categorical_columns(rows: Sequence[Row]) -> List[str]:
    if not rows:
        return []
    return [c for c in rows[0].keys() if not is_numeric(rows[0].get(c))]


def resolve_numeric_column(rows: Sequence[Row]) -> Optional[str]:
    cols = numeric_columns(rows)
    return cols[0] if cols else None


def distinct_values(rows: Sequence[Row], col: str) -> List:
    """Distinct truthy values of a column, in first-seen order."""
    seen = []
    for row in rows:
        value = row.get(col)
        if value in (None, "") or value in seen:
            continue
        seen.append(value)
    return seen
