import io
import json

import pandas as pd
import pytest

from ai_dashboard.core.columns import parse_number, resolve_column, resolve_numeric_column
from ai_dashboard.core.filtering import apply_directive, filter_rows
from ai_dashboard.core.ingestion import load_dataset
from ai_dashboard.core.metrics import summarize, trend_insight
from ai_dashboard.core.query_context import extract_directive
from ai_dashboard.core.visualization import generate_dashboard_charts
from ai_dashboard.models import Dataset, FilterDirective, FilterKind
from ai_dashboard.utils.exceptions import FileProcessingError, UnsupportedFileTypeError


def directive(kind: FilterKind, value: str) -> FilterDirective:
    return FilterDirective(kind=kind, value=value)


# --- Tests for Ingestion ---

def test_ingest_valid_csv():
    """Test that a valid CSV is parsed into row dicts with native values."""
    dataset = load_dataset(b"Region,Sales\nWest,100\nEast,50", "sales.csv")
    assert dataset.filename == "sales.csv"
    assert dataset.rows == [{"Region": "West", "Sales": 100}, {"Region": "East", "Sales": 50}]
    assert dataset.columns == ["Region", "Sales"]

def test_ingest_semicolon_csv():
    dataset = load_dataset(b"Region;Sales\nWest;100\nEast;50\n", "sales.csv")
    assert dataset.columns == ["Region", "Sales"]
    assert len(dataset.rows) == 2

def test_ingest_missing_values_become_none():
    dataset = load_dataset(b"Region,Sales\nWest,\nEast,50.5", "sales.csv")
    assert dataset.rows[0]["Sales"] is None
    assert dataset.rows[1]["Sales"] == 50.5

def test_ingest_xlsx_with_dates():
    df = pd.DataFrame({
        "Date": pd.to_datetime(["2024-01-15", "2024-04-15"]),
        "Sales": [10, 20],
    })
    buf = io.BytesIO()
    df.to_excel(buf, index=False)
    dataset = load_dataset(buf.getvalue(), "report.XLSX")
    assert dataset.rows == [{"Date": "2024-01-15", "Sales": 10}, {"Date": "2024-04-15", "Sales": 20}]

def test_ingest_empty_csv():
    """Test that an empty CSV raises an error."""
    with pytest.raises(FileProcessingError):
        load_dataset(b"", "empty.csv")

def test_ingest_header_only_csv():
    with pytest.raises(FileProcessingError):
        load_dataset(b"A,B\n", "header.csv")

def test_ingest_rejects_other_extensions():
    with pytest.raises(UnsupportedFileTypeError):
        load_dataset(b"a,b\n1,2", "notes.txt")


# --- Tests for Column Heuristics ---

def test_resolve_column_uses_column_order():
    columns = ["Order ID", "Sales Territory", "Region"]
    assert resolve_column(columns, FilterKind.REGION) == "Sales Territory"

def test_resolve_column_none_when_no_synonym():
    assert resolve_column(["Sales", "Units"], FilterKind.CATEGORY) is None

def test_resolve_column_quarter_synonyms():
    assert resolve_column(["Sales", "Order Date"], FilterKind.QUARTER) == "Order Date"

def test_parse_number():
    assert parse_number(12) == 12.0
    assert parse_number(" 1,250.5 ") == 1250.5
    assert parse_number("West") is None
    assert parse_number("") is None
    assert parse_number(True) is None
    assert parse_number(None) is None

def test_resolve_numeric_column_uses_first_row():
    rows = [{"Region": "West", "Units": "7", "Sales": 100}]
    assert resolve_numeric_column(rows) == "Units"


# --- Tests for Query Context Extraction ---

@pytest.mark.parametrize("query, expected", [
    ("show me west region", directive(FilterKind.REGION, "west")),
    ("How is the SOUTH doing?", directive(FilterKind.REGION, "south")),
    ("Show the category electronics in the south", directive(FilterKind.REGION, "south")),
    ("top selling products in the east for q2", directive(FilterKind.REGION, "east")),
    ("categories like 'furniture'", directive(FilterKind.CATEGORY, "furniture")),
    ("show category Electronics", directive(FilterKind.CATEGORY, "electronics")),
    ('sales of product "widget"', directive(FilterKind.PRODUCT, "widget")),
    ("product like gadget please", directive(FilterKind.PRODUCT, "gadget")),
    ("what are the top performing items", directive(FilterKind.TOP, "performance")),
    ("Top selling lines", directive(FilterKind.TOP, "performance")),
    ("How did we do in Q3?", directive(FilterKind.QUARTER, "3")),
])
def test_extract_directive(query, expected):
    assert extract_directive(query) == expected

def test_region_substring_follows_keyword_order():
    # "west" is checked before "northwest"
    assert extract_directive("northwest stores") == directive(FilterKind.REGION, "west")

def test_extract_no_directive():
    assert extract_directive("what is the average order value") is None
    assert extract_directive("top products") is None
    assert extract_directive("") is None

def test_category_word_without_value_falls_through():
    assert extract_directive("which category? q1 only") == directive(FilterKind.QUARTER, "1")


# --- Tests for Row Filtering ---

SALES = [
    {"Region": "West", "Category": "Furniture", "Product": "Desk", "Date": "2024-01-15", "Sales": 100},
    {"Region": "East", "Category": "Electronics", "Product": "Phone", "Date": "2024-04-02", "Sales": 50},
    {"Region": "Western Cape", "Category": "Electronics", "Product": "Laptop", "Date": "2024-06-30", "Sales": 300},
    {"Region": "South", "Category": "Office", "Product": "Desk Lamp", "Date": "2024-07-01", "Sales": 75},
]

def test_end_to_end_region_example():
    dataset = Dataset(rows=[{"Region": "West", "Sales": 100}, {"Region": "East", "Sales": 50}], filename="s.csv")
    found = extract_directive("show me west region")
    view = apply_directive(dataset, found)
    assert view.rows == [{"Region": "West", "Sales": 100}]
    assert view.context_label == "region: west"
    assert view.active

def test_filter_region_substring_case_insensitive():
    result = filter_rows(SALES, directive(FilterKind.REGION, "west"))
    assert [r["Region"] for r in result] == ["West", "Western Cape"]

def test_filter_category_and_product():
    assert len(filter_rows(SALES, directive(FilterKind.CATEGORY, "electronics"))) == 2
    assert [r["Product"] for r in filter_rows(SALES, directive(FilterKind.PRODUCT, "desk"))] == ["Desk", "Desk Lamp"]

def test_filter_quarter_iso_dates():
    rows = SALES + [
        {"Region": "North", "Category": "Office", "Product": "Pen", "Date": "2024-05-31", "Sales": 5},
        {"Region": "North", "Category": "Office", "Product": "Ink", "Date": "2024-03-31", "Sales": 6},
    ]
    result = filter_rows(rows, directive(FilterKind.QUARTER, "2"))
    assert [r["Date"] for r in result] == ["2024-04-02", "2024-06-30", "2024-05-31"]

def test_filter_quarter_literal_token_and_unparseable():
    rows = [
        {"Period": "Q2 FY24", "Sales": 1},
        {"Period": "n/a", "Sales": 2},
        {"Period": "2023-11-03", "Sales": 3},
    ]
    result = filter_rows(rows, directive(FilterKind.QUARTER, "2"))
    assert result == [{"Period": "Q2 FY24", "Sales": 1}]
    assert filter_rows(rows, directive(FilterKind.QUARTER, "4")) == [{"Period": "2023-11-03", "Sales": 3}]

def test_filter_top_sorted_and_capped():
    rows = [{"Name": f"P{i}", "Sales": (i * 37) % 23} for i in range(15)]
    result = filter_rows(rows, directive(FilterKind.TOP, "performance"))
    sales = [r["Sales"] for r in result]
    assert len(result) == 10
    assert sales == sorted(sales, reverse=True)
    assert sales[0] == max(r["Sales"] for r in rows)

def test_filter_top_is_idempotent_and_stable():
    rows = [{"Name": n, "Sales": s} for n, s in [("a", 5), ("b", 9), ("c", 5), ("d", 9), ("e", 1)]]
    once = filter_rows(rows, directive(FilterKind.TOP, "performance"))
    assert [r["Name"] for r in once] == ["b", "d", "a", "c", "e"]
    assert filter_rows(once, directive(FilterKind.TOP, "performance")) == once

def test_filter_top_puts_unparsable_values_last():
    rows = [{"Name": n, "Sales": s} for n, s in [("a", "12"), ("b", None), ("c", 99), ("d", "x")]]
    result = filter_rows(rows, directive(FilterKind.TOP, "performance"))
    assert [r["Name"] for r in result] == ["c", "a", "b", "d"]

def test_filter_quarter_ignores_non_scalar_cells():
    rows = [
        {"Date": {"y": 2024}, "Sales": 1},
        {"Date": ["2024-05-01"], "Sales": 2},
        {"Date": "2024-05-01", "Sales": 3},
    ]
    result = filter_rows(rows, directive(FilterKind.QUARTER, "2"))
    assert result == [{"Date": "2024-05-01", "Sales": 3}]

def test_filter_empty_rows_is_noop():
    for kind, value in [(FilterKind.REGION, "west"), (FilterKind.TOP, "performance"), (FilterKind.QUARTER, "1")]:
        assert filter_rows([], directive(kind, value)) == []

def test_filter_unresolved_column_returns_rows():
    rows = [{"Sales": 1}, {"Sales": 2}]
    assert filter_rows(rows, directive(FilterKind.REGION, "west")) == rows

def test_view_falls_back_when_nothing_matches():
    dataset = Dataset(rows=SALES, filename="s.csv")
    view = apply_directive(dataset, directive(FilterKind.REGION, "central"))
    assert view.rows == SALES
    assert not view.active
    assert view.context_label == "none"

def test_view_falls_back_without_directive_or_column():
    dataset = Dataset(rows=[{"Sales": 1}], filename="s.csv")
    assert apply_directive(dataset, None).context_label == "none"
    view = apply_directive(dataset, directive(FilterKind.PRODUCT, "desk"))
    assert view.rows == [{"Sales": 1}]
    assert not view.active


# --- Tests for Metrics ---

def test_summarize_primary_metric():
    rows = [{"Region": "West", "Sales": 100}, {"Region": "East", "Sales": 50}, {"Region": "South", "Sales": 200}]
    metrics = summarize(rows)
    assert metrics.column == "Sales"
    assert metrics.total == 350
    assert metrics.maximum == 200
    assert metrics.minimum == 50
    assert metrics.count == 3
    assert metrics.average == pytest.approx(116.666, rel=1e-3)

def test_summarize_without_numeric_columns():
    assert summarize([{"Region": "West"}]) is None
    assert summarize([]) is None

def test_trend_insight():
    rows = [{"Sales": 100}, {"Sales": 50}, {"Sales": 200}]
    insight = trend_insight(rows)
    assert insight.direction == "up"
    assert insight.percent_change == 100.0
    assert insight.anomalies == 2
    assert insight.suggested_question == "What strategies can improve Sales?"

def test_trend_insight_zero_start():
    insight = trend_insight([{"Sales": 0}, {"Sales": 0}])
    assert insight.direction == "down"
    assert insight.percent_change is None


# --- Tests for Visualization ---

def test_charts_for_mixed_columns():
    rows = [{"Region": "West", "Sales": 100, "Units": 3}, {"Region": "East", "Sales": 50, "Units": 1}]
    charts = generate_dashboard_charts(rows, "region: west")
    assert set(charts) == {"trend", "comparison", "distribution"}
    fig = json.loads(charts["comparison"])
    assert "data" in fig and "layout" in fig
    assert "region: west" in fig["layout"]["title"]["text"]

def test_charts_skip_trend_with_single_metric():
    charts = generate_dashboard_charts([{"Region": "West", "Sales": 100}])
    assert set(charts) == {"comparison", "distribution"}

def test_charts_empty_rows():
    assert generate_dashboard_charts([]) == {}
