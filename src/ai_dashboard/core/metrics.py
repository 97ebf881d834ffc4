from typing import List, Optional, Sequence

from ai_dashboard.core.columns import numeric_columns, parse_number
from ai_dashboard.models import Row, SummaryMetrics, TrendInsight

RECOMMENDATIONS = {
    "up": "Performance is trending upward. Consider scaling successful strategies.",
    "down": "Performance decline detected. Review underperforming segments for optimization opportunities.",
}


def _values(rows: Sequence[Row], col: str) -> List[float]:
    # Unparsable cells count as zero so totals line up with the record count
    return [parse_number(row.get(col)) or 0.0 for row in rows]


def primary_metric(rows: Sequence[Row]) -> Optional[str]:
    cols = numeric_columns(rows)
    return cols[0] if cols else None


def summarize(rows: Sequence[Row]) -> Optional[SummaryMetrics]:
    """Metric cards for the first numeric column of the view."""
    col = primary_metric(rows)
    if col is None:
        return None
    values = _values(rows, col)
    total = sum(values)
    return SummaryMetrics(
        column=col,
        total=total,
        average=total / len(values),
        maximum=max(values),
        minimum=min(values),
        count=len(values),
    )


def trend_insight(rows: Sequence[Row]) -> Optional[TrendInsight]:
    """
    First-vs-last movement of the primary metric and a count of rows that sit
    above 1.5x or below 0.5x the average.
    """
    col = primary_metric(rows)
    if col is None:
        return None
    values = _values(rows, col)
    avg = sum(values) / len(values)
    first, last = values[0], values[-1]

    direction = "up" if last > first else "down"
    percent = round((last - first) / first * 100, 1) if first else None
    anomalies = sum(1 for v in values if v > avg * 1.5 or v < avg * 0.5)

    return TrendInsight(
        metric=col,
        direction=direction,
        percent_change=percent,
        average=round(avg, 2),
        peak=max(values),
        lowest=min(values),
        anomalies=anomalies,
        total_records=len(values),
        recommendation=RECOMMENDATIONS[direction],
        suggested_question=f"What strategies can improve {col}?",
    )
