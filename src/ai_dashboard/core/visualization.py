"""
visualization.py
─────────────────────────────────────────────────────────────────────────────
Dashboard charts for the active view (filtered subset or full dataset).

  trend       → Line chart, up to 3 numeric series  (needs ≥ 2 numeric columns)
  comparison  → Grouped bar chart                   (needs ≥ 1 numeric column)
  distribution → Pie of the first categorical column (needs a categorical column)

Charts are returned as Plotly JSON so the API and the Streamlit UI share them.
─────────────────────────────────────────────────────────────────────────────
"""

from collections import Counter
from typing import Dict, Optional, Sequence

import plotly.graph_objects as go

from ai_dashboard.config import settings
from ai_dashboard.core.columns import categorical_columns, numeric_columns, parse_number
from ai_dashboard.models import Row
from ai_dashboard.utils.logger import get_logger

logger = get_logger(__name__)

# ── colour palette (dark-theme friendly) ─────────────────────────────────────
COLORS     = ["#4C9BE8", "#F5A623", "#2ECC71", "#FF4B4B", "#9B59B6"]
CLR_BG     = "rgba(0,0,0,0)"
FONT_COLOR = "#FFFFFF"

LAYOUT_BASE = dict(
    paper_bgcolor=CLR_BG,
    plot_bgcolor ="rgba(14,17,23,1)",
    font         =dict(color=FONT_COLOR, size=13),
    margin       =dict(l=60, r=40, t=70, b=80),
    xaxis        =dict(gridcolor="#2a2f3a", zerolinecolor="#2a2f3a"),
    yaxis        =dict(gridcolor="#2a2f3a", zerolinecolor="#2a2f3a"),
)


def _apply_layout(fig: go.Figure, title: str, context_label: Optional[str] = None) -> go.Figure:
    if context_label and context_label != "none":
        title = f"{title}  ·  {context_label}"
    fig.update_layout(**LAYOUT_BASE, title=dict(text=title, font=dict(size=18, color=FONT_COLOR)))
    return fig


def _label_key(rows: Sequence[Row]) -> Optional[str]:
    cats = categorical_columns(rows)
    if cats:
        return cats[0]
    cols = list(rows[0].keys()) if rows else []
    return cols[0] if cols else None


def _series(rows: Sequence[Row], col: str) -> list:
    return [parse_number(row.get(col)) for row in rows]


def trend_chart(rows: Sequence[Row], context_label: Optional[str] = None) -> Optional[go.Figure]:
    num_cols = numeric_columns(rows)
    if len(num_cols) < 2:
        return None
    data = list(rows[:settings.CHART_MAX_ROWS])
    label = _label_key(data)
    x = [str(row.get(label)) for row in data]

    fig = go.Figure()
    for idx, col in enumerate(num_cols[:3]):
        fig.add_trace(go.Scatter(
            x=x, y=_series(data, col), name=col, mode="lines+markers",
            line=dict(color=COLORS[idx % len(COLORS)], width=2),
        ))
    return _apply_layout(fig, "Trend Analysis", context_label)


def comparison_chart(rows: Sequence[Row], context_label: Optional[str] = None) -> Optional[go.Figure]:
    num_cols = numeric_columns(rows)
    if not num_cols:
        return None
    data = list(rows[:settings.CHART_MAX_ROWS])
    label = _label_key(data)
    x = [str(row.get(label)) for row in data]

    fig = go.Figure()
    for idx, col in enumerate(num_cols[:3]):
        fig.add_trace(go.Bar(x=x, y=_series(data, col), name=col,
                             marker_color=COLORS[idx % len(COLORS)]))
    fig.update_layout(barmode="group")
    return _apply_layout(fig, "Comparative Analysis", context_label)


def distribution_chart(rows: Sequence[Row], context_label: Optional[str] = None) -> Optional[go.Figure]:
    cats = categorical_columns(rows)
    if not rows or not cats:
        return None
    col = cats[0]
    # Counter preserves first-seen order; keep the first N categories
    counts = list(Counter(str(row.get(col)) for row in rows).items())[:settings.PIE_MAX_SLICES]

    fig = go.Figure(go.Pie(
        labels=[name for name, _ in counts],
        values=[count for _, count in counts],
        marker=dict(colors=COLORS),
        textinfo="label+percent",
    ))
    return _apply_layout(fig, f"{col} Distribution", context_label)


def generate_dashboard_charts(rows: Sequence[Row], context_label: Optional[str] = None) -> Dict[str, str]:
    """Build every applicable chart and return {name: plotly_json}."""
    if not rows:
        return {}
    charts = {}
    for name, builder in (
        ("trend", trend_chart),
        ("comparison", comparison_chart),
        ("distribution", distribution_chart),
    ):
        try:
            fig = builder(rows, context_label)
        except (ValueError, TypeError) as e:
            logger.warning(f"Chart '{name}' skipped: {e}")
            continue
        if fig is not None:
            charts[name] = fig.to_json()
    return charts
