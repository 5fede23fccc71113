# ebay_research/output/chart_exporter.py

"""Interactive Plotly HTML chart of a product's balance and price history."""

import importlib
import logging
import re
import webbrowser
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any

from ebay_research.analysis.trend import TrendAnalysis
from ebay_research.config.settings import Settings

logger = logging.getLogger("ebay_research.chart")

_CHARTS_DIR: Path = Settings.CHARTS_DIR


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def _ensure_charts_dir() -> Path:
    _CHARTS_DIR.mkdir(parents=True, exist_ok=True)
    return _CHARTS_DIR


def _slug(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", name[:30]).strip("_") or "product"


def build_trend_chart(analysis: TrendAnalysis) -> Any:
    """Balance on the left axis, average USD price on the right."""
    go = _get_plotly_go()
    dates = [s.recorded_at for s in analysis.snapshots]

    fig: Any = go.Figure()
    fig.add_trace(go.Scatter(
        x=dates,
        y=[s.balance for s in analysis.snapshots],
        mode="lines+markers",
        name="Balance",
        hovertemplate="%{x|%Y-%m-%d %H:%M}<br>Balance: %{y:.2f}<extra></extra>",
    ))
    fig.add_trace(go.Scatter(
        x=dates,
        y=[s.avg_price_usd for s in analysis.snapshots],
        mode="lines+markers",
        name="Avg price (USD)",
        yaxis="y2",
        hovertemplate="%{x|%Y-%m-%d %H:%M}<br>$%{y:.2f}<extra></extra>",
    ))
    fig.update_layout(
        title=f"Trend: {analysis.product_name[:60]}",
        xaxis_title="Date",
        yaxis={"title": "Balance (sold / active)"},
        yaxis2={"title": "Avg price (USD)", "overlaying": "y", "side": "right"},
        hovermode="x unified",
        template="plotly_white",
    )
    return fig


def export_trend_chart(
    analysis: TrendAnalysis,
    open_browser: bool = True,
) -> Path | None:
    """Write the chart as HTML; ``None`` with fewer than two data points."""
    if analysis.data_points < 2:
        logger.warning(
            "Not enough data points for chart: %s", analysis.product_name,
        )
        return None

    fig = build_trend_chart(analysis)
    charts_dir = _ensure_charts_dir()
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = charts_dir / f"{_slug(analysis.product_name)}_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Chart saved to %s", filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())

    return filepath
