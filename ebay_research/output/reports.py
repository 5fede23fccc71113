# ebay_research/output/reports.py

"""Plain-text renderings of trend, price-change and rising-product reports."""

from ebay_research.analysis.rounding import round_half_up
from ebay_research.analysis.trend import (
    TREND_LABELS,
    InsufficientData,
    PriceChangeReport,
    RisingProduct,
    TrendAnalysis,
)

RULE = "=" * 70
BAR_WIDTH = 20


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."


def format_change(change: float | None) -> str:
    if change is None:
        return "N/A"
    return f"+{change}%" if change > 0 else f"{change}%"


def balance_bar(balance: float, peak: float) -> str:
    """20-char bar of *balance* relative to *peak*."""
    filled = int(round_half_up(balance / peak * BAR_WIDTH, 0)) if peak else 0
    filled = max(0, min(BAR_WIDTH, filled))
    return "█" * filled + "░" * (BAR_WIDTH - filled)


def render_trend(analysis: TrendAnalysis | InsufficientData) -> str:
    """Balance history with bars, step changes, verdict and advice."""
    if isinstance(analysis, InsufficientData):
        return f"{analysis.product_name}: {analysis.message}"

    lines = [
        RULE,
        f"Trend analysis: {analysis.product_name}",
        RULE,
        "",
        f"Balance history (last {analysis.period_days:g} days)",
    ]

    balances = [s.balance or 0.0 for s in analysis.snapshots]
    peak = max(balances, default=0.0) or 1.0
    previous: float | None = None
    for snapshot, balance in zip(analysis.snapshots, balances):
        step = ""
        if previous is not None and previous > 0:
            change = round_half_up((balance - previous) / previous * 100, 1)
            step = f"  ↑ +{change}%" if change > 0 else f"  ↓ {change}%"
        previous = balance
        lines.append(
            f"   {snapshot.recorded_at:%m/%d}: {balance:.1f}  "
            f"{balance_bar(balance, peak)}{step}"
        )

    lines += [
        "",
        f"Verdict: {TREND_LABELS[analysis.trend]} "
        f"({format_change(analysis.balance.change_percent)} over "
        f"{analysis.period_days:g} days)",
        f"Advice: {analysis.advice}",
        RULE,
    ]
    return "\n".join(lines)


def render_price_changes(report: PriceChangeReport) -> str:
    lines = [
        RULE,
        f"Price changes (moved {report.threshold_percent}% or more "
        f"in the last {report.period_days:g} days)",
        RULE,
    ]
    for title, items, note in (
        ("Falling:", report.falling, "market down"),
        ("Rising:", report.rising, "market up"),
    ):
        if not items:
            continue
        lines += ["", title]
        for c in items:
            lines.append(
                f"  {truncate(c.product_name, 20):<20} "
                f"${c.old_price:.0f} → ${c.new_price:.0f} "
                f"({c.change_percent:+.1f}%)  {note}"
            )

    if report.total_count == 0:
        lines += ["", "  No products matched"]
    lines.append(RULE)
    return "\n".join(lines)


def render_rising(items: list[RisingProduct], days: float) -> str:
    lines = [RULE, f"Rising products (last {days:g} days)", RULE]
    if not items:
        lines += [
            "",
            "   No rising products",
            "   Hint: run fetch-all regularly to accumulate history",
        ]
    else:
        lines += [
            "",
            f"   {'Product':<35} | {'Balance':>11} | Change",
            "   " + "-" * 60,
        ]
        for item in items:
            lines.append(
                f"   {truncate(item.product.product_name, 35):<35} | "
                f"{item.current_balance or 0:>11.2f} | "
                f"{item.balance_change:+.1f}%"
            )
    lines += ["", RULE]
    return "\n".join(lines)
