"""Rendering of audit results: JSON-ready dicts, text report and chart."""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from .models import FacadeAuditResult, Opportunity, SubItem

logger = logging.getLogger(__name__)


def _sub_item_to_dict(item: SubItem) -> dict:
    data = {
        "url": item.url,
        "transferSize": item.transfer_size,
        "blockingTime": item.blocking_time,
        "mainThreadTime": item.main_thread_time,
    }
    if item.first_start_time is not None:
        data["firstStartTime"] = item.first_start_time
    if item.first_end_time is not None:
        data["firstEndTime"] = item.first_end_time
    return data


def _opportunity_to_dict(opp: Opportunity) -> dict:
    return {
        "productName": opp.product_name,
        "entityName": opp.entity_name,
        "facade": {"name": opp.facade.name, "link": opp.facade.repo},
        "totalTransferSize": opp.total_transfer_size,
        "totalBlockingTime": opp.total_blocking_time,
        "subItems": [_sub_item_to_dict(item) for item in opp.sub_items],
    }


def result_to_dict(result: FacadeAuditResult) -> dict:
    """camelCase dict of an audit result, ready for json.dumps."""
    return {
        "pageUrl": result.page_url,
        "isApplicable": result.is_applicable,
        "score": result.score,
        "displayValue": result.display_value,
        "summary": {
            "wastedBytes": result.summary.wasted_bytes,
            "wastedMs": result.summary.wasted_ms,
        },
        "opportunities": [_opportunity_to_dict(opp) for opp in result.opportunities],
    }


def _format_bytes(size: float) -> str:
    if size < 1024:
        return f"{int(size)} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.2f} MiB"


def format_report(result: FacadeAuditResult) -> str:
    """Plain-text report of an audit result."""
    lines = ["=" * 70, f"FACADE AUDIT: {result.page_url}", "=" * 70]
    if not result.is_applicable:
        lines.append("  No third-party embeds with facade alternatives found.")
        lines.append("=" * 70)
        return "\n".join(lines)

    lines.append(f"  {result.display_value}")
    lines.append(f"  Potential savings:  {_format_bytes(result.summary.wasted_bytes)}, "
                 f"{result.summary.wasted_ms:,.0f} ms blocking")
    for opp in result.opportunities:
        lines.append("")
        lines.append(f"  {opp.product_name} ({opp.entity_name})")
        lines.append(f"    Facade: {opp.facade.name} <{opp.facade.repo}>")
        lines.append(f"    Total:  {_format_bytes(opp.total_transfer_size)}, "
                     f"{opp.total_blocking_time:,.0f} ms blocking")
        for item in opp.sub_items:
            lines.append(
                f"      {_format_bytes(item.transfer_size):>10}  "
                f"{item.blocking_time:>6,.0f} ms  {item.url}"
            )
    lines.append("=" * 70)
    return "\n".join(lines)


def chart_opportunities(result: FacadeAuditResult, out: Path) -> Path | None:
    """Horizontal bar chart of transfer size per product. Returns the file path."""
    if not result.opportunities:
        logger.info("No opportunities to chart for %s", result.page_url)
        return None

    products = [opp.product_name for opp in result.opportunities]
    kib = [opp.total_transfer_size / 1024 for opp in result.opportunities]

    fig, ax = plt.subplots(figsize=(10, max(3, 0.6 * len(products) + 1.5)))
    ax.barh(products, kib, color="#e74c3c", edgecolor="white", linewidth=0.5)
    ax.invert_yaxis()  # first-ranked product on top
    ax.set_title("Third-party bytes replaceable by facades", fontweight="bold")
    ax.set_xlabel("Transfer size (KiB)")
    ax.xaxis.set_major_formatter(ticker.FuncFormatter(lambda x, _: f"{x:,.0f}"))
    for i, v in enumerate(kib):
        ax.text(v, i, f" {v:,.1f}", va="center", fontsize=10)

    out.mkdir(parents=True, exist_ok=True)
    path = out / "facade_opportunities.png"
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    logger.info("Chart written: %s", path)
    return path
