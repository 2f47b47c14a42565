"""
Quote Totals & Integrity: priced line items → totals + margin guardrail.

    margin < block_below (40%)  → blocked (save disabled)
    margin < warn_below  (45%)  → warning (save with confirmation)
    otherwise                   → passed

Any unpriced item, or no revenue at all, blocks the quote outright.
Only items with both upteam_cost and client_price count toward totals.
"""

import logging
from typing import List

from pydantic import BaseModel

from .config import settings
from .schemas import LineItemShell, QuoteTotals

logger = logging.getLogger(__name__)


class IntegrityPolicy(BaseModel):
    """Margin thresholds in percent."""
    block_below: float = 40.0
    warn_below: float = 45.0

    @classmethod
    def from_settings(cls, s=None) -> "IntegrityPolicy":
        s = s or settings
        return cls(block_below=s.MARGIN_BLOCK_BELOW_PCT, warn_below=s.MARGIN_WARN_BELOW_PCT)


def _is_priced(item: LineItemShell) -> bool:
    return item.client_price is not None and item.upteam_cost is not None


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _format_threshold(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def compute_quote_totals(items: List[LineItemShell], policy: IntegrityPolicy = None) -> QuoteTotals:
    """
    Aggregate priced items and classify margin integrity.

    Idempotent and unchanged by scaling every price and cost by the same
    positive factor.
    """
    policy = policy or IntegrityPolicy.from_settings()

    total_client = 0.0
    total_cost = 0.0
    unpriced = 0
    negative = 0
    for item in items:
        if _is_priced(item):
            total_client += item.client_price
            total_cost += item.upteam_cost
            if item.client_price < item.upteam_cost:
                negative += 1
        else:
            unpriced += 1

    if total_client > 0:
        gross_margin = total_client - total_cost
        margin_pct = gross_margin * 100 / total_client
    else:
        gross_margin = 0.0
        margin_pct = 0.0

    flags = []
    if unpriced:
        flags.append(f"{unpriced} line {_plural(unpriced, 'item', 'items')} not yet priced")
    if total_client > 0 and margin_pct < policy.block_below:
        flags.append(
            f"Margin {margin_pct:.1f}% is below {_format_threshold(policy.block_below)}% minimum"
        )
    elif total_client > 0 and margin_pct < policy.warn_below:
        flags.append(
            f"Margin {margin_pct:.1f}% is below {_format_threshold(policy.warn_below)}% target"
        )
    if negative:
        flags.append(
            f"{negative} line {_plural(negative, 'item has', 'items have')} negative margin"
        )

    if unpriced or total_client == 0:
        status = "blocked"
    elif margin_pct < policy.block_below:
        status = "blocked"
    elif margin_pct < policy.warn_below:
        status = "warning"
    else:
        status = "passed"

    logger.debug(
        "Quote totals: client=%.2f cost=%.2f margin=%.2f%% status=%s",
        total_client, total_cost, margin_pct, status,
    )

    return QuoteTotals(
        total_client_price=round(total_client, 2),
        total_upteam_cost=round(total_cost, 2),
        gross_margin=round(gross_margin, 2),
        gross_margin_percent=round(margin_pct, 2),
        integrity_status=status,
        integrity_flags=flags,
    )


def can_save(totals: QuoteTotals, confirmed: bool = False) -> bool:
    """Blocked quotes never save. Warnings save only after operator confirmation."""
    if totals.integrity_status == "blocked":
        return False
    if totals.integrity_status == "warning":
        return confirmed
    return True
