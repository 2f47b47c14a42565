"""
Auto-calc for derived line items after a manual price edit.

1) Expedited surcharge = EXPEDITED_SURCHARGE_PCT × Σ modeling + add-on prices
2) Below floor         = BELOW_FLOOR_RATE_FRACTION × architecture rate × sqft

These are suggestions: an item the operator just edited is left alone.
"""

import logging
from typing import List, Optional

from .config import settings as default_settings
from .schemas import LineItemShell

logger = logging.getLogger(__name__)


def _expedited_price(items: List[LineItemShell], pct: float) -> Optional[float]:
    base = sum(
        li.client_price or 0
        for li in items
        if li.discipline != "expedited" and li.category in ("modeling", "addOn")
    )
    if base <= 0:
        return None
    return round(base * pct, 2)


def _find_arch_line(items: List[LineItemShell], area_id: str) -> Optional[LineItemShell]:
    for li in items:
        if (li.area_id == area_id and li.discipline == "architecture"
                and li.client_price is not None and li.client_price > 0):
            return li
    return None


def apply_auto_calc_prices(items: List[LineItemShell], edited_id: str = None,
                           settings=None) -> List[LineItemShell]:
    """
    Returns a new list with expedited and below-floor prices filled in.

    Args:
        items: full line item list with the manual edit already applied
        edited_id: id of the item just edited; never overwritten
        settings: Settings override (defaults to module settings)
    """
    settings = settings or default_settings
    result = list(items)

    # --- Expedited surcharge ---
    for i, li in enumerate(result):
        if li.discipline != "expedited":
            continue
        if li.id != edited_id:
            price = _expedited_price(result, settings.EXPEDITED_SURCHARGE_PCT)
            result[i] = li.model_copy(update={"client_price": price, "upteam_cost": 0.0})
        break

    # --- Below floor ---
    fraction = settings.BELOW_FLOOR_RATE_FRACTION
    for i, li in enumerate(result):
        if li.discipline != "below-floor" or not li.area_id or li.id == edited_id:
            continue

        arch = _find_arch_line(result, li.area_id)
        if not arch or not arch.square_feet or arch.square_feet <= 0:
            continue

        arch_rate = arch.client_price / arch.square_feet
        sqft = li.square_feet or arch.square_feet
        if arch.upteam_cost is not None:
            upteam_rate = arch.upteam_cost / arch.square_feet
        else:
            upteam_rate = arch_rate * settings.UPTEAM_MULTIPLIER_FALLBACK

        result[i] = li.model_copy(update={
            "client_price": round(arch_rate * fraction * sqft, 2),
            "upteam_cost": round(upteam_rate * fraction * sqft, 2),
        })
        logger.debug("Below floor %s priced from architecture %s", li.id, arch.id)

    return result
