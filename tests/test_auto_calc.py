"""
Auto-calc of expedited and below-floor prices.

Tests:
1. Expedited = 20% of modeling + add-on prices, travel excluded
2. Expedited stays empty with nothing to base it on
3. Edited expedited item is left alone
4. Below floor = half the architecture rate
5. Below floor cost falls back to the upteam multiplier
6. Below floor without a priced architecture line is untouched
7. Inputs are not mutated
8. Settings override
"""

import pytest

from scan2plan.auto_calc import apply_auto_calc_prices
from scan2plan.config import Settings
from scan2plan.schemas import LineItemShell


def _li(id, category, discipline, area_id="1", **kw):
    return LineItemShell(
        id=id,
        area_id=area_id,
        area_name="Main" if area_id else "Project-Level",
        category=category,
        discipline=discipline,
        description=discipline,
        **kw,
    )


def _sample_items(arch_cost=20000.0, below_floor_sqft=5000):
    return [
        _li("li-1", "modeling", "architecture", client_price=50000.0, upteam_cost=arch_cost,
            square_feet=25000),
        _li("li-2", "modeling", "structural", client_price=10000.0, upteam_cost=4000.0,
            square_feet=25000),
        _li("li-3", "addOn", "below-floor", square_feet=below_floor_sqft),
        _li("li-4", "travel", "travel", area_id=None, client_price=1500.0, upteam_cost=1500.0),
        _li("li-5", "addOn", "expedited", area_id=None),
    ]


def _by_id(items):
    return {li.id: li for li in items}


# ============================================================
# 1-3. Expedited
# ============================================================

def test_expedited_from_modeling_and_addons():
    result = _by_id(apply_auto_calc_prices(_sample_items()))
    assert result["li-5"].client_price == 12000.0
    assert result["li-5"].upteam_cost == 0.0


def test_expedited_empty_without_base():
    items = [_li("li-1", "addOn", "expedited", area_id=None)]
    result = apply_auto_calc_prices(items)
    assert result[0].client_price is None
    assert result[0].upteam_cost == 0.0


def test_edited_expedited_left_alone():
    items = _sample_items()
    items[4] = items[4].model_copy(update={"client_price": 999.0})
    result = _by_id(apply_auto_calc_prices(items, edited_id="li-5"))
    assert result["li-5"].client_price == 999.0


# ============================================================
# 4-6. Below floor
# ============================================================

def test_below_floor_half_architecture_rate():
    result = _by_id(apply_auto_calc_prices(_sample_items()))
    # $2.00/sqft × 0.5 × 5000; cost $0.80/sqft × 0.5 × 5000
    assert result["li-3"].client_price == 5000.0
    assert result["li-3"].upteam_cost == 2000.0


def test_below_floor_cost_fallback_multiplier():
    result = _by_id(apply_auto_calc_prices(_sample_items(arch_cost=None)))
    assert result["li-3"].upteam_cost == pytest.approx(2.0 * 0.65 * 0.5 * 5000)


def test_below_floor_uses_arch_sqft_when_own_missing():
    result = _by_id(apply_auto_calc_prices(_sample_items(below_floor_sqft=None)))
    assert result["li-3"].client_price == 25000.0


def test_below_floor_without_priced_arch_untouched():
    items = _sample_items()
    items[0] = items[0].model_copy(update={"client_price": None})
    result = _by_id(apply_auto_calc_prices(items))
    assert result["li-3"].client_price is None


def test_edited_below_floor_left_alone():
    result = _by_id(apply_auto_calc_prices(_sample_items(), edited_id="li-3"))
    assert result["li-3"].client_price is None


# ============================================================
# 7-8. Purity and settings
# ============================================================

def test_inputs_not_mutated():
    items = _sample_items()
    result = apply_auto_calc_prices(items)
    assert result is not items
    assert items[2].client_price is None
    assert items[4].client_price is None


def test_settings_override():
    custom = Settings(EXPEDITED_SURCHARGE_PCT=0.5, BELOW_FLOOR_RATE_FRACTION=0.25)
    result = _by_id(apply_auto_calc_prices(_sample_items(), settings=custom))
    assert result["li-5"].client_price == 30000.0
    assert result["li-3"].client_price == 2500.0
