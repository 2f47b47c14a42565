"""
Transform registry: named value conversions referenced by prefill mappings.

Every transform takes (value, form, previous_stage_data) and returns the
value to store on the target stage. Keys are the names used in the mapping
declarations; get_transform raises for an unregistered key.
"""

import math
from typing import Callable, Dict, List

SCANS_PER_KSF = {
    0: 3,   # Wide open
    1: 5,   # Spacious
    2: 8,   # Standard
    3: 12,  # Dense
    4: 18,  # Extreme
}
DEFAULT_SCANS_PER_KSF = 8

WHALE_SQFT = 50000
DOLPHIN_SQFT = 10000


def _enabled(toggle) -> bool:
    if toggle is None:
        return False
    if isinstance(toggle, dict):
        return bool(toggle.get("enabled", False))
    if hasattr(toggle, "enabled"):
        return bool(toggle.enabled)
    return bool(toggle)


def _total_sqft(form) -> float:
    return sum(a.square_footage or 0 for a in form.areas)


def scope_to_checkbox_array(value, form=None, prev=None) -> List[str]:
    if value == "Full":
        return ["Interior", "Exterior"]
    if value == "Int Only":
        return ["Interior"]
    if value == "Ext Only":
        return ["Exterior"]
    if value == "Mixed":
        return ["Interior", "Exterior", "Mixed"]
    return [value]


def calc_est_scans(value, form, prev=None) -> int:
    """ceil(scans per KSF for the room density × total sqft / 1000)."""
    density = form.room_density if form.room_density is not None else 2
    scans_per_ksf = SCANS_PER_KSF.get(density, DEFAULT_SCANS_PER_KSF)
    return math.ceil(scans_per_ksf * _total_sqft(form) / 1000)


def toggle_sqft_to_boolean(value, form=None, prev=None) -> bool:
    return _enabled(value)


def static_loa_40(value=None, form=None, prev=None) -> str:
    return "LoA-40"


def georef_to_tier(value, form=None, prev=None) -> str:
    if value is True:
        return "Tier-20"
    if value is False or value is None:
        return "Tier-0"
    return str(value)


def georef_tier_to_boolean(value, form=None, prev=None) -> bool:
    return value in ("Tier-20", "Tier-60")


def disciplines_to_array(value, form=None, prev=None) -> List[str]:
    structural, mepf = value
    disciplines = ["Architecture"]
    if _enabled(structural):
        disciplines.append("Structural")
    if _enabled(mepf):
        disciplines.append("MEPF")
    return disciplines


def prefer_actual_sf(value, form=None, prev=None) -> float:
    # The "|" source already picked actual over estimated
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return 0


def calc_project_tier(value, form=None, prev=None) -> str:
    try:
        sqft = float(value or 0)
    except (TypeError, ValueError):
        sqft = 0.0
    if sqft >= WHALE_SQFT:
        return "Whale"
    if sqft >= DOLPHIN_SQFT:
        return "Dolphin"
    return "Minnow"


def cad_bim_to_formats(value, form=None, prev=None) -> List[str]:
    cad, bim = value
    formats = []
    if bim and bim != "Other":
        formats.append(bim)
    if cad and cad != "No":
        formats.append(f"CAD ({cad})")
    return formats


TRANSFORM_REGISTRY: Dict[str, Callable] = {
    "scopeToCheckboxArray": scope_to_checkbox_array,
    "calcEstScans": calc_est_scans,
    "toggleSqftToBoolean": toggle_sqft_to_boolean,
    "staticLoA40": static_loa_40,
    "georefToTier": georef_to_tier,
    "geoRefTierToBoolean": georef_tier_to_boolean,
    "disciplinesToArray": disciplines_to_array,
    "preferActualSF": prefer_actual_sf,
    "calcProjectTier": calc_project_tier,
    "cadBimToFormats": cad_bim_to_formats,
}


def get_transform(key: str) -> Callable:
    """Returns the transform registered under key, or raises ValueError."""
    if key not in TRANSFORM_REGISTRY:
        raise ValueError(
            f"No transform registered for key: {key}. "
            f"Available: {list(TRANSFORM_REGISTRY.keys())}"
        )
    return TRANSFORM_REGISTRY[key]


def has_transform(key: str) -> bool:
    return key in TRANSFORM_REGISTRY


def list_transforms() -> List[str]:
    return list(TRANSFORM_REGISTRY.keys())
