"""
Line Item Shell Generator: scoping form → unpriced line items.

Per area (in order):
    1) Architecture (always)  2) Structural  3) MEPF  4) CAD  5) ACT
    6) Below Floor  7) Site / Civil  8) Matterport
Project level, after every area:
    Travel (always), Georeferencing, Expedited, Landscape,
    Scan & Registration Only, then custom items in area order.

Prices stay None. The only exception is a custom item that carries its own
amount. Shell ids come from an id factory owned by the call, so two
generations never share a counter.
"""

import itertools
import logging
from typing import Callable, List, Optional

from .schemas import DisciplineToggle, LineItemShell, ScopeArea, ScopingForm

logger = logging.getLogger(__name__)

PROJECT_LEVEL = "Project-Level"

SCOPE_LABELS = {
    "Full": "Full Scope",
    "Int Only": "Interior Only",
    "Ext Only": "Exterior Only",
    "Mixed": "Mixed Scope",
}

# Optional per-area lines: (toggle attribute, category, discipline, description prefix)
# The CAD line falls between the two groups.
DISCIPLINE_LINES = [
    ("structural", "modeling", "structural", "Structural"),
    ("mepf", "modeling", "mepf", "MEPF"),
]
ADD_ON_LINES = [
    ("act", "addOn", "act", "Above Ceiling Tile"),
    ("below_floor", "addOn", "below-floor", "Below Floor"),
    ("site", "modeling", "site", "Site / Civil"),
    ("matterport", "addOn", "matterport", "Matterport Scan"),
]


def sequential_ids(prefix: str = "li-") -> Callable[[], str]:
    """Fresh li-1, li-2, ... sequence. One per generation call."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


def format_number(value) -> str:
    """Whole numbers without a trailing .0, everything else as given."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_sqft(sqft: float) -> str:
    if float(sqft).is_integer():
        return f"{int(sqft):,}"
    return f"{sqft:,}"


class ShellGenerator:
    """
    Generates LineItemShells from a ScopingForm.

    id_factory: zero-arg callable returning a new shell id. Defaults to a
    fresh sequential_ids() per generate() call.
    """

    def __init__(self, id_factory: Optional[Callable[[], str]] = None):
        self.id_factory = id_factory

    def generate(self, form: ScopingForm) -> List[LineItemShell]:
        next_id = self.id_factory or sequential_ids()

        shells = []
        for area in form.areas:
            shells.extend(self._area_shells(area, next_id))
        shells.extend(self._project_shells(form, next_id))

        logger.debug(
            "Generated %d line item shells for %d area(s)", len(shells), len(form.areas),
        )
        return shells

    # --- Per-area rules ---

    def _area_shells(self, area: ScopeArea, next_id) -> List[LineItemShell]:
        area_id = str(area.id)
        area_name = area.area_name or area.area_type
        sf = format_sqft(area.square_footage)
        scope_label = SCOPE_LABELS.get(area.project_scope, area.project_scope)

        def shell(category, discipline, description, sqft):
            return LineItemShell(
                id=next_id(),
                area_id=area_id,
                area_name=area_name,
                category=category,
                discipline=discipline,
                description=description,
                building_type=area.area_type,
                square_feet=sqft,
                lod=area.lod,
                scope=area.project_scope,
            )

        shells = [
            shell(
                "modeling", "architecture",
                f"Architecture — {area.area_type} — {sf} SF — LoD {area.lod} — {scope_label}",
                area.square_footage,
            )
        ]

        def toggled(lines):
            for attr, category, discipline, label in lines:
                toggle: Optional[DisciplineToggle] = getattr(area, attr)
                if not toggle or not toggle.enabled:
                    continue
                sqft = toggle.sqft or area.square_footage
                shells.append(shell(
                    category, discipline,
                    f"{label} — {area.area_type} — {format_sqft(sqft)} SF",
                    sqft,
                ))

        toggled(DISCIPLINE_LINES)
        if area.cad_deliverable and area.cad_deliverable != "No":
            shells.append(shell(
                "addOn", "cad",
                f"CAD Deliverable ({area.cad_deliverable}) — {area.area_type} — {sf} SF",
                area.square_footage,
            ))
        toggled(ADD_ON_LINES)

        return shells

    # --- Project-level rules ---

    def _project_shells(self, form: ScopingForm, next_id) -> List[LineItemShell]:
        def shell(category, discipline, description):
            return LineItemShell(
                id=next_id(),
                area_id=None,
                area_name=PROJECT_LEVEL,
                category=category,
                discipline=discipline,
                description=description,
            )

        rate_suffix = ""
        if form.mileage_rate is not None:
            rate_suffix = f" — ${format_number(form.mileage_rate)}/mi"
        shells = [
            shell(
                "travel", "travel",
                f"Travel — {form.dispatch_location} to {format_number(form.one_way_miles)} mi"
                f" — {form.travel_mode}{rate_suffix}",
            )
        ]

        if form.georeferencing:
            shells.append(shell("addOn", "georeferencing", "Georeferencing — per structure"))

        if form.expedited:
            shells.append(shell(
                "addOn", "expedited", "Expedited Surcharge — +20% on BIM modeling items",
            ))

        if form.landscape_modeling and form.landscape_modeling != "No":
            description = f"Landscape ({form.landscape_modeling})"
            if form.landscape_acres:
                description += f" — {format_number(form.landscape_acres)} acres"
            if form.landscape_terrain:
                description += f" — {form.landscape_terrain}"
            shells.append(shell("modeling", "landscape", description))

        if form.scan_reg_only and form.scan_reg_only != "none":
            label = "Full Day" if form.scan_reg_only == "full_day" else "Half Day"
            shells.append(shell("addOn", "scan-reg", f"Scan & Registration Only — {label}"))

        # Custom items pass through with the caller's amount (0 stays 0.0)
        for area in form.areas:
            area_name = area.area_name or area.area_type
            for item in area.custom_line_items:
                shells.append(LineItemShell(
                    id=next_id(),
                    area_id=str(area.id),
                    area_name=area_name,
                    category="custom",
                    description=item.description,
                    building_type=area.area_type,
                    client_price=float(item.amount) if item.amount is not None else None,
                ))

        return shells


def generate_line_item_shells(form: ScopingForm,
                              id_factory: Optional[Callable[[], str]] = None) -> List[LineItemShell]:
    """Generate the ordered shell list for a scoping form. Pure; prices are left None."""
    return ShellGenerator(id_factory).generate(form)
