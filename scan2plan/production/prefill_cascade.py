"""
Prefill Cascade: carries known values forward when a project advances a stage.

For a transition (from_stage → to_stage) every declared mapping is resolved
independently against the scoping form and the stage data recorded so far.
Manual and blocked mappings are always skipped with a reason. Nothing is
written back: the caller merges PrefillOutcome.data into the target stage.

Input: ScopingForm + {stage: {field: value}}
Output: PrefillOutcome(data, results)
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ..schemas import ScopingForm
from .mappings import MAPPINGS_BY_TRANSITION, PrefillMapping, count_by_type
from .stages import STAGES, get_stage_config, transition_key
from .transforms import get_transform

logger = logging.getLogger(__name__)

SKIP_REASONS = {
    "blocked": "Blocked - upstream field not built yet",
    "manual": "Manual entry required",
}


class PrefillResult(BaseModel):
    field: str
    value: Any = None
    mapping: PrefillMapping
    skipped: bool = False
    skip_reason: Optional[str] = None


class PrefillOutcome(BaseModel):
    data: Dict[str, Any] = {}
    results: List[PrefillResult] = []


# --- Source resolution ---

def _first_area(form: ScopingForm):
    return form.areas[0] if form.areas else None


def _area_attr(form: ScopingForm, attr: str, default=None):
    area = _first_area(form)
    value = getattr(area, attr) if area is not None else None
    return value if value is not None else default


def _from_stage(stage_data: dict, stage: str, field: str, fallback=None):
    value = (stage_data.get(stage) or {}).get(field)
    return value if value is not None else fallback


def _resolvers(form: ScopingForm, stage_data: dict) -> dict:
    """
    Source id → zero-arg resolver. Area-level fields read the first area;
    blank identity fields resolve to None so chain mappings can fall back.
    """
    return {
        "SF-01": lambda: form.project_address or None,
        "SF-02": lambda: _area_attr(form, "area_type", ""),
        "SF-03": lambda: sum(a.square_footage or 0 for a in form.areas),
        "SF-04": lambda: _area_attr(form, "project_scope", ""),
        "SF-05": lambda: _area_attr(form, "lod") or form.lod or "",
        "SF-07": lambda: _area_attr(form, "structural"),
        "SF-08": lambda: _area_attr(form, "mepf"),
        "SF-09": lambda: form.georeferencing,
        "SF-10": lambda: _area_attr(form, "cad_deliverable") or form.cad_deliverable or "No",
        "SF-11": lambda: form.bim_deliverable,
        "SF-24": lambda: _area_attr(form, "act"),
        "SF-28": lambda: form.bim_version,
        "SF-31": lambda: form.number_of_floors,
        "SF-32": lambda: form.dispatch_location,
        "SF-37": lambda: form.client_company or None,
        "SF-41": lambda: form.era,
        "SF-42": lambda: form.room_density,
        "SF-44": lambda: _area_attr(form, "below_floor"),
        "SF-45": lambda: form.pricing_tier,
        "SF-48": lambda: form.est_scan_days,
        "SF-49": lambda: form.techs_planned,
        "SF-53": lambda: form.project_name or None,
        "SF-54": lambda: form.upid or None,
        "SF-56": lambda: form.georeferencing,
        "SF-60": lambda: None,  # not built yet

        # Earlier stages, read from the stage that owns the field
        "FC-03": lambda: _from_stage(stage_data, "field_capture", "fieldDate"),
        "FC-04": lambda: _from_stage(stage_data, "field_capture", "fieldTech"),
        "FC-13": lambda: _from_stage(stage_data, "field_capture", "fieldRMS"),
        "RG-10": lambda: _from_stage(stage_data, "registration", "platform"),
        "RG-13": lambda: _from_stage(stage_data, "registration", "geoRefTier"),
        "BQ-04": lambda: _from_stage(stage_data, "bim_qc", "actualSF"),
        "BQ-14": lambda: _from_stage(stage_data, "bim_qc", "scopeDiscipline", []),
        "PD-01": lambda: _from_stage(stage_data, "pc_delivery", "projectCode", form.upid or None),
        "PD-02": lambda: _from_stage(stage_data, "pc_delivery", "client", form.client_company or None),
        "PD-03": lambda: _from_stage(stage_data, "pc_delivery", "projectName", form.project_name or None),
    }


def resolve_source_field(source_id: str, form: ScopingForm, stage_data: dict):
    """
    Resolve a source id to a value.

    "A+B" returns a tuple of both values, "A|B" the first non-null.
    Unknown or empty ids resolve to None.
    """
    resolvers = _resolvers(form, stage_data)

    def one(sid):
        resolver = resolvers.get(sid.strip())
        return resolver() if resolver else None

    if "+" in source_id:
        return tuple(one(sid) for sid in source_id.split("+"))
    if "|" in source_id:
        for sid in source_id.split("|"):
            value = one(sid)
            if value is not None:
                return value
        return None
    return one(source_id)


def _chain_lookup(field: str, stage_data: dict):
    """First recorded value for field, searching stages in lifecycle order."""
    for stage in STAGES:
        fields = stage_data.get(stage)
        if fields and field in fields:
            return fields[field]
    return None


# --- Engine ---

def execute_prefill_cascade(from_stage: str, to_stage: str, form: ScopingForm,
                            all_stage_data: Dict[str, Dict[str, Any]] = None) -> PrefillOutcome:
    """
    Resolve every mapping declared for from_stage → to_stage.

    Raises ValueError for an unknown stage name. A valid pair with no
    declared mappings yields an empty outcome.
    """
    get_stage_config(from_stage)
    get_stage_config(to_stage)
    stage_data = all_stage_data or {}

    mappings = MAPPINGS_BY_TRANSITION.get(transition_key(from_stage, to_stage), [])
    outcome = PrefillOutcome()

    for mapping in mappings:
        if mapping.type in SKIP_REASONS:
            outcome.results.append(PrefillResult(
                field=mapping.target_field,
                mapping=mapping,
                skipped=True,
                skip_reason=SKIP_REASONS[mapping.type],
            ))
            continue

        value = resolve_source_field(mapping.source_id, form, stage_data)
        if mapping.type == "chain" and value is None:
            value = _chain_lookup(mapping.target_field, stage_data)

        # Never hand back references into recorded stage data
        value = copy.deepcopy(value)

        if mapping.transform_key:
            transform = get_transform(mapping.transform_key)
            value = transform(value, form, stage_data.get(from_stage))

        outcome.data[mapping.target_field] = value
        outcome.results.append(PrefillResult(field=mapping.target_field, value=value, mapping=mapping))

    skipped = sum(1 for r in outcome.results if r.skipped)
    logger.info(
        "Prefill %s → %s: %d filled, %d skipped",
        from_stage, to_stage, len(outcome.results) - skipped, skipped,
    )
    return outcome


def get_mappings_for_transition(from_stage: str, to_stage: str) -> List[PrefillMapping]:
    return list(MAPPINGS_BY_TRANSITION.get(transition_key(from_stage, to_stage), []))


def get_mapping_summary(from_stage: str, to_stage: str) -> dict:
    """{"total": n, "by_type": {type: count}} for a transition."""
    mappings = get_mappings_for_transition(from_stage, to_stage)
    return {"total": len(mappings), "by_type": count_by_type(mappings)}
