"""
Production lifecycle: six stages in fixed order.

scheduling → field_capture → registration → bim_qc → pc_delivery → final_delivery
"""

from typing import List, Optional

from pydantic import BaseModel


class StageConfig(BaseModel):
    id: str
    label: str
    short_label: str
    order: int

    class Config:
        frozen = True


STAGE_CONFIGS: List[StageConfig] = [
    StageConfig(id="scheduling", label="Scheduling", short_label="SCH", order=0),
    StageConfig(id="field_capture", label="Field Capture", short_label="FC", order=1),
    StageConfig(id="registration", label="Registration", short_label="RG", order=2),
    StageConfig(id="bim_qc", label="BIM QC", short_label="BQ", order=3),
    StageConfig(id="pc_delivery", label="PC Delivery", short_label="PD", order=4),
    StageConfig(id="final_delivery", label="Final Delivery", short_label="DR", order=5),
]

STAGES = tuple(s.id for s in STAGE_CONFIGS)
_BY_ID = {s.id: s for s in STAGE_CONFIGS}


def get_stage_config(stage: str) -> StageConfig:
    """Returns the config for a stage name, or raises ValueError."""
    if stage not in _BY_ID:
        raise ValueError(f"Unknown production stage: {stage}. Available: {list(STAGES)}")
    return _BY_ID[stage]


def is_stage(stage: str) -> bool:
    return stage in _BY_ID


def get_next_stage(stage: str) -> Optional[str]:
    """The stage after this one, or None at final_delivery."""
    order = get_stage_config(stage).order
    if order + 1 < len(STAGES):
        return STAGES[order + 1]
    return None


def transition_key(from_stage: str, to_stage: str) -> str:
    return f"{from_stage}_to_{to_stage}"
