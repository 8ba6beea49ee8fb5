"""
Criteria weight schemas.

Weights are public policy, stored in plaintext.
"""
from pydantic import BaseModel, Field

from securedrive.schemas.common import LedgerRecord


class CriteriaWeights(LedgerRecord):
    """Per-metric weights plus the PAYD (alpha) and PHYD (beta) scalars."""

    criteria_weights_id: str = Field(..., alias="criteriaweightID", min_length=1)
    weight_traffic: int = Field(..., ge=0, description="Signal compliance credit")
    weight_speed: int = Field(..., ge=0)
    weight_acceleration: int = Field(..., ge=0)
    weight_braking: int = Field(..., ge=0)
    weight_distance: int = Field(..., ge=0, description="Unsafe following distance")
    weight_zone: int = Field(..., ge=0, description="High-risk zone time")
    weight_time: int = Field(..., ge=0, description="Night driving")
    alpha: int = Field(..., ge=0, description="Distance-based (PAYD) scalar")
    beta: int = Field(..., ge=0, description="Behavior-based (PHYD) scalar")


class CriteriaWeightsCreate(BaseModel):
    """Request to publish a set of criteria weights."""

    criteria_weights_id: str = Field(..., min_length=1)
    weight_traffic: int = Field(..., ge=0)
    weight_speed: int = Field(..., ge=0)
    weight_acceleration: int = Field(..., ge=0)
    weight_braking: int = Field(..., ge=0)
    weight_distance: int = Field(..., ge=0)
    weight_zone: int = Field(..., ge=0)
    weight_time: int = Field(..., ge=0)
    alpha: int = Field(..., ge=0)
    beta: int = Field(..., ge=0)
