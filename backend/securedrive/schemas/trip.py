"""
Trip-related schemas.
"""
import datetime
from typing import Optional

from pydantic import BaseModel, Field

from securedrive.schemas.common import BigInt, LedgerRecord


# Order matters for dispatch argument lists.
TRIP_METRICS = (
    "speeding",
    "hard_accelerations",
    "emergency_brakes",
    "unsafe_distance",
    "high_risk_zones",
    "traffic_signal_compliance",
    "night_driving",
    "mileage",
)


class EncryptedTripRecord(LedgerRecord):
    """Trip document; immutable once written except for deletion."""

    vehicle_id: str = Field(..., alias="vehicleID", min_length=1)
    trip_id: str = Field(..., alias="tripID", min_length=1)
    date: datetime.date
    speeding: BigInt
    hard_accelerations: BigInt
    emergency_brakes: BigInt
    unsafe_distance: BigInt
    high_risk_zones: BigInt
    traffic_signal_compliance: BigInt
    night_driving: BigInt
    mileage: BigInt


class EncryptedTripCreate(BaseModel):
    """Trip whose metrics were encrypted client-side."""

    vehicle_id: str = Field(..., min_length=1)
    trip_id: str = Field(..., min_length=1)
    date: datetime.date
    speeding: BigInt
    hard_accelerations: BigInt
    emergency_brakes: BigInt
    unsafe_distance: BigInt
    high_risk_zones: BigInt
    traffic_signal_compliance: BigInt
    night_driving: BigInt
    mileage: BigInt


class TripCreate(BaseModel):
    """Plaintext trip metrics to be encrypted server-side."""

    vehicle_id: str = Field(..., min_length=1)
    trip_id: str = Field(..., min_length=1)
    date: datetime.date
    speeding: float = Field(..., ge=0)
    hard_accelerations: float = Field(..., ge=0)
    emergency_brakes: float = Field(..., ge=0)
    unsafe_distance: float = Field(..., ge=0)
    high_risk_zones: float = Field(..., ge=0)
    traffic_signal_compliance: float = Field(..., ge=0)
    night_driving: float = Field(..., ge=0)
    mileage: float = Field(..., ge=0)
    deterministic: Optional[bool] = Field(
        None,
        description="Derive randomness from the record context instead of drawing it fresh"
    )
