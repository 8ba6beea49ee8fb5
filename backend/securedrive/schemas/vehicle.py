"""
Vehicle-related schemas.
"""
from typing import Optional

from pydantic import BaseModel, Field

from securedrive.schemas.common import BigInt, LedgerRecord


class EncryptedVehicleRecord(LedgerRecord):
    """Vehicle document with every attribute encrypted under the owner's key."""

    vehicle_id: str = Field(..., alias="vehicleID", min_length=1)
    vehicle_type: BigInt = Field(..., description="Encrypted vehicle class")
    purchase_mileage: BigInt = Field(..., description="Encrypted mileage at purchase")
    year: BigInt = Field(..., description="Encrypted model year")
    owner_id: str = Field(..., alias="ownerID", min_length=1)


class EncryptedVehicleCreate(BaseModel):
    """Vehicle whose fields were encrypted client-side."""

    vehicle_id: str = Field(..., min_length=1)
    vehicle_type: BigInt
    purchase_mileage: BigInt
    year: BigInt
    owner_id: str = Field(..., min_length=1, description="Identity whose Verifier encrypted the fields")


class VehicleCreate(BaseModel):
    """Plaintext vehicle attributes to be encrypted server-side."""

    vehicle_id: str = Field(..., min_length=1)
    vehicle_type: int = Field(..., ge=0, description="Vehicle class code")
    purchase_mileage: int = Field(..., ge=0, description="Mileage at purchase")
    year: int = Field(..., ge=0, description="Model year")
    owner_id: str = Field(..., min_length=1)
    deterministic: Optional[bool] = Field(
        None,
        description="Derive randomness from the record context instead of drawing it fresh"
    )


class OwnerAssignment(BaseModel):
    """Reassign a vehicle to another identity."""

    owner_id: str = Field(..., min_length=1)
