"""
Premium calculation and decryption schemas.
"""
import datetime
import enum
from typing import Optional

from pydantic import BaseModel, Field

from securedrive.schemas.common import BigInt, LedgerRecord


class ResultStatus(str, enum.Enum):
    """Decryption state of a calculation result."""
    PENDING = "pending"
    RESOLVED = "resolved"


class CalculationResult(LedgerRecord):
    """Encrypted total premium of one trip plus its public decryption hint R."""

    result_id: str = Field(..., alias="resultID")
    total_premium: BigInt = Field(..., alias="prime_totale")
    r: BigInt = Field(..., description="C mod N, not secret")
    trip_id: str = Field(..., alias="tripID")
    vehicle_id: Optional[str] = Field(None, alias="vehicleID")
    status: ResultStatus = ResultStatus.PENDING


class PremiumRecord(LedgerRecord):
    """Decrypted premium of one trip."""

    trip_id: str = Field(..., alias="tripID")
    date: datetime.date
    premium: int = Field(..., alias="prime")


class MonthlyPremiumRecord(LedgerRecord):
    """Sum of decrypted trip premiums of one vehicle for one calendar month."""

    vehicle_id: str = Field(..., alias="vehicleID")
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)
    premium: int = Field(..., alias="month_prime")


class PremiumCalculationRequest(BaseModel):
    """Request to compute an encrypted premium for a trip."""

    vehicle_id: str = Field(..., min_length=1)
    trip_id: str = Field(..., min_length=1)
    criteria_weights_id: str = Field(..., min_length=1)


class DecryptionRequest(BaseModel):
    """Verifier step: the Decryptor's hint R' for a trip's result."""

    trip_id: str = Field(..., min_length=1)
    r_prime: BigInt = Field(..., description="R' returned by the Decryptor (decimal string)")


class MonthPremiumCreate(BaseModel):
    """Seed a monthly premium record."""

    vehicle_id: str = Field(..., min_length=1)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)
    premium: int


class CalculationResultResponse(BaseModel):
    """Encrypted premium as exposed to API clients."""

    result_id: str
    trip_id: str
    vehicle_id: Optional[str] = None
    total_premium: BigInt
    r: BigInt
    status: ResultStatus


class DecryptionHintResponse(BaseModel):
    """Decryptor step output."""

    result_id: str
    r_prime: BigInt


class DecryptionResponse(BaseModel):
    """Outcome of the Verifier step."""

    trip_id: str
    premium: int = Field(..., description="Decrypted trip premium")
    month_premium: int = Field(..., description="Monthly accumulator after this trip")
    already_resolved: bool = Field(
        False,
        description="Result was resolved earlier; nothing was written"
    )


class PremiumResponse(BaseModel):
    """Decrypted premium of a trip."""

    trip_id: str
    date: datetime.date
    premium: int


class MonthPremiumResponse(BaseModel):
    """Monthly premium of a vehicle."""

    vehicle_id: str
    month: int
    year: int
    premium: int
