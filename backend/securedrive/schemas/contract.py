"""
Insurance contract schemas.
"""
from pydantic import BaseModel, Field, model_validator

from securedrive.schemas.common import LedgerRecord


class InsuranceContract(LedgerRecord):
    """Binds a vehicle and its owner to a set of criteria weights for a period."""

    contract_id: str = Field(..., alias="contractID", min_length=1)
    owner_id: str = Field(..., alias="ownerID", min_length=1)
    vehicle_id: str = Field(..., alias="vehicleID", min_length=1)
    criteria_weights_id: str = Field(..., alias="criteriaWeightsID", min_length=1)
    start_month: int = Field(..., alias="startMonth", ge=1, le=12)
    start_year: int = Field(..., alias="startYear", ge=1)
    end_month: int = Field(..., alias="endMonth", ge=1, le=12)
    end_year: int = Field(..., alias="endYear", ge=1)

    @model_validator(mode="after")
    def _check_period(self) -> "InsuranceContract":
        if (self.end_year, self.end_month) < (self.start_year, self.start_month):
            raise ValueError("contract ends before it starts")
        return self

    @property
    def start_date(self) -> str:
        return f"{self.start_month:02d}-{self.start_year:04d}"

    @property
    def end_date(self) -> str:
        return f"{self.end_month:02d}-{self.end_year:04d}"


class InsuranceContractCreate(BaseModel):
    """Request to create an insurance contract."""

    contract_id: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    vehicle_id: str = Field(..., min_length=1)
    criteria_weights_id: str = Field(..., min_length=1)
    start_month: int = Field(..., ge=1, le=12)
    start_year: int = Field(..., ge=1)
    end_month: int = Field(..., ge=1, le=12)
    end_year: int = Field(..., ge=1)

    @model_validator(mode="after")
    def _check_period(self) -> "InsuranceContractCreate":
        if (self.end_year, self.end_month) < (self.start_year, self.start_month):
            raise ValueError("contract ends before it starts")
        return self
