"""
Owner overview schemas.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from securedrive.schemas.criteria import CriteriaWeights
from securedrive.schemas.premium import PremiumRecord
from securedrive.schemas.vehicle import EncryptedVehicleRecord


class ContractSummary(BaseModel):
    """Contract of a vehicle with its weights resolved."""
    contract_id: str
    start_date: str
    end_date: str
    criteria_weights_id: str
    criteria_weights: Optional[CriteriaWeights] = None


class VehicleDetails(BaseModel):
    vehicle_id: str
    vehicle: EncryptedVehicleRecord
    contracts: List[ContractSummary] = []


class OwnerDetails(BaseModel):
    """Everything stored about one owner's vehicles."""
    owner_id: str
    vehicles: List[VehicleDetails] = []
    premiums: List[PremiumRecord] = []


class OwnerDetailsRequest(BaseModel):
    owner_ids: List[str] = Field(..., min_length=1)
