"""
Pydantic schemas for ledger documents and request/response validation.
"""
from securedrive.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserInfoResponse,
)
from securedrive.schemas.contract import (
    InsuranceContract,
    InsuranceContractCreate,
)
from securedrive.schemas.criteria import (
    CriteriaWeights,
    CriteriaWeightsCreate,
)
from securedrive.schemas.keys import (
    DecryptorRecord,
    VerifierRecord,
)
from securedrive.schemas.premium import (
    CalculationResult,
    DecryptionResponse,
    MonthlyPremiumRecord,
    PremiumRecord,
    ResultStatus,
)
from securedrive.schemas.trip import (
    EncryptedTripRecord,
    TripCreate,
)
from securedrive.schemas.vehicle import (
    EncryptedVehicleRecord,
    VehicleCreate,
)

__all__ = [
    # Auth
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserInfoResponse",
    # Contracts
    "InsuranceContract",
    "InsuranceContractCreate",
    # Criteria weights
    "CriteriaWeights",
    "CriteriaWeightsCreate",
    # Key material
    "DecryptorRecord",
    "VerifierRecord",
    # Premiums
    "CalculationResult",
    "DecryptionResponse",
    "MonthlyPremiumRecord",
    "PremiumRecord",
    "ResultStatus",
    # Trips
    "EncryptedTripRecord",
    "TripCreate",
    # Vehicles
    "EncryptedVehicleRecord",
    "VehicleCreate",
]
