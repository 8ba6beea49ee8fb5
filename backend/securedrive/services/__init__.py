"""
Business logic services.
"""
from securedrive.services.auth_service import AuthService
from securedrive.services.contract_service import ContractService
from securedrive.services.criteria_service import CriteriaService
from securedrive.services.key_service import KeyService
from securedrive.services.owner_service import OwnerService
from securedrive.services.premium_service import PremiumService
from securedrive.services.trip_service import TripService
from securedrive.services.vehicle_service import VehicleService

__all__ = [
    "AuthService",
    "ContractService",
    "CriteriaService",
    "KeyService",
    "OwnerService",
    "PremiumService",
    "TripService",
    "VehicleService",
]
