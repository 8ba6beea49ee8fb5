"""
Vehicle API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from securedrive.api.v1.deps import (
    ensure_owner_or_insurer,
    ensure_vehicle_access,
    get_world_state,
    require_authentication,
    require_role,
)
from securedrive.ledger.world_state import WorldState
from securedrive.models.user import User, UserRole
from securedrive.schemas.vehicle import (
    EncryptedVehicleCreate,
    EncryptedVehicleRecord,
    OwnerAssignment,
    VehicleCreate,
)
from securedrive.services.vehicle_service import VehicleService


router = APIRouter()


@router.post("", response_model=EncryptedVehicleRecord, status_code=status.HTTP_201_CREATED)
async def add_vehicle(
    request: VehicleCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> EncryptedVehicleRecord:
    """
    Encrypt plaintext vehicle attributes under the owner's Verifier and
    store them. The plaintext is not kept.
    """
    ensure_owner_or_insurer(request.owner_id, current_user)
    return await VehicleService(state).add_vehicle(
        vehicle_id=request.vehicle_id,
        vehicle_type=request.vehicle_type,
        purchase_mileage=request.purchase_mileage,
        year=request.year,
        owner_id=request.owner_id,
        deterministic=request.deterministic,
    )


@router.post("/encrypted", response_model=EncryptedVehicleRecord, status_code=status.HTTP_201_CREATED)
async def add_encrypted_vehicle(
    request: EncryptedVehicleCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> EncryptedVehicleRecord:
    """Store a vehicle whose attributes were encrypted client-side."""
    ensure_owner_or_insurer(request.owner_id, current_user)
    return await VehicleService(state).add_encrypted_vehicle(
        vehicle_id=request.vehicle_id,
        vehicle_type=request.vehicle_type,
        purchase_mileage=request.purchase_mileage,
        year=request.year,
        owner_id=request.owner_id,
    )


@router.get("/by-owner/{owner_id}", response_model=List[EncryptedVehicleRecord])
async def vehicles_by_owner(
    owner_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> List[EncryptedVehicleRecord]:
    ensure_owner_or_insurer(owner_id, current_user)
    return await VehicleService(state).vehicles_by_owner(owner_id)


@router.get("/{vehicle_id}", response_model=EncryptedVehicleRecord)
async def get_vehicle(
    vehicle_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> EncryptedVehicleRecord:
    return await ensure_vehicle_access(state, vehicle_id, current_user)


@router.put("/{vehicle_id}/owner", response_model=EncryptedVehicleRecord)
async def assign_owner(
    vehicle_id: str,
    request: OwnerAssignment,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> EncryptedVehicleRecord:
    return await VehicleService(state).assign_owner(vehicle_id, request.owner_id)


@router.post("/migrations/remove-field/{field}")
async def remove_legacy_field(
    field: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> dict:
    """Strip a stale attribute from every stored vehicle document."""
    updated = await VehicleService(state).remove_legacy_field(field)
    return {"field": field, "updated": updated}
