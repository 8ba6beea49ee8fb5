"""
Owner overview API endpoints.
"""
from typing import Dict

from fastapi import APIRouter, Depends

from securedrive.api.v1.deps import (
    ensure_owner_or_insurer,
    get_world_state,
    require_authentication,
    require_role,
)
from securedrive.ledger.world_state import WorldState
from securedrive.models.user import User, UserRole
from securedrive.schemas.owner import OwnerDetails, OwnerDetailsRequest
from securedrive.services.owner_service import OwnerService


router = APIRouter()


@router.post("/details", response_model=Dict[str, OwnerDetails])
async def multiple_owner_details(
    request: OwnerDetailsRequest,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> Dict[str, OwnerDetails]:
    return await OwnerService(state).multiple_owner_details(request.owner_ids)


@router.get("/{owner_id}", response_model=OwnerDetails)
async def owner_details(
    owner_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> OwnerDetails:
    """Vehicles, contracts with their weights, and decrypted trip premiums of an owner."""
    ensure_owner_or_insurer(owner_id, current_user)
    return await OwnerService(state).owner_details(owner_id)
