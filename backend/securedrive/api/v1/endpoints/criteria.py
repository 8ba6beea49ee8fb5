"""
Criteria weights API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from securedrive.api.v1.deps import get_world_state, require_authentication, require_role
from securedrive.ledger.world_state import WorldState
from securedrive.models.user import User, UserRole
from securedrive.schemas.criteria import CriteriaWeights, CriteriaWeightsCreate
from securedrive.services.criteria_service import CriteriaService


router = APIRouter()


@router.post("", response_model=CriteriaWeights, status_code=status.HTTP_201_CREATED)
async def add_criteria_weights(
    request: CriteriaWeightsCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> CriteriaWeights:
    """Publish a set of criteria weights."""
    weights = CriteriaWeights(**request.model_dump())
    return await CriteriaService(state).add_criteria_weights(weights)


@router.get("", response_model=List[CriteriaWeights])
async def list_criteria_weights(
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> List[CriteriaWeights]:
    return await CriteriaService(state).list_criteria_weights()


@router.get("/{criteria_weights_id}", response_model=CriteriaWeights)
async def get_criteria_weights(
    criteria_weights_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> CriteriaWeights:
    return await CriteriaService(state).get_criteria_weights(criteria_weights_id)
