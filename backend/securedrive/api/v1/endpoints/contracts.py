"""
Insurance contract API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from securedrive.api.v1.deps import (
    ensure_owner_or_insurer,
    get_world_state,
    require_authentication,
    require_role,
)
from securedrive.ledger.world_state import WorldState
from securedrive.models.user import User, UserRole
from securedrive.schemas.contract import InsuranceContract, InsuranceContractCreate
from securedrive.services.contract_service import ContractService


router = APIRouter()


@router.post("", response_model=InsuranceContract, status_code=status.HTTP_201_CREATED)
async def add_contract(
    request: InsuranceContractCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> InsuranceContract:
    """Bind a vehicle and its owner to a set of criteria weights."""
    contract = InsuranceContract(**request.model_dump())
    return await ContractService(state).add_contract(contract)


@router.get("", response_model=List[InsuranceContract])
async def list_contracts(
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> List[InsuranceContract]:
    return await ContractService(state).list_contracts()


@router.get("/by-owner/{owner_id}", response_model=List[InsuranceContract])
async def contracts_by_owner(
    owner_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> List[InsuranceContract]:
    ensure_owner_or_insurer(owner_id, current_user)
    return await ContractService(state).contracts_by_owner(owner_id)


@router.get("/{contract_id}", response_model=InsuranceContract)
async def get_contract(
    contract_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> InsuranceContract:
    contract = await ContractService(state).get_contract(contract_id)
    ensure_owner_or_insurer(contract.owner_id, current_user)
    return contract
