"""
Chaincode-style API endpoints: call contract functions by name with
positional string arguments.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from securedrive.api.v1.deps import get_world_state, require_role
from securedrive.fabric.fabric_client import FabricClient
from securedrive.ledger.world_state import WorldState
from securedrive.models.user import User, UserRole
from securedrive.schemas.chaincode import ChaincodeRequest, ChaincodeResponse


router = APIRouter()


@router.post("/invoke", response_model=ChaincodeResponse)
async def invoke(
    request: ChaincodeRequest,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> ChaincodeResponse:
    """
    Submit a transaction.

    Contract errors are reported in the body (``success: false`` with an
    ``error_code``) rather than as HTTP errors, as a peer would.
    """
    client = FabricClient(state)
    if request.function not in client.contract.functions:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown chaincode function '{request.function}'"
        )
    return ChaincodeResponse(**await client.invoke_chaincode(request.function, request.args))


@router.post("/query", response_model=ChaincodeResponse)
async def query(
    request: ChaincodeRequest,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> ChaincodeResponse:
    client = FabricClient(state)
    return ChaincodeResponse(**await client.query_chaincode(request.function, request.args))
