"""
Key material API endpoints.

Only public material is ever returned; Decryptor secrets are write-only here.
"""
from fastapi import APIRouter, Depends, status

from securedrive.api.v1.deps import ensure_owner_or_insurer, get_world_state, require_authentication
from securedrive.ledger.world_state import WorldState
from securedrive.models.user import User
from securedrive.schemas.keys import (
    DecryptorCreate,
    KeyPairCreate,
    VerifierCreate,
    VerifierResponse,
)
from securedrive.services.key_service import KeyService


router = APIRouter()


def _verifier_response(verifier) -> VerifierResponse:
    return VerifierResponse(owner_id=verifier.owner_id, n=verifier.n, nsquare=verifier.nsquare)


@router.post("/verifiers", response_model=VerifierResponse, status_code=status.HTTP_201_CREATED)
async def add_verifier(
    request: VerifierCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> VerifierResponse:
    """Register the public (Verifier) role of an identity."""
    ensure_owner_or_insurer(request.owner_id, current_user)
    verifier = await KeyService(state).add_verifier(request.owner_id, request.n, request.nsquare)
    return _verifier_response(verifier)


@router.post("/decryptors", status_code=status.HTTP_201_CREATED)
async def add_decryptor(
    request: DecryptorCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> dict:
    """Register the private (Decryptor) role of an identity."""
    ensure_owner_or_insurer(request.owner_id, current_user)
    await KeyService(state).add_decryptor(
        request.owner_id, request.p, request.q, request.n, request.lam
    )
    return {"message": "Decryptor registered", "owner_id": request.owner_id}


@router.post("/pairs", response_model=VerifierResponse, status_code=status.HTTP_201_CREATED)
async def register_key_pair(
    request: KeyPairCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> VerifierResponse:
    """Derive and register both roles from two primes."""
    ensure_owner_or_insurer(request.owner_id, current_user)
    verifier = await KeyService(state).register_key_pair(request.owner_id, request.p, request.q)
    return _verifier_response(verifier)


@router.get("/verifiers/{owner_id}", response_model=VerifierResponse)
async def get_verifier(
    owner_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> VerifierResponse:
    """Public key material of an identity."""
    return _verifier_response(await KeyService(state).get_verifier(owner_id))


@router.delete("/verifiers/{owner_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_verifier(
    owner_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> None:
    ensure_owner_or_insurer(owner_id, current_user)
    await KeyService(state).delete_verifier(owner_id)
