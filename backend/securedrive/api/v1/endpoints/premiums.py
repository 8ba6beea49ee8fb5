"""
Premium API endpoints: encrypted calculation and the two-party decryption
protocol.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from securedrive.api.v1.deps import (
    ensure_vehicle_access,
    get_world_state,
    require_authentication,
    require_role,
)
from securedrive.ledger.world_state import WorldState
from securedrive.models.user import User, UserRole
from securedrive.schemas.premium import (
    CalculationResult,
    CalculationResultResponse,
    DecryptionHintResponse,
    DecryptionRequest,
    DecryptionResponse,
    MonthPremiumCreate,
    MonthPremiumResponse,
    MonthlyPremiumRecord,
    PremiumCalculationRequest,
    PremiumRecord,
    PremiumResponse,
)
from securedrive.services.premium_service import PremiumService
from securedrive.services.trip_service import TripService


router = APIRouter()


async def _check_trip_access(state: WorldState, trip_id: str, current_user: User) -> None:
    trip = await TripService(state).get_trip(trip_id)
    await ensure_vehicle_access(state, trip.vehicle_id, current_user)


def _result_response(result: CalculationResult) -> CalculationResultResponse:
    return CalculationResultResponse(
        result_id=result.result_id,
        trip_id=result.trip_id,
        vehicle_id=result.vehicle_id,
        total_premium=result.total_premium,
        r=result.r,
        status=result.status,
    )


def _premium_response(record: PremiumRecord) -> PremiumResponse:
    return PremiumResponse(trip_id=record.trip_id, date=record.date, premium=record.premium)


def _month_response(record: MonthlyPremiumRecord) -> MonthPremiumResponse:
    return MonthPremiumResponse(
        vehicle_id=record.vehicle_id,
        month=record.month,
        year=record.year,
        premium=record.premium,
    )


@router.post("/calculate", response_model=CalculationResultResponse, status_code=status.HTTP_201_CREATED)
async def calculate_premium(
    request: PremiumCalculationRequest,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> CalculationResultResponse:
    """
    Compute the encrypted premium of a trip.

    The result is stored pending together with its public hint R = C mod N;
    nothing is decrypted here.
    """
    result = await PremiumService(state).calculate_premium(
        request.vehicle_id, request.trip_id, request.criteria_weights_id
    )
    return _result_response(result)


@router.post("/results/{result_id}/hint", response_model=DecryptionHintResponse)
async def compute_decryption_hint(
    result_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> DecryptionHintResponse:
    """Decryptor step: derive R' for a pending result."""
    premium_service = PremiumService(state)
    result = await premium_service.get_result(result_id)
    await _check_trip_access(state, result.trip_id, current_user)

    r_prime = await premium_service.compute_decryption_hint(result_id)
    return DecryptionHintResponse(result_id=result_id, r_prime=r_prime)


@router.post("/decrypt", response_model=DecryptionResponse)
async def decrypt_and_update(
    request: DecryptionRequest,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> DecryptionResponse:
    """
    Verifier step: check R' against the stored ciphertext, decrypt and record
    the trip and monthly premiums.

    A hint that does not match the ciphertext is rejected with 422 and
    nothing is written.
    """
    await _check_trip_access(state, request.trip_id, current_user)
    return await PremiumService(state).decrypt_and_update(request.trip_id, request.r_prime)


@router.post("/results/{result_id}/resolve", response_model=DecryptionResponse)
async def resolve(
    result_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> DecryptionResponse:
    """Run both protocol steps with the stored key material."""
    return await PremiumService(state).resolve(result_id)


@router.post("/calculate-and-resolve", response_model=DecryptionResponse)
async def calculate_and_resolve(
    request: PremiumCalculationRequest,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> DecryptionResponse:
    return await PremiumService(state).calculate_and_resolve(
        request.vehicle_id, request.trip_id, request.criteria_weights_id
    )


@router.get("/results/by-vehicle/{vehicle_id}", response_model=List[CalculationResultResponse])
async def results_by_vehicle(
    vehicle_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> List[CalculationResultResponse]:
    await ensure_vehicle_access(state, vehicle_id, current_user)
    results = await PremiumService(state).results_by_vehicle(vehicle_id)
    return [_result_response(result) for result in results]


@router.get("/results/{result_id}", response_model=CalculationResultResponse)
async def get_result(
    result_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> CalculationResultResponse:
    result = await PremiumService(state).get_result(result_id)
    await _check_trip_access(state, result.trip_id, current_user)
    return _result_response(result)


@router.get("/trips/{trip_id}", response_model=PremiumResponse)
async def get_premium(
    trip_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> PremiumResponse:
    await _check_trip_access(state, trip_id, current_user)
    return _premium_response(await PremiumService(state).get_premium(trip_id))


@router.get("/by-vehicle/{vehicle_id}", response_model=List[PremiumResponse])
async def premiums_by_vehicle(
    vehicle_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> List[PremiumResponse]:
    await ensure_vehicle_access(state, vehicle_id, current_user)
    records = await PremiumService(state).premiums_by_vehicle(vehicle_id)
    return [_premium_response(record) for record in records]


@router.get("/monthly/{vehicle_id}/{year}/{month}", response_model=MonthPremiumResponse)
async def get_month_premium(
    vehicle_id: str,
    year: int,
    month: int,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> MonthPremiumResponse:
    await ensure_vehicle_access(state, vehicle_id, current_user)
    record = await PremiumService(state).get_month_premium(vehicle_id, month, year)
    return _month_response(record)


@router.post("/monthly", response_model=MonthPremiumResponse, status_code=status.HTTP_201_CREATED)
async def add_month_premium(
    request: MonthPremiumCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_role([UserRole.INSURER]))
) -> MonthPremiumResponse:
    """Seed a monthly accumulator."""
    record = await PremiumService(state).add_month_premium(
        request.vehicle_id, request.month, request.year, request.premium
    )
    return _month_response(record)
