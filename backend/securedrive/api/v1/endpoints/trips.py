"""
Trip API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from securedrive.api.v1.deps import ensure_vehicle_access, get_world_state, require_authentication
from securedrive.ledger.world_state import WorldState
from securedrive.models.user import User
from securedrive.schemas.trip import TRIP_METRICS, EncryptedTripCreate, EncryptedTripRecord, TripCreate
from securedrive.services.trip_service import TripService


router = APIRouter()


@router.post("", response_model=EncryptedTripRecord, status_code=status.HTTP_201_CREATED)
async def add_trip(
    request: TripCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> EncryptedTripRecord:
    """Encrypt plaintext trip metrics under the vehicle owner's Verifier and store them."""
    await ensure_vehicle_access(state, request.vehicle_id, current_user)
    return await TripService(state).add_trip(
        vehicle_id=request.vehicle_id,
        trip_id=request.trip_id,
        date=request.date,
        metrics={name: getattr(request, name) for name in TRIP_METRICS},
        deterministic=request.deterministic,
    )


@router.post("/encrypted", response_model=EncryptedTripRecord, status_code=status.HTTP_201_CREATED)
async def add_encrypted_trip(
    request: EncryptedTripCreate,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> EncryptedTripRecord:
    """Store a trip whose metrics were encrypted client-side."""
    await ensure_vehicle_access(state, request.vehicle_id, current_user)
    return await TripService(state).add_encrypted_trip(
        vehicle_id=request.vehicle_id,
        trip_id=request.trip_id,
        date=request.date,
        metrics={name: getattr(request, name) for name in TRIP_METRICS},
    )


@router.get("/by-vehicle/{vehicle_id}", response_model=List[EncryptedTripRecord])
async def trips_by_vehicle(
    vehicle_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> List[EncryptedTripRecord]:
    await ensure_vehicle_access(state, vehicle_id, current_user)
    return await TripService(state).trips_by_vehicle(vehicle_id)


@router.get("/{trip_id}", response_model=EncryptedTripRecord)
async def get_trip(
    trip_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> EncryptedTripRecord:
    trip = await TripService(state).get_trip(trip_id)
    await ensure_vehicle_access(state, trip.vehicle_id, current_user)
    return trip


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: str,
    state: WorldState = Depends(get_world_state),
    current_user: User = Depends(require_authentication)
) -> None:
    trip_service = TripService(state)
    trip = await trip_service.get_trip(trip_id)
    await ensure_vehicle_access(state, trip.vehicle_id, current_user)
    await trip_service.delete_trip(trip_id)
