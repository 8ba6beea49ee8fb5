"""
Trip service: encrypted driving metrics per trip.
"""
import datetime
import logging
from typing import Dict, List, Optional

from securedrive.core.config import settings
from securedrive.core.exceptions import AlreadyExists, NotFound, RangeError
from securedrive.crypto.homomorphic.randomness import derive_deterministic_r, trip_context
from securedrive.ledger import keys
from securedrive.ledger.world_state import WorldState
from securedrive.schemas.trip import TRIP_METRICS, EncryptedTripRecord
from securedrive.services.key_service import KeyService
from securedrive.services.vehicle_service import VehicleService


logger = logging.getLogger(__name__)


class TripService:
    """Service for trip operations."""

    def __init__(self, state: WorldState):
        self.state = state
        self.key_service = KeyService(state)
        self.vehicle_service = VehicleService(state)

    async def _ensure_new(self, trip_id: str) -> str:
        key = keys.trip_key(trip_id)
        if await self.state.exists(key):
            raise AlreadyExists(f"Trip '{trip_id}' already exists")
        return key

    async def add_encrypted_trip(
        self,
        vehicle_id: str,
        trip_id: str,
        date: datetime.date,
        metrics: Dict[str, int]
    ) -> EncryptedTripRecord:
        """Store a trip whose metrics were encrypted client-side."""
        await self.vehicle_service.get_vehicle(vehicle_id)
        key = await self._ensure_new(trip_id)

        record = EncryptedTripRecord(
            vehicle_id=vehicle_id,
            trip_id=trip_id,
            date=date,
            **{name: metrics[name] for name in TRIP_METRICS},
        )
        await self.state.put_record(key, record)
        await self.state.commit()

        logger.info("Encrypted trip %s added for vehicle %s", trip_id, vehicle_id)
        return record

    async def add_trip(
        self,
        vehicle_id: str,
        trip_id: str,
        date: datetime.date,
        metrics: Dict[str, float],
        deterministic: Optional[bool] = None
    ) -> EncryptedTripRecord:
        """
        Scale, truncate and encrypt plaintext trip metrics under the vehicle
        owner's Verifier, then store them.
        """
        vehicle = await self.vehicle_service.get_vehicle(vehicle_id)
        verifier = await self.key_service.get_verifier(vehicle.owner_id)
        key = await self._ensure_new(trip_id)

        scaled = {
            name: int(metrics[name] * settings.METRIC_SCALE_FACTOR)
            for name in TRIP_METRICS
        }
        for name, value in scaled.items():
            if value > settings.METRIC_CEILING:
                raise RangeError(
                    f"Trip metric '{name}' is {value} after scaling, above the ceiling {settings.METRIC_CEILING}"
                )

        if deterministic is None:
            deterministic = settings.DETERMINISTIC_RANDOMNESS

        if deterministic:
            logger.warning("Trip %s encrypted with context-derived randomness", trip_id)
            r = derive_deterministic_r(
                trip_context(vehicle_id, trip_id, date.isoformat()), verifier.n
            )
            encrypted = {
                name: verifier.encrypt_with_custom_random(value, r)
                for name, value in scaled.items()
            }
        else:
            encrypted = {name: verifier.encrypt(value) for name, value in scaled.items()}

        record = EncryptedTripRecord(
            vehicle_id=vehicle_id,
            trip_id=trip_id,
            date=date,
            **encrypted,
        )
        await self.state.put_record(key, record)
        await self.state.commit()

        logger.info("Trip %s encrypted and added for vehicle %s", trip_id, vehicle_id)
        return record

    async def get_trip(self, trip_id: str) -> EncryptedTripRecord:
        return await self.state.require_record(
            keys.trip_key(trip_id), EncryptedTripRecord, f"Trip '{trip_id}'"
        )

    async def trips_by_vehicle(self, vehicle_id: str) -> List[EncryptedTripRecord]:
        selector = keys.prefix_selector(keys.TRIP_PREFIX)
        selector["vehicleID"] = vehicle_id
        return [
            EncryptedTripRecord.from_bytes(value)
            async for _, value in self.state.query(selector)
        ]

    async def delete_trip(self, trip_id: str) -> None:
        key = keys.trip_key(trip_id)
        if not await self.state.exists(key):
            raise NotFound(f"Trip '{trip_id}' not found")
        await self.state.delete(key)
        await self.state.commit()
        logger.info("Trip %s deleted", trip_id)
