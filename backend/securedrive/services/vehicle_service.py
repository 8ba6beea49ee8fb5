"""
Vehicle service: encrypted vehicle records and owner assignment.
"""
import json
import logging
from typing import List, Optional

from securedrive.core.config import settings
from securedrive.core.exceptions import AlreadyExists, InvalidArgument, RangeError
from securedrive.crypto.homomorphic.randomness import derive_deterministic_r, vehicle_context
from securedrive.ledger import keys
from securedrive.ledger.world_state import WorldState
from securedrive.schemas.vehicle import EncryptedVehicleRecord
from securedrive.services.key_service import KeyService


logger = logging.getLogger(__name__)


class VehicleService:
    """Service for vehicle operations."""

    def __init__(self, state: WorldState):
        self.state = state
        self.key_service = KeyService(state)

    async def _ensure_new(self, vehicle_id: str) -> str:
        key = keys.vehicle_key(vehicle_id)
        if await self.state.exists(key):
            raise AlreadyExists(f"Vehicle '{vehicle_id}' already exists")
        return key

    async def add_encrypted_vehicle(
        self,
        vehicle_id: str,
        vehicle_type: int,
        purchase_mileage: int,
        year: int,
        owner_id: str
    ) -> EncryptedVehicleRecord:
        """Store a vehicle whose fields were encrypted by the owner's Verifier."""
        # The owner must be able to verify results computed from these fields
        await self.key_service.get_verifier(owner_id)
        key = await self._ensure_new(vehicle_id)

        record = EncryptedVehicleRecord(
            vehicle_id=vehicle_id,
            vehicle_type=vehicle_type,
            purchase_mileage=purchase_mileage,
            year=year,
            owner_id=owner_id,
        )
        await self.state.put_record(key, record)
        await self.state.commit()

        logger.info("Encrypted vehicle %s added for owner %s", vehicle_id, owner_id)
        return record

    async def add_vehicle(
        self,
        vehicle_id: str,
        vehicle_type: int,
        purchase_mileage: int,
        year: int,
        owner_id: str,
        deterministic: Optional[bool] = None
    ) -> EncryptedVehicleRecord:
        """Encrypt plaintext vehicle attributes and store them."""
        verifier = await self.key_service.get_verifier(owner_id)
        key = await self._ensure_new(vehicle_id)

        fields = {"vehicle_type": vehicle_type, "purchase_mileage": purchase_mileage, "year": year}
        for name, value in fields.items():
            if value > settings.VEHICLE_FIELD_CEILING:
                raise RangeError(
                    f"Vehicle field '{name}' is {value}, above the ceiling {settings.VEHICLE_FIELD_CEILING}"
                )

        if deterministic is None:
            deterministic = settings.DETERMINISTIC_RANDOMNESS

        if deterministic:
            logger.warning(
                "Vehicle %s encrypted with context-derived randomness", vehicle_id
            )
            r = derive_deterministic_r(
                vehicle_context(vehicle_id, vehicle_type, purchase_mileage, year, owner_id),
                verifier.n,
            )
            encrypted = [
                verifier.encrypt_with_custom_random(value, r)
                for value in (vehicle_type, purchase_mileage, year)
            ]
        else:
            encrypted = [
                verifier.encrypt(value)
                for value in (vehicle_type, purchase_mileage, year)
            ]

        record = EncryptedVehicleRecord(
            vehicle_id=vehicle_id,
            vehicle_type=encrypted[0],
            purchase_mileage=encrypted[1],
            year=encrypted[2],
            owner_id=owner_id,
        )
        await self.state.put_record(key, record)
        await self.state.commit()

        logger.info("Vehicle %s encrypted and added for owner %s", vehicle_id, owner_id)
        return record

    async def get_vehicle(self, vehicle_id: str) -> EncryptedVehicleRecord:
        return await self.state.require_record(
            keys.vehicle_key(vehicle_id), EncryptedVehicleRecord, f"Vehicle '{vehicle_id}'"
        )

    async def assign_owner(self, vehicle_id: str, owner_id: str) -> EncryptedVehicleRecord:
        """
        Move a vehicle to another identity.

        The ciphertexts stay under the previous owner's key, so the new owner
        must share the modulus; anything else would make results undecryptable.
        """
        vehicle = await self.get_vehicle(vehicle_id)
        new_verifier = await self.key_service.get_verifier(owner_id)
        if vehicle.owner_id != owner_id:
            old_verifier = await self.key_service.get_verifier(vehicle.owner_id)
            if old_verifier.n != new_verifier.n:
                raise InvalidArgument(
                    f"Vehicle '{vehicle_id}' is encrypted under a different modulus"
                )

        updated = vehicle.model_copy(update={"owner_id": owner_id})
        await self.state.put_record(keys.vehicle_key(vehicle_id), updated)
        await self.state.commit()

        logger.info("Vehicle %s assigned to owner %s", vehicle_id, owner_id)
        return updated

    async def vehicles_by_owner(self, owner_id: str) -> List[EncryptedVehicleRecord]:
        selector = keys.prefix_selector(keys.VEHICLE_PREFIX)
        selector["ownerID"] = owner_id
        return [
            EncryptedVehicleRecord.from_bytes(value)
            async for _, value in self.state.query(selector)
        ]

    async def remove_legacy_field(self, field: str) -> int:
        """
        Strip a stale attribute from every stored vehicle document.

        Returns the number of documents rewritten.
        """
        if field in EncryptedVehicleRecord.model_fields or field in {"vehicleID", "ownerID"}:
            raise InvalidArgument(f"'{field}' is a live vehicle attribute, not a legacy one")

        selector = keys.prefix_selector(keys.VEHICLE_PREFIX)
        selector[field] = {"$exists": True}

        updated = 0
        async for key, value in self.state.query(selector):
            document = json.loads(value)
            document.pop(field, None)
            await self.state.put(key, json.dumps(document).encode())
            updated += 1

        await self.state.commit()
        logger.info("Removed '%s' from %d vehicle document(s)", field, updated)
        return updated
