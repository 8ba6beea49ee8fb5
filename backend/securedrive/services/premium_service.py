"""
Premium service: encrypted premium calculation and the two-party decryption
protocol.

A calculation result moves Pending -> Resolved exactly once:

    calculate_premium           Verifier side, stores C and R = C mod N
    compute_decryption_hint     Decryptor side, R' = R^(N^-1 mod lambda) mod N
    decrypt_and_update          Verifier side, checks R' against C, decrypts,
                                writes the trip premium and the monthly total

The Pending -> Resolved transition is a compare-and-swap on the stored result
document, so the monthly accumulator is incremented at most once per result
while ENFORCE_SINGLE_RESOLUTION is on.
"""
import logging
from typing import List, Optional

from securedrive.core.config import settings
from securedrive.core.exceptions import (
    AlreadyExists,
    ConcurrentModification,
    InvalidArgument,
    NotFound,
)
from securedrive.crypto.homomorphic.paillier import decode_signed
from securedrive.ledger import keys
from securedrive.ledger.world_state import WorldState
from securedrive.premium.aggregator import aggregate_premium, check_headroom
from securedrive.schemas.premium import (
    CalculationResult,
    DecryptionResponse,
    MonthlyPremiumRecord,
    PremiumRecord,
    ResultStatus,
)
from securedrive.services.criteria_service import CriteriaService
from securedrive.services.key_service import KeyService
from securedrive.services.trip_service import TripService
from securedrive.services.vehicle_service import VehicleService


logger = logging.getLogger(__name__)


class PremiumService:
    """Service for premium calculation and decryption."""

    def __init__(self, state: WorldState, enforce_single_resolution: Optional[bool] = None):
        self.state = state
        self.key_service = KeyService(state)
        self.vehicle_service = VehicleService(state)
        self.trip_service = TripService(state)
        self.criteria_service = CriteriaService(state)
        if enforce_single_resolution is None:
            enforce_single_resolution = settings.ENFORCE_SINGLE_RESOLUTION
        self.enforce_single_resolution = enforce_single_resolution

    async def calculate_premium(
        self,
        vehicle_id: str,
        trip_id: str,
        criteria_weights_id: str
    ) -> CalculationResult:
        """
        Aggregate the encrypted premium of a trip and store it as a pending
        result keyed by the trip.

        A pending result is recomputed in place; a resolved one is refused.
        """
        vehicle = await self.vehicle_service.get_vehicle(vehicle_id)
        trip = await self.trip_service.get_trip(trip_id)
        if trip.vehicle_id != vehicle_id:
            raise InvalidArgument(
                f"Trip '{trip_id}' belongs to vehicle '{trip.vehicle_id}', not '{vehicle_id}'"
            )
        weights = await self.criteria_service.get_criteria_weights(criteria_weights_id)
        verifier = await self.key_service.get_verifier(vehicle.owner_id)

        result_id = keys.result_key(trip_id)
        existing = await self.state.get_record(result_id, CalculationResult)
        if existing is not None and existing.status == ResultStatus.RESOLVED:
            raise AlreadyExists(f"Premium of trip '{trip_id}' is already resolved")

        check_headroom(
            verifier.n,
            weights,
            metric_ceiling=settings.METRIC_CEILING,
            vehicle_field_ceiling=settings.VEHICLE_FIELD_CEILING,
            safety_margin=settings.PLAINTEXT_SAFETY_MARGIN,
        )

        aggregated = aggregate_premium(trip, vehicle, weights, verifier)
        result = CalculationResult(
            result_id=result_id,
            total_premium=aggregated.total,
            r=aggregated.r,
            trip_id=trip_id,
            vehicle_id=vehicle_id,
            status=ResultStatus.PENDING,
        )
        await self.state.put_record(result_id, result)
        await self.state.commit()

        logger.info(
            "Encrypted premium computed for trip %s with weights %s",
            trip_id,
            criteria_weights_id,
        )
        return result

    async def get_result(self, result_id: str) -> CalculationResult:
        return await self.state.require_record(
            result_id, CalculationResult, f"Calculation result '{result_id}'"
        )

    async def compute_decryption_hint(self, result_id: str) -> int:
        """Decryptor step: derive R' from the stored R of a result."""
        result = await self.get_result(result_id)
        trip = await self.trip_service.get_trip(result.trip_id)
        vehicle = await self.vehicle_service.get_vehicle(trip.vehicle_id)
        decryptor = await self.key_service.get_decryptor(vehicle.owner_id)

        r_prime = decryptor.compute_r_prime(result.r)
        logger.info("Decryption hint computed for result %s", result_id)
        return r_prime

    async def decrypt_and_update(self, trip_id: str, r_prime: int) -> DecryptionResponse:
        """
        Verifier step: check R' against the stored ciphertext, decrypt it and
        record the trip premium and the monthly accumulator.

        Verification failure raises before anything is written.
        """
        result_id = keys.result_key(trip_id)
        raw_result = await self.state.get(result_id)
        if raw_result is None:
            raise NotFound(f"Calculation result for trip '{trip_id}' not found")
        result = CalculationResult.from_bytes(raw_result)

        trip = await self.trip_service.get_trip(trip_id)
        vehicle = await self.vehicle_service.get_vehicle(trip.vehicle_id)
        verifier = await self.key_service.get_verifier(vehicle.owner_id)

        plaintext = verifier.verify_and_decrypt(result.total_premium, r_prime)
        premium = decode_signed(plaintext, verifier.n)
        if premium < 0:
            logger.warning("Trip %s decrypted to a negative premium %d", trip_id, premium)

        month_key = keys.month_prime_key(trip.vehicle_id, trip.date.month, trip.date.year)
        raw_month = await self.state.get(month_key)
        monthly = MonthlyPremiumRecord.from_bytes(raw_month) if raw_month is not None else None

        if result.status == ResultStatus.RESOLVED and self.enforce_single_resolution:
            logger.info("Result for trip %s already resolved, nothing written", trip_id)
            return DecryptionResponse(
                trip_id=trip_id,
                premium=premium,
                month_premium=monthly.premium if monthly else 0,
                already_resolved=True,
            )

        resolved = result.model_copy(update={"status": ResultStatus.RESOLVED})
        if not await self.state.compare_and_put(result_id, raw_result, resolved.to_bytes()):
            await self.state.rollback()
            raise ConcurrentModification(f"Result for trip '{trip_id}' changed during decryption")

        await self.state.put_record(
            keys.prime_key(trip_id),
            PremiumRecord(trip_id=trip_id, date=trip.date, premium=premium),
        )

        if monthly is None:
            monthly = MonthlyPremiumRecord(
                vehicle_id=trip.vehicle_id,
                month=trip.date.month,
                year=trip.date.year,
                premium=premium,
            )
        else:
            monthly = monthly.model_copy(update={"premium": monthly.premium + premium})

        if not await self.state.compare_and_put(month_key, raw_month, monthly.to_bytes()):
            await self.state.rollback()
            raise ConcurrentModification(
                f"Monthly premium of vehicle '{trip.vehicle_id}' changed during decryption"
            )

        await self.state.commit()

        logger.info(
            "Premium of trip %s recorded; %02d-%04d total for vehicle %s is %d",
            trip_id,
            monthly.month,
            monthly.year,
            trip.vehicle_id,
            monthly.premium,
        )
        return DecryptionResponse(
            trip_id=trip_id,
            premium=premium,
            month_premium=monthly.premium,
            already_resolved=False,
        )

    async def resolve(self, result_id: str) -> DecryptionResponse:
        """Run both protocol steps with the stored key material."""
        result = await self.get_result(result_id)
        r_prime = await self.compute_decryption_hint(result_id)
        return await self.decrypt_and_update(result.trip_id, r_prime)

    async def calculate_and_resolve(
        self,
        vehicle_id: str,
        trip_id: str,
        criteria_weights_id: str
    ) -> DecryptionResponse:
        result = await self.calculate_premium(vehicle_id, trip_id, criteria_weights_id)
        return await self.resolve(result.result_id)

    async def get_premium(self, trip_id: str) -> PremiumRecord:
        return await self.state.require_record(
            keys.prime_key(trip_id), PremiumRecord, f"Premium of trip '{trip_id}'"
        )

    async def get_month_premium(self, vehicle_id: str, month: int, year: int) -> MonthlyPremiumRecord:
        if not 1 <= month <= 12:
            raise InvalidArgument("month must be between 1 and 12")
        if year < 1:
            raise InvalidArgument("year must be positive")
        return await self.state.require_record(
            keys.month_prime_key(vehicle_id, month, year),
            MonthlyPremiumRecord,
            f"Monthly premium of vehicle '{vehicle_id}' for {month:02d}-{year:04d}",
        )

    async def add_month_premium(
        self,
        vehicle_id: str,
        month: int,
        year: int,
        premium: int
    ) -> MonthlyPremiumRecord:
        """Seed a monthly accumulator; refuses to overwrite an existing one."""
        record = MonthlyPremiumRecord(
            vehicle_id=vehicle_id,
            month=month,
            year=year,
            premium=premium,
        )
        key = keys.month_prime_key(vehicle_id, month, year)
        if not await self.state.compare_and_put(key, None, record.to_bytes()):
            raise AlreadyExists(
                f"Monthly premium of vehicle '{vehicle_id}' for {month:02d}-{year:04d} already exists"
            )
        await self.state.commit()

        logger.info("Monthly premium of vehicle %s for %02d-%04d added", vehicle_id, month, year)
        return record

    async def premiums_by_vehicle(self, vehicle_id: str) -> List[PremiumRecord]:
        premiums = []
        for trip in await self.trip_service.trips_by_vehicle(vehicle_id):
            record = await self.state.get_record(keys.prime_key(trip.trip_id), PremiumRecord)
            if record is not None:
                premiums.append(record)
        return premiums

    async def results_by_vehicle(self, vehicle_id: str) -> List[CalculationResult]:
        selector = keys.prefix_selector(keys.RESULT_PREFIX)
        selector["vehicleID"] = vehicle_id
        return [
            CalculationResult.from_bytes(value)
            async for _, value in self.state.query(selector)
        ]
