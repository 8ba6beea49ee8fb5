"""
Tests for the premium calculation and decryption services.
"""
import json
from unittest.mock import AsyncMock

import pytest

from securedrive.core.exceptions import (
    AlreadyExists,
    ConcurrentModification,
    InvalidArgument,
    NotFound,
    RangeError,
    VerificationFailed,
)
from securedrive.crypto.homomorphic.randomness import derive_deterministic_r, vehicle_context
from securedrive.ledger import keys
from securedrive.schemas.contract import InsuranceContract
from securedrive.schemas.premium import ResultStatus
from securedrive.services.contract_service import ContractService
from securedrive.services.key_service import KeyService
from securedrive.services.owner_service import OwnerService
from securedrive.services.premium_service import PremiumService
from securedrive.services.trip_service import TripService
from securedrive.services.vehicle_service import VehicleService

from conftest import OWNER, P, Q, SCENARIO_PREMIUM, SCENARIO_TRIP, SCENARIO_VEHICLE, TRIP_DATE


def contract(**overrides) -> InsuranceContract:
    fields = dict(
        contract_id="c1",
        owner_id=OWNER,
        vehicle_id="v1",
        criteria_weights_id="cw1",
        start_month=1,
        start_year=2024,
        end_month=12,
        end_year=2024,
    )
    fields.update(overrides)
    return InsuranceContract(**fields)


class TestPremiumCalculation:
    """Verifier-side aggregation."""

    @pytest.mark.asyncio
    async def test_calculate_stores_pending_result(self, seeded_state, verifier):
        result = await PremiumService(seeded_state).calculate_premium("v1", "t1", "cw1")

        assert result.result_id == "result_t1"
        assert result.status == ResultStatus.PENDING
        assert result.r == result.total_premium % verifier.n

        stored = await PremiumService(seeded_state).get_result("result_t1")
        assert stored == result

    @pytest.mark.asyncio
    async def test_recalculate_pending_result(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.calculate_premium("v1", "t1", "cw1")
        again = await service.calculate_premium("v1", "t1", "cw1")

        assert again.status == ResultStatus.PENDING

    @pytest.mark.asyncio
    async def test_trip_of_other_vehicle(self, seeded_state):
        await VehicleService(seeded_state).add_vehicle("v2", owner_id=OWNER, **SCENARIO_VEHICLE)

        with pytest.raises(InvalidArgument):
            await PremiumService(seeded_state).calculate_premium("v2", "t1", "cw1")

    @pytest.mark.asyncio
    async def test_unknown_references(self, seeded_state):
        service = PremiumService(seeded_state)
        with pytest.raises(NotFound):
            await service.calculate_premium("missing", "t1", "cw1")
        with pytest.raises(NotFound):
            await service.calculate_premium("v1", "missing", "cw1")
        with pytest.raises(NotFound):
            await service.calculate_premium("v1", "t1", "missing")

    @pytest.mark.asyncio
    async def test_result_not_found(self, seeded_state):
        with pytest.raises(NotFound):
            await PremiumService(seeded_state).get_result("result_missing")


class TestDecryptionProtocol:
    """Decryptor hint plus Verifier check and bookkeeping."""

    @pytest.mark.asyncio
    async def test_hint_matches_decryptor(self, seeded_state, decryptor):
        service = PremiumService(seeded_state)
        result = await service.calculate_premium("v1", "t1", "cw1")

        r_prime = await service.compute_decryption_hint("result_t1")

        assert r_prime == decryptor.compute_r_prime(result.r)

    @pytest.mark.asyncio
    async def test_decrypt_and_update(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.calculate_premium("v1", "t1", "cw1")
        r_prime = await service.compute_decryption_hint("result_t1")

        response = await service.decrypt_and_update("t1", r_prime)

        assert response.premium == SCENARIO_PREMIUM
        assert response.month_premium == SCENARIO_PREMIUM
        assert response.already_resolved is False

        premium = await service.get_premium("t1")
        assert premium.premium == SCENARIO_PREMIUM
        assert premium.date == TRIP_DATE

        monthly = await service.get_month_premium("v1", 3, 2024)
        assert monthly.premium == SCENARIO_PREMIUM

        result = await service.get_result("result_t1")
        assert result.status == ResultStatus.RESOLVED

    @pytest.mark.asyncio
    async def test_resolve(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.calculate_premium("v1", "t1", "cw1")

        response = await service.resolve("result_t1")

        assert response.premium == SCENARIO_PREMIUM

    @pytest.mark.asyncio
    async def test_calculate_and_resolve(self, seeded_state):
        response = await PremiumService(seeded_state).calculate_and_resolve("v1", "t1", "cw1")

        assert response.trip_id == "t1"
        assert response.premium == SCENARIO_PREMIUM

    @pytest.mark.asyncio
    async def test_second_resolution_counted_once(self, seeded_state):
        service = PremiumService(seeded_state, enforce_single_resolution=True)
        await service.calculate_premium("v1", "t1", "cw1")
        r_prime = await service.compute_decryption_hint("result_t1")
        await service.decrypt_and_update("t1", r_prime)

        again = await service.decrypt_and_update("t1", r_prime)

        assert again.already_resolved is True
        assert again.premium == SCENARIO_PREMIUM
        assert again.month_premium == SCENARIO_PREMIUM
        monthly = await service.get_month_premium("v1", 3, 2024)
        assert monthly.premium == SCENARIO_PREMIUM

    @pytest.mark.asyncio
    async def test_second_resolution_without_guard(self, seeded_state):
        service = PremiumService(seeded_state, enforce_single_resolution=False)
        await service.calculate_premium("v1", "t1", "cw1")
        r_prime = await service.compute_decryption_hint("result_t1")
        await service.decrypt_and_update("t1", r_prime)

        again = await service.decrypt_and_update("t1", r_prime)

        assert again.already_resolved is False
        assert again.month_premium == 2 * SCENARIO_PREMIUM

    @pytest.mark.asyncio
    async def test_trips_in_same_month_accumulate(self, seeded_state):
        await TripService(seeded_state).add_trip("v1", "t2", TRIP_DATE, dict(SCENARIO_TRIP))
        service = PremiumService(seeded_state)

        await service.calculate_and_resolve("v1", "t1", "cw1")
        second = await service.calculate_and_resolve("v1", "t2", "cw1")

        assert second.month_premium == 2 * SCENARIO_PREMIUM

    @pytest.mark.asyncio
    async def test_wrong_hint_writes_nothing(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.calculate_premium("v1", "t1", "cw1")

        with pytest.raises(VerificationFailed):
            await service.decrypt_and_update("t1", 2)

        assert await seeded_state.get(keys.prime_key("t1")) is None
        assert await seeded_state.get(keys.month_prime_key("v1", 3, 2024)) is None
        result = await service.get_result("result_t1")
        assert result.status == ResultStatus.PENDING

    @pytest.mark.asyncio
    async def test_decrypt_without_result(self, seeded_state):
        with pytest.raises(NotFound):
            await PremiumService(seeded_state).decrypt_and_update("t1", 2)

    @pytest.mark.asyncio
    async def test_recalculate_resolved_result(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.calculate_and_resolve("v1", "t1", "cw1")

        with pytest.raises(AlreadyExists):
            await service.calculate_premium("v1", "t1", "cw1")

    @pytest.mark.asyncio
    async def test_lost_update_rolls_back(self, seeded_state, monkeypatch):
        service = PremiumService(seeded_state)
        await service.calculate_premium("v1", "t1", "cw1")
        r_prime = await service.compute_decryption_hint("result_t1")

        monkeypatch.setattr(seeded_state, "compare_and_put", AsyncMock(return_value=False))
        with pytest.raises(ConcurrentModification):
            await service.decrypt_and_update("t1", r_prime)

        assert await seeded_state.get(keys.prime_key("t1")) is None


class TestMonthlyPremiums:
    """Monthly accumulator records."""

    @pytest.mark.asyncio
    async def test_add_month_premium(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.add_month_premium("v1", 3, 2024, 100)

        monthly = await service.get_month_premium("v1", 3, 2024)
        assert monthly.premium == 100

    @pytest.mark.asyncio
    async def test_add_month_premium_twice(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.add_month_premium("v1", 3, 2024, 100)

        with pytest.raises(AlreadyExists):
            await service.add_month_premium("v1", 3, 2024, 200)

    @pytest.mark.asyncio
    async def test_seeded_month_is_incremented(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.add_month_premium("v1", 3, 2024, 100)

        response = await service.calculate_and_resolve("v1", "t1", "cw1")

        assert response.month_premium == 100 + SCENARIO_PREMIUM

    @pytest.mark.asyncio
    async def test_invalid_month(self, seeded_state):
        service = PremiumService(seeded_state)
        with pytest.raises(InvalidArgument):
            await service.get_month_premium("v1", 13, 2024)
        with pytest.raises(InvalidArgument):
            await service.get_month_premium("v1", 3, 0)

    @pytest.mark.asyncio
    async def test_month_not_found(self, seeded_state):
        with pytest.raises(NotFound):
            await PremiumService(seeded_state).get_month_premium("v1", 4, 2024)


class TestVehicleQueries:
    """Lookups across trips, results and premiums of a vehicle."""

    @pytest.mark.asyncio
    async def test_premiums_by_vehicle(self, seeded_state):
        await TripService(seeded_state).add_trip("v1", "t2", TRIP_DATE, dict(SCENARIO_TRIP))
        service = PremiumService(seeded_state)
        await service.calculate_and_resolve("v1", "t1", "cw1")

        premiums = await service.premiums_by_vehicle("v1")

        assert [p.trip_id for p in premiums] == ["t1"]

    @pytest.mark.asyncio
    async def test_results_by_vehicle(self, seeded_state):
        service = PremiumService(seeded_state)
        await service.calculate_premium("v1", "t1", "cw1")

        results = await service.results_by_vehicle("v1")
        assert [r.result_id for r in results] == ["result_t1"]
        assert await service.results_by_vehicle("v2") == []

    @pytest.mark.asyncio
    async def test_trips_by_vehicle(self, seeded_state):
        await TripService(seeded_state).add_trip("v1", "t2", TRIP_DATE, dict(SCENARIO_TRIP))

        trips = await TripService(seeded_state).trips_by_vehicle("v1")

        assert sorted(t.trip_id for t in trips) == ["t1", "t2"]

    @pytest.mark.asyncio
    async def test_delete_trip(self, seeded_state):
        service = TripService(seeded_state)
        await service.delete_trip("t1")

        with pytest.raises(NotFound):
            await service.get_trip("t1")
        with pytest.raises(NotFound):
            await service.delete_trip("t1")

    @pytest.mark.asyncio
    async def test_duplicate_trip(self, seeded_state):
        with pytest.raises(AlreadyExists):
            await TripService(seeded_state).add_trip("v1", "t1", TRIP_DATE, dict(SCENARIO_TRIP))

    @pytest.mark.asyncio
    async def test_trip_metric_above_ceiling(self, seeded_state):
        service = TripService(seeded_state)

        with pytest.raises(RangeError):
            await service.add_trip("v1", "t2", TRIP_DATE, {**SCENARIO_TRIP, "mileage": 1_000_001})

        with pytest.raises(NotFound):
            await service.get_trip("t2")

    @pytest.mark.asyncio
    async def test_trip_metric_at_ceiling(self, seeded_state):
        trip = await TripService(seeded_state).add_trip(
            "v1", "t2", TRIP_DATE, {**SCENARIO_TRIP, "mileage": 1_000_000}
        )

        assert trip.trip_id == "t2"


class TestVehicles:
    """Vehicle records and owner assignment."""

    @pytest.mark.asyncio
    async def test_deterministic_encryption(self, seeded_state, verifier):
        vehicle = await VehicleService(seeded_state).add_vehicle(
            "v2", owner_id=OWNER, deterministic=True, **SCENARIO_VEHICLE
        )

        r = derive_deterministic_r(vehicle_context("v2", 1, 50000, 2020, OWNER), verifier.n)
        assert vehicle.vehicle_type == verifier.encrypt_with_custom_random(1, r)
        assert vehicle.year == verifier.encrypt_with_custom_random(2020, r)

    @pytest.mark.asyncio
    async def test_vehicle_without_verifier(self, state):
        with pytest.raises(NotFound):
            await VehicleService(state).add_vehicle("v1", owner_id="nobody", **SCENARIO_VEHICLE)

    @pytest.mark.asyncio
    async def test_vehicle_field_above_ceiling(self, seeded_state):
        service = VehicleService(seeded_state)

        with pytest.raises(RangeError):
            await service.add_vehicle(
                "v2", owner_id=OWNER, vehicle_type=1, purchase_mileage=10_000_001, year=2020
            )

        with pytest.raises(NotFound):
            await service.get_vehicle("v2")

    @pytest.mark.asyncio
    async def test_vehicles_by_owner(self, seeded_state):
        vehicles = await VehicleService(seeded_state).vehicles_by_owner(OWNER)

        assert [v.vehicle_id for v in vehicles] == ["v1"]
        assert await VehicleService(seeded_state).vehicles_by_owner("bob") == []

    @pytest.mark.asyncio
    async def test_assign_owner_with_same_modulus(self, seeded_state):
        await KeyService(seeded_state).register_key_pair("bob", P, Q)

        vehicle = await VehicleService(seeded_state).assign_owner("v1", "bob")

        assert vehicle.owner_id == "bob"

    @pytest.mark.asyncio
    async def test_assign_owner_with_other_modulus(self, seeded_state):
        await KeyService(seeded_state).register_key_pair("carol", 2**19 - 1, 2**31 - 1)

        with pytest.raises(InvalidArgument):
            await VehicleService(seeded_state).assign_owner("v1", "carol")

    @pytest.mark.asyncio
    async def test_remove_legacy_field(self, seeded_state):
        key = keys.vehicle_key("v1")
        document = json.loads(await seeded_state.get(key))
        document["age"] = "12345"
        await seeded_state.put(key, json.dumps(document).encode())
        await seeded_state.commit()

        service = VehicleService(seeded_state)
        assert await service.remove_legacy_field("age") == 1
        assert "age" not in json.loads(await seeded_state.get(key))
        assert await service.remove_legacy_field("age") == 0

    @pytest.mark.asyncio
    async def test_remove_live_field(self, seeded_state):
        with pytest.raises(InvalidArgument):
            await VehicleService(seeded_state).remove_legacy_field("year")


class TestOwnerDetails:
    """Owner overview across vehicles, contracts and premiums."""

    @pytest.mark.asyncio
    async def test_owner_details(self, seeded_state, weights):
        await ContractService(seeded_state).add_contract(contract())
        await PremiumService(seeded_state).calculate_and_resolve("v1", "t1", "cw1")

        details = await OwnerService(seeded_state).owner_details(OWNER)

        assert details.owner_id == OWNER
        assert len(details.vehicles) == 1
        summary = details.vehicles[0].contracts[0]
        assert summary.contract_id == "c1"
        assert summary.start_date == "01-2024"
        assert summary.criteria_weights == weights
        assert [p.premium for p in details.premiums] == [SCENARIO_PREMIUM]

    @pytest.mark.asyncio
    async def test_multiple_owner_details(self, seeded_state):
        details = await OwnerService(seeded_state).multiple_owner_details([OWNER, "bob", OWNER])

        assert list(details) == [OWNER, "bob"]
        assert details["bob"].vehicles == []

    @pytest.mark.asyncio
    async def test_multiple_owner_details_empty(self, seeded_state):
        with pytest.raises(InvalidArgument):
            await OwnerService(seeded_state).multiple_owner_details([])

    @pytest.mark.asyncio
    async def test_contract_for_other_owner(self, seeded_state):
        await KeyService(seeded_state).register_key_pair("bob", P, Q)

        with pytest.raises(InvalidArgument):
            await ContractService(seeded_state).add_contract(contract(owner_id="bob"))

    @pytest.mark.asyncio
    async def test_duplicate_contract(self, seeded_state):
        service = ContractService(seeded_state)
        await service.add_contract(contract())

        with pytest.raises(AlreadyExists):
            await service.add_contract(contract())
