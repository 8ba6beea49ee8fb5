"""
Chaincode-style dispatch: named functions with positional string arguments.

Every call returns a result dictionary instead of raising:

    {"success": bool, "payload": <JSON-compatible>, "error": str, "error_code": str}

A failed call rolls the world state back, so no partial writes survive.
"""
import datetime
import logging
from typing import Any, Awaitable, Callable, Dict, List

from pydantic import BaseModel

from securedrive.core.exceptions import InvalidArgument, SecureDriveError
from securedrive.crypto.homomorphic.paillier import Decryptor, Verifier
from securedrive.ledger.world_state import WorldState
from securedrive.schemas.contract import InsuranceContract
from securedrive.schemas.criteria import CriteriaWeights
from securedrive.schemas.keys import DecryptorRecord, VerifierRecord
from securedrive.schemas.trip import TRIP_METRICS
from securedrive.services.contract_service import ContractService
from securedrive.services.criteria_service import CriteriaService
from securedrive.services.key_service import KeyService
from securedrive.services.owner_service import OwnerService
from securedrive.services.premium_service import PremiumService
from securedrive.services.trip_service import TripService
from securedrive.services.vehicle_service import VehicleService


logger = logging.getLogger(__name__)

Handler = Callable[[List[str]], Awaitable[Any]]


def _expect(args: List[str], names: List[str]) -> None:
    if len(args) != len(names):
        raise InvalidArgument(
            f"Incorrect number of arguments. Expecting {len(names)}: {', '.join(names)}"
        )


def _int(value: str, name: str) -> int:
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        raise InvalidArgument(f"{name} must be a decimal integer, got {value!r}")


def _float(value: str, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")


def _date(value: str) -> datetime.date:
    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"Date must be YYYY-MM-DD, got {value!r}")


def _dump(value: Any) -> Any:
    """Convert service results into JSON-compatible payloads."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, Verifier):
        return _dump(VerifierRecord.from_verifier(value))
    if isinstance(value, Decryptor):
        return _dump(DecryptorRecord.from_decryptor(value))
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class SecureDriveContract:
    """Maps chaincode function names onto the services."""

    def __init__(self, state: WorldState):
        self.state = state
        self.keys = KeyService(state)
        self.vehicles = VehicleService(state)
        self.trips = TripService(state)
        self.criteria = CriteriaService(state)
        self.contracts = ContractService(state)
        self.premiums = PremiumService(state)
        self.owners = OwnerService(state)

        self._handlers: Dict[str, Handler] = {
            "addVerifier": self._add_verifier,
            "addDecryptor": self._add_decryptor,
            "registerKeyPair": self._register_key_pair,
            "queryVerifier": self._query_verifier,
            "queryDecryptor": self._query_decryptor,
            "deleteVerifier": self._delete_verifier,
            "encrypt": self._encrypt,
            "addCriteriaWeights": self._add_criteria_weights,
            "queryCriteriaWeights": self._query_criteria_weights,
            "queryAllCriteriaWeights": self._query_all_criteria_weights,
            "addEncryptedVehicleData": self._add_encrypted_vehicle,
            "addVehicleData": self._add_vehicle,
            "queryVehicleData": self._query_vehicle,
            "addOwnerToVehicleData": self._assign_owner,
            "queryVehiclesByOwner": self._query_vehicles_by_owner,
            "removeAgeFromEncryptedVehicleData": self._remove_age,
            "addEncryptedTripData": self._add_encrypted_trip,
            "addTripData": self._add_trip,
            "queryTripData": self._query_trip,
            "queryTripsByVehicleID": self._query_trips_by_vehicle,
            "deleteEncryptedTripData": self._delete_trip,
            "addInsuranceContract": self._add_contract,
            "queryInsuranceContract": self._query_contract,
            "queryInsuranceContractsByOwner": self._query_contracts_by_owner,
            "queryAllInsuranceContracts": self._query_all_contracts,
            "calculateInsurancePremium": self._calculate_premium,
            "computeDecryptionHint": self._compute_decryption_hint,
            "decryptInsurancePremiumAndUpdate": self._decrypt_and_update,
            "decryptInsurancePremiumAndUpdateWithoutParams": self._resolve,
            "calculateAndDecryptInsurancePremium": self._calculate_and_resolve,
            "queryEncryptedCalculationResult": self._query_result,
            "queryEncryptedCalculationResultsByVehicleID": self._query_results_by_vehicle,
            "queryPrime": self._query_prime,
            "queryMonthPrime": self._query_month_prime,
            "addMonthPrime": self._add_month_prime,
            "queryPrimesByVehicleID": self._query_primes_by_vehicle,
            "queryOwnerDetails": self._query_owner_details,
            "queryMultipleOwnerDetails": self._query_multiple_owner_details,
        }

    @property
    def functions(self) -> List[str]:
        return sorted(self._handlers)

    def is_query(self, function_name: str) -> bool:
        """Whether a function only reads the world state."""
        return function_name in self._handlers and (
            function_name.startswith("query") or function_name == "encrypt"
        )

    async def invoke(self, function_name: str, args: List[str]) -> Dict[str, Any]:
        """Run one named function and report its outcome."""
        handler = self._handlers.get(function_name)
        if handler is None:
            return {
                "success": False,
                "payload": None,
                "error": f"Invalid function name: {function_name}",
                "error_code": InvalidArgument.code,
            }

        try:
            payload = await handler(list(args))
        except SecureDriveError as e:
            await self.state.rollback()
            logger.info("%s failed: [%s] %s", function_name, e.code, e.message)
            return {
                "success": False,
                "payload": None,
                "error": e.message,
                "error_code": e.code,
            }

        return {
            "success": True,
            "payload": _dump(payload),
            "error": None,
            "error_code": None,
        }

    # Key material

    async def _add_verifier(self, args):
        _expect(args, ["OwnerID", "N", "NSquare"])
        return await self.keys.add_verifier(args[0], _int(args[1], "N"), _int(args[2], "NSquare"))

    async def _add_decryptor(self, args):
        _expect(args, ["OwnerID", "P", "Q", "N", "Lambda"])
        return await self.keys.add_decryptor(
            args[0],
            _int(args[1], "P"),
            _int(args[2], "Q"),
            _int(args[3], "N"),
            _int(args[4], "Lambda"),
        )

    async def _register_key_pair(self, args):
        _expect(args, ["OwnerID", "P", "Q"])
        return await self.keys.register_key_pair(args[0], _int(args[1], "P"), _int(args[2], "Q"))

    async def _query_verifier(self, args):
        _expect(args, ["OwnerID"])
        return await self.keys.get_verifier(args[0])

    async def _query_decryptor(self, args):
        _expect(args, ["OwnerID"])
        return await self.keys.get_decryptor(args[0])

    async def _delete_verifier(self, args):
        _expect(args, ["OwnerID"])
        await self.keys.delete_verifier(args[0])
        return f"Verifier for owner {args[0]} deleted"

    async def _encrypt(self, args):
        _expect(args, ["OwnerID", "Message"])
        verifier = await self.keys.get_verifier(args[0])
        return verifier.encrypt(_int(args[1], "Message"))

    # Criteria weights

    async def _add_criteria_weights(self, args):
        names = [
            "CriteriaWeightsID", "WeightTraffic", "WeightSpeed", "WeightAcceleration",
            "WeightBraking", "WeightDistance", "WeightZone", "WeightTime", "Alpha", "Beta",
        ]
        _expect(args, names)
        try:
            weights = CriteriaWeights(
                criteria_weights_id=args[0],
                weight_traffic=_int(args[1], names[1]),
                weight_speed=_int(args[2], names[2]),
                weight_acceleration=_int(args[3], names[3]),
                weight_braking=_int(args[4], names[4]),
                weight_distance=_int(args[5], names[5]),
                weight_zone=_int(args[6], names[6]),
                weight_time=_int(args[7], names[7]),
                alpha=_int(args[8], names[8]),
                beta=_int(args[9], names[9]),
            )
        except ValueError as e:
            raise InvalidArgument(str(e)) from e
        return await self.criteria.add_criteria_weights(weights)

    async def _query_criteria_weights(self, args):
        _expect(args, ["CriteriaWeightsID"])
        return await self.criteria.get_criteria_weights(args[0])

    async def _query_all_criteria_weights(self, args):
        _expect(args, [])
        return await self.criteria.list_criteria_weights()

    # Vehicles

    async def _add_encrypted_vehicle(self, args):
        _expect(args, ["VehicleID", "VehicleType", "PurchaseMileage", "Year", "OwnerID"])
        return await self.vehicles.add_encrypted_vehicle(
            args[0],
            _int(args[1], "VehicleType"),
            _int(args[2], "PurchaseMileage"),
            _int(args[3], "Year"),
            args[4],
        )

    async def _add_vehicle(self, args):
        _expect(args, ["VehicleID", "VehicleType", "PurchaseMileage", "Year", "OwnerID"])
        return await self.vehicles.add_vehicle(
            args[0],
            _int(args[1], "VehicleType"),
            _int(args[2], "PurchaseMileage"),
            _int(args[3], "Year"),
            args[4],
        )

    async def _query_vehicle(self, args):
        _expect(args, ["VehicleID"])
        return await self.vehicles.get_vehicle(args[0])

    async def _assign_owner(self, args):
        _expect(args, ["VehicleID", "OwnerID"])
        return await self.vehicles.assign_owner(args[0], args[1])

    async def _query_vehicles_by_owner(self, args):
        _expect(args, ["OwnerID"])
        return await self.vehicles.vehicles_by_owner(args[0])

    async def _remove_age(self, args):
        _expect(args, [])
        updated = await self.vehicles.remove_legacy_field("age")
        return {"updated": updated}

    # Trips

    async def _add_encrypted_trip(self, args):
        _expect(args, ["VehicleID", "TripID", "Date", *TRIP_METRICS])
        metrics = {
            name: _int(value, name) for name, value in zip(TRIP_METRICS, args[3:])
        }
        return await self.trips.add_encrypted_trip(args[0], args[1], _date(args[2]), metrics)

    async def _add_trip(self, args):
        _expect(args, ["VehicleID", "TripID", "Date", *TRIP_METRICS])
        metrics = {
            name: _float(value, name) for name, value in zip(TRIP_METRICS, args[3:])
        }
        if any(value < 0 for value in metrics.values()):
            raise InvalidArgument("Trip metrics must be non-negative")
        return await self.trips.add_trip(args[0], args[1], _date(args[2]), metrics)

    async def _query_trip(self, args):
        _expect(args, ["TripID"])
        return await self.trips.get_trip(args[0])

    async def _query_trips_by_vehicle(self, args):
        _expect(args, ["VehicleID"])
        return await self.trips.trips_by_vehicle(args[0])

    async def _delete_trip(self, args):
        _expect(args, ["TripID"])
        await self.trips.delete_trip(args[0])
        return f"Trip {args[0]} deleted"

    # Contracts

    async def _add_contract(self, args):
        names = [
            "ContractID", "OwnerID", "VehicleID", "CriteriaWeightsID",
            "StartMonth", "StartYear", "EndMonth", "EndYear",
        ]
        _expect(args, names)
        try:
            contract = InsuranceContract(
                contract_id=args[0],
                owner_id=args[1],
                vehicle_id=args[2],
                criteria_weights_id=args[3],
                start_month=_int(args[4], names[4]),
                start_year=_int(args[5], names[5]),
                end_month=_int(args[6], names[6]),
                end_year=_int(args[7], names[7]),
            )
        except ValueError as e:
            raise InvalidArgument(str(e)) from e
        return await self.contracts.add_contract(contract)

    async def _query_contract(self, args):
        _expect(args, ["ContractID"])
        return await self.contracts.get_contract(args[0])

    async def _query_contracts_by_owner(self, args):
        _expect(args, ["OwnerID"])
        return await self.contracts.contracts_by_owner(args[0])

    async def _query_all_contracts(self, args):
        _expect(args, [])
        return await self.contracts.list_contracts()

    # Premiums

    async def _calculate_premium(self, args):
        _expect(args, ["VehicleID", "TripID", "CriteriaWeightsID"])
        return await self.premiums.calculate_premium(args[0], args[1], args[2])

    async def _compute_decryption_hint(self, args):
        _expect(args, ["ResultID"])
        return await self.premiums.compute_decryption_hint(args[0])

    async def _decrypt_and_update(self, args):
        _expect(args, ["TripID", "r_prime"])
        return await self.premiums.decrypt_and_update(args[0], _int(args[1], "r_prime"))

    async def _resolve(self, args):
        _expect(args, ["ResultID"])
        return await self.premiums.resolve(args[0])

    async def _calculate_and_resolve(self, args):
        _expect(args, ["VehicleID", "TripID", "CriteriaWeightsID"])
        return await self.premiums.calculate_and_resolve(args[0], args[1], args[2])

    async def _query_result(self, args):
        _expect(args, ["ResultID"])
        return await self.premiums.get_result(args[0])

    async def _query_results_by_vehicle(self, args):
        _expect(args, ["VehicleID"])
        return await self.premiums.results_by_vehicle(args[0])

    async def _query_prime(self, args):
        _expect(args, ["TripID"])
        return await self.premiums.get_premium(args[0])

    async def _query_month_prime(self, args):
        _expect(args, ["VehicleID", "Month", "Year"])
        return await self.premiums.get_month_premium(
            args[0], _int(args[1], "Month"), _int(args[2], "Year")
        )

    async def _add_month_prime(self, args):
        _expect(args, ["VehicleID", "Month", "Year", "Prime"])
        month = _int(args[1], "Month")
        year = _int(args[2], "Year")
        if not 1 <= month <= 12 or year < 1:
            raise InvalidArgument("Month must be 1-12 and Year positive")
        return await self.premiums.add_month_premium(args[0], month, year, _int(args[3], "Prime"))

    async def _query_primes_by_vehicle(self, args):
        _expect(args, ["VehicleID"])
        return await self.premiums.premiums_by_vehicle(args[0])

    # Owners

    async def _query_owner_details(self, args):
        _expect(args, ["OwnerID"])
        return await self.owners.owner_details(args[0])

    async def _query_multiple_owner_details(self, args):
        if not args:
            raise InvalidArgument("Expecting at least one OwnerID as argument")
        return await self.owners.multiple_owner_details(args)
