"""
World-state key namespacing, one prefix per entity kind.
"""

VEHICLE_PREFIX = "vehicle_"
TRIP_PREFIX = "trip_"
CRITERIA_WEIGHTS_PREFIX = "criteriaweights_"
VERIFIER_PREFIX = "verifier_"
DECRYPTOR_PREFIX = "decryptor_"
RESULT_PREFIX = "result_"
PRIME_PREFIX = "prime_"
MONTH_PRIME_PREFIX = "monthprime_"
CONTRACT_PREFIX = "contract_"


def vehicle_key(vehicle_id: str) -> str:
    return VEHICLE_PREFIX + vehicle_id


def trip_key(trip_id: str) -> str:
    return TRIP_PREFIX + trip_id


def criteria_weights_key(criteria_weights_id: str) -> str:
    return CRITERIA_WEIGHTS_PREFIX + criteria_weights_id


def verifier_key(owner_id: str) -> str:
    return VERIFIER_PREFIX + owner_id


def decryptor_key(owner_id: str) -> str:
    return DECRYPTOR_PREFIX + owner_id


def result_key(trip_id: str) -> str:
    """Result identifiers are derived from the trip identifier."""
    return RESULT_PREFIX + trip_id


def prime_key(trip_id: str) -> str:
    return PRIME_PREFIX + trip_id


def month_prime_key(vehicle_id: str, month: int, year: int) -> str:
    return f"{MONTH_PRIME_PREFIX}{vehicle_id}_{month}_{year}"


def contract_key(contract_id: str) -> str:
    return CONTRACT_PREFIX + contract_id


def prefix_selector(prefix: str) -> dict:
    """Selector matching every key under ``prefix``."""
    return {"_id": {"$regex": f"^{prefix}"}}
