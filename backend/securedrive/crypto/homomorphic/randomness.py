"""
Deterministic encryption randomness derived from record context.

Re-encrypting the same record with the same context reproduces the same
ciphertexts, which is what makes this useful for reproducible test data and
what makes it weaker than fresh randomness: equal contexts give equal
ciphertexts. It is an explicit opt-in, never the default path.
"""
import hashlib

from securedrive.core.exceptions import InvalidArgument


def derive_deterministic_r(data: str, n: int) -> int:
    """Map SHA-256(data) into [1, N-1]."""
    if n < 3:
        raise InvalidArgument("N must be greater than 2")
    digest = hashlib.sha256(data.encode()).digest()
    return int.from_bytes(digest, "big") % (n - 1) + 1


def vehicle_context(
    vehicle_id: str,
    vehicle_type: int,
    purchase_mileage: int,
    year: int,
    owner_id: str
) -> str:
    """Context string shared by all fields of one vehicle record."""
    return f"{vehicle_id}{vehicle_type}{purchase_mileage}{year}{owner_id}"


def trip_context(vehicle_id: str, trip_id: str, date: str) -> str:
    """Context string shared by all metrics of one trip record."""
    return f"{vehicle_id}{trip_id}{date}"
