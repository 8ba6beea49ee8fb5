"""
Encrypted premium aggregation.

    index = w_speed*speeding + w_accel*hard_accelerations + w_brake*emergency_brakes
          + w_distance*unsafe_distance + w_zone*high_risk_zones + w_time*night_driving
          - w_traffic*traffic_signal_compliance
    total = vehicle_type + purchase_mileage + year + alpha*mileage + beta*index

Every term is computed on ciphertexts with the owner's Verifier; no metric is
decrypted. Signal compliance is a credit and is the only subtracted term.
The index may be "negative", in which case it is carried as N - |index|.
"""
from dataclasses import dataclass

from securedrive.core.exceptions import RangeError
from securedrive.crypto.homomorphic.paillier import Verifier
from securedrive.schemas.criteria import CriteriaWeights
from securedrive.schemas.trip import EncryptedTripRecord
from securedrive.schemas.vehicle import EncryptedVehicleRecord


@dataclass(frozen=True)
class PremiumCiphertext:
    """Aggregation output."""

    total: int
    r: int
    behavioral_index: int


def behavioral_index(
    trip: EncryptedTripRecord,
    weights: CriteriaWeights,
    verifier: Verifier
) -> int:
    """Encrypted weighted driving-behavior index of one trip."""
    penalties = [
        verifier.homomorphic_multiplication(trip.speeding, weights.weight_speed),
        verifier.homomorphic_multiplication(trip.hard_accelerations, weights.weight_acceleration),
        verifier.homomorphic_multiplication(trip.emergency_brakes, weights.weight_braking),
        verifier.homomorphic_multiplication(trip.unsafe_distance, weights.weight_distance),
        verifier.homomorphic_multiplication(trip.high_risk_zones, weights.weight_zone),
        verifier.homomorphic_multiplication(trip.night_driving, weights.weight_time),
    ]
    compliance_credit = verifier.homomorphic_multiplication(
        trip.traffic_signal_compliance, weights.weight_traffic
    )
    return verifier.homomorphic_subtraction(
        verifier.homomorphic_sum(penalties),
        compliance_credit,
    )


def aggregate_premium(
    trip: EncryptedTripRecord,
    vehicle: EncryptedVehicleRecord,
    weights: CriteriaWeights,
    verifier: Verifier
) -> PremiumCiphertext:
    """Encrypted total premium of a trip and its public decryption hint R."""
    index = behavioral_index(trip, weights, verifier)

    payd = verifier.homomorphic_multiplication(trip.mileage, weights.alpha)
    phyd = verifier.homomorphic_multiplication(index, weights.beta)

    total = verifier.homomorphic_sum([
        vehicle.vehicle_type,
        vehicle.purchase_mileage,
        vehicle.year,
        payd,
        phyd,
    ])

    return PremiumCiphertext(
        total=total,
        r=verifier.compute_r(total),
        behavioral_index=index,
    )


def worst_case_magnitude(
    weights: CriteriaWeights,
    metric_ceiling: int,
    vehicle_field_ceiling: int
) -> int:
    """Largest absolute plaintext any aggregation step can reach."""
    penalty_weight = (
        weights.weight_speed
        + weights.weight_acceleration
        + weights.weight_braking
        + weights.weight_distance
        + weights.weight_zone
        + weights.weight_time
    )
    index_bound = max(penalty_weight, weights.weight_traffic) * metric_ceiling
    return (
        3 * vehicle_field_ceiling
        + weights.alpha * metric_ceiling
        + weights.beta * index_bound
    )


def check_headroom(
    n: int,
    weights: CriteriaWeights,
    metric_ceiling: int,
    vehicle_field_ceiling: int,
    safety_margin: int
) -> None:
    """
    Refuse weights that could wrap a premium around N.

    A wrapped total decrypts to a huge nonsensical premium instead of failing,
    so the bound is enforced before aggregating.
    """
    if safety_margin < 1:
        raise RangeError("safety margin must be at least 1")
    bound = worst_case_magnitude(weights, metric_ceiling, vehicle_field_ceiling)
    # Centered decoding needs |value| < N/2 as well
    if bound * safety_margin >= n or 2 * bound >= n:
        raise RangeError(
            f"Modulus too small for criteria weights '{weights.criteria_weights_id}' "
            f"with safety margin {safety_margin}"
        )
