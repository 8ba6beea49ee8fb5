"""
Owner overview service.
"""
import logging
from typing import Dict, List

from securedrive.core.exceptions import InvalidArgument
from securedrive.ledger import keys
from securedrive.ledger.world_state import WorldState
from securedrive.schemas.criteria import CriteriaWeights
from securedrive.schemas.owner import ContractSummary, OwnerDetails, VehicleDetails
from securedrive.services.contract_service import ContractService
from securedrive.services.premium_service import PremiumService
from securedrive.services.vehicle_service import VehicleService


logger = logging.getLogger(__name__)


class OwnerService:
    """Read-only views across vehicles, contracts and premiums of an owner."""

    def __init__(self, state: WorldState):
        self.state = state
        self.vehicle_service = VehicleService(state)
        self.contract_service = ContractService(state)
        self.premium_service = PremiumService(state)

    async def owner_details(self, owner_id: str) -> OwnerDetails:
        """Vehicles of ``owner_id`` with their contracts and weights, plus trip premiums."""
        vehicles = []
        premiums = []

        for vehicle in await self.vehicle_service.vehicles_by_owner(owner_id):
            contracts = []
            for contract in await self.contract_service.contracts_by_vehicle(vehicle.vehicle_id):
                if contract.owner_id != owner_id:
                    continue
                weights = await self.state.get_record(
                    keys.criteria_weights_key(contract.criteria_weights_id), CriteriaWeights
                )
                contracts.append(ContractSummary(
                    contract_id=contract.contract_id,
                    start_date=contract.start_date,
                    end_date=contract.end_date,
                    criteria_weights_id=contract.criteria_weights_id,
                    criteria_weights=weights,
                ))

            vehicles.append(VehicleDetails(
                vehicle_id=vehicle.vehicle_id,
                vehicle=vehicle,
                contracts=contracts,
            ))
            premiums.extend(await self.premium_service.premiums_by_vehicle(vehicle.vehicle_id))

        return OwnerDetails(owner_id=owner_id, vehicles=vehicles, premiums=premiums)

    async def multiple_owner_details(self, owner_ids: List[str]) -> Dict[str, OwnerDetails]:
        if not owner_ids:
            raise InvalidArgument("at least one owner is required")

        details = {}
        for owner_id in owner_ids:
            if owner_id in details:
                continue
            details[owner_id] = await self.owner_details(owner_id)
        return details
