"""
Insurance contract service.
"""
import logging
from typing import List

from securedrive.core.exceptions import AlreadyExists, InvalidArgument
from securedrive.ledger import keys
from securedrive.ledger.world_state import WorldState
from securedrive.schemas.contract import InsuranceContract
from securedrive.services.criteria_service import CriteriaService
from securedrive.services.vehicle_service import VehicleService


logger = logging.getLogger(__name__)


class ContractService:
    """Service for insurance contract operations."""

    def __init__(self, state: WorldState):
        self.state = state
        self.vehicle_service = VehicleService(state)
        self.criteria_service = CriteriaService(state)

    async def add_contract(self, contract: InsuranceContract) -> InsuranceContract:
        """Store a contract after checking the vehicle, its owner and the weights."""
        key = keys.contract_key(contract.contract_id)
        if await self.state.exists(key):
            raise AlreadyExists(f"Contract '{contract.contract_id}' already exists")

        vehicle = await self.vehicle_service.get_vehicle(contract.vehicle_id)
        if vehicle.owner_id != contract.owner_id:
            raise InvalidArgument(
                f"Vehicle '{contract.vehicle_id}' is not owned by '{contract.owner_id}'"
            )
        await self.criteria_service.get_criteria_weights(contract.criteria_weights_id)

        await self.state.put_record(key, contract)
        await self.state.commit()

        logger.info(
            "Contract %s added for vehicle %s (%s to %s)",
            contract.contract_id,
            contract.vehicle_id,
            contract.start_date,
            contract.end_date,
        )
        return contract

    async def get_contract(self, contract_id: str) -> InsuranceContract:
        return await self.state.require_record(
            keys.contract_key(contract_id), InsuranceContract, f"Contract '{contract_id}'"
        )

    async def contracts_by_owner(self, owner_id: str) -> List[InsuranceContract]:
        selector = keys.prefix_selector(keys.CONTRACT_PREFIX)
        selector["ownerID"] = owner_id
        return [
            InsuranceContract.from_bytes(value)
            async for _, value in self.state.query(selector)
        ]

    async def contracts_by_vehicle(self, vehicle_id: str) -> List[InsuranceContract]:
        selector = keys.prefix_selector(keys.CONTRACT_PREFIX)
        selector["vehicleID"] = vehicle_id
        return [
            InsuranceContract.from_bytes(value)
            async for _, value in self.state.query(selector)
        ]

    async def list_contracts(self) -> List[InsuranceContract]:
        selector = keys.prefix_selector(keys.CONTRACT_PREFIX)
        return [
            InsuranceContract.from_bytes(value)
            async for _, value in self.state.query(selector)
        ]
