"""
Criteria weights service.
"""
import logging
from typing import List

from securedrive.core.exceptions import AlreadyExists
from securedrive.ledger import keys
from securedrive.ledger.world_state import WorldState
from securedrive.schemas.criteria import CriteriaWeights


logger = logging.getLogger(__name__)


class CriteriaService:
    """Service for criteria weight operations."""

    def __init__(self, state: WorldState):
        self.state = state

    async def add_criteria_weights(self, weights: CriteriaWeights) -> CriteriaWeights:
        key = keys.criteria_weights_key(weights.criteria_weights_id)
        if await self.state.exists(key):
            raise AlreadyExists(
                f"Criteria weights '{weights.criteria_weights_id}' already exist"
            )

        await self.state.put_record(key, weights)
        await self.state.commit()

        logger.info("Criteria weights %s added", weights.criteria_weights_id)
        return weights

    async def get_criteria_weights(self, criteria_weights_id: str) -> CriteriaWeights:
        return await self.state.require_record(
            keys.criteria_weights_key(criteria_weights_id),
            CriteriaWeights,
            f"Criteria weights '{criteria_weights_id}'",
        )

    async def list_criteria_weights(self) -> List[CriteriaWeights]:
        selector = keys.prefix_selector(keys.CRITERIA_WEIGHTS_PREFIX)
        return [
            CriteriaWeights.from_bytes(value)
            async for _, value in self.state.query(selector)
        ]
