"""
Hyperledger Fabric-style client over the SecureDrive contract.
"""
import hashlib
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from securedrive.core.config import settings
from securedrive.core.exceptions import InvalidArgument
from securedrive.fabric.contract import SecureDriveContract
from securedrive.ledger.world_state import WorldState


logger = logging.getLogger(__name__)


class FabricClient:
    """
    Client for submitting transactions to the SecureDrive contract.

    This client handles:
    - Chaincode invocation (write operations, assigned a transaction id)
    - Chaincode queries (read operations)
    - Lookup of submitted transactions
    """

    def __init__(self, state: WorldState):
        self.channel_name = settings.FABRIC_CHANNEL_NAME
        self.chaincode_name = settings.FABRIC_CHAINCODE_NAME
        self.contract = SecureDriveContract(state)
        self._transactions: Dict[str, Dict[str, Any]] = {}

    def _tx_id(self, function_name: str, args: List[str]) -> str:
        return hashlib.sha256(
            f"{self.channel_name}:{self.chaincode_name}:{function_name}:"
            f"{':'.join(args)}:{time.time_ns()}".encode()
        ).hexdigest()

    async def invoke_chaincode(
        self,
        function_name: str,
        args: List[str]
    ) -> Dict[str, Any]:
        """
        Invoke a chaincode function (write operation).

        Args:
            function_name: Function to invoke
            args: Positional string arguments

        Returns:
            The contract result plus tx_id and timestamp
        """
        result = await self.contract.invoke(function_name, args)
        tx_id = self._tx_id(function_name, args)
        timestamp = datetime.now(timezone.utc).isoformat()

        self._transactions[tx_id] = {
            "tx_id": tx_id,
            "function": function_name,
            "status": "VALID" if result["success"] else "INVALID",
            "timestamp": timestamp,
        }
        if not result["success"]:
            logger.warning(
                "Transaction %s (%s) rejected: %s", tx_id[:16], function_name, result["error"]
            )

        return {**result, "tx_id": tx_id, "timestamp": timestamp}

    async def query_chaincode(
        self,
        function_name: str,
        args: List[str]
    ) -> Dict[str, Any]:
        """
        Query a chaincode function (read operation).

        Functions that write are refused; they must go through
        invoke_chaincode so a transaction is recorded.

        Args:
            function_name: Function to query
            args: Positional string arguments

        Returns:
            The contract result
        """
        if not self.contract.is_query(function_name):
            logger.warning("Refused query of non-query function %s", function_name)
            return {
                "success": False,
                "payload": None,
                "error": f"'{function_name}' is not a query function; invoke it instead",
                "error_code": InvalidArgument.code,
            }
        return await self.contract.invoke(function_name, args)

    async def get_transaction(self, tx_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a submitted transaction by ID.

        Args:
            tx_id: Transaction ID

        Returns:
            Transaction details or None if not found
        """
        return self._transactions.get(tx_id)
