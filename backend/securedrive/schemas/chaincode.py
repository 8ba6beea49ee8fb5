"""
Chaincode invocation schemas.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ChaincodeRequest(BaseModel):
    """A contract function call."""

    function: str = Field(..., min_length=1, description="Contract function name, e.g. calculateInsurancePremium")
    args: List[str] = Field(default_factory=list, description="Positional string arguments")


class ChaincodeResponse(BaseModel):
    """Outcome of a contract function call."""

    success: bool
    payload: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    tx_id: Optional[str] = Field(None, description="Set for submitted transactions")
    timestamp: Optional[str] = None
