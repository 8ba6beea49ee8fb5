"""
API v1 router configuration.
"""
from fastapi import APIRouter

from securedrive.api.v1.endpoints import (
    auth,
    chaincode,
    contracts,
    criteria,
    keys,
    owners,
    premiums,
    trips,
    vehicles,
)


api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"]
)

api_router.include_router(
    keys.router,
    prefix="/keys",
    tags=["Key Material"]
)

api_router.include_router(
    vehicles.router,
    prefix="/vehicles",
    tags=["Vehicles"]
)

api_router.include_router(
    trips.router,
    prefix="/trips",
    tags=["Trips"]
)

api_router.include_router(
    criteria.router,
    prefix="/criteria",
    tags=["Criteria Weights"]
)

api_router.include_router(
    contracts.router,
    prefix="/contracts",
    tags=["Contracts"]
)

api_router.include_router(
    premiums.router,
    prefix="/premiums",
    tags=["Premiums"]
)

api_router.include_router(
    owners.router,
    prefix="/owners",
    tags=["Owners"]
)

api_router.include_router(
    chaincode.router,
    prefix="/chaincode",
    tags=["Chaincode"]
)
