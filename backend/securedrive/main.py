"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from securedrive.core.config import settings
from securedrive.core.database import init_db, close_db
from securedrive.core.exceptions import (
    AlreadyExists,
    ConcurrentModification,
    CorruptCiphertext,
    InvalidArgument,
    InvalidRandomness,
    NoInverse,
    NoModularInverse,
    NotFound,
    RangeError,
    SecureDriveError,
    VerificationFailed,
)
from securedrive.core.logging import configure_logging
from securedrive.api.v1.router import api_router


logger = logging.getLogger(__name__)

# Most specific class first
ERROR_STATUS = [
    (NotFound, status.HTTP_404_NOT_FOUND),
    (AlreadyExists, status.HTTP_409_CONFLICT),
    (ConcurrentModification, status.HTTP_409_CONFLICT),
    (VerificationFailed, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (CorruptCiphertext, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NoInverse, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidArgument, status.HTTP_400_BAD_REQUEST),
    (RangeError, status.HTTP_400_BAD_REQUEST),
    (InvalidRandomness, status.HTTP_400_BAD_REQUEST),
    (NoModularInverse, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(error: SecureDriveError) -> int:
    for error_cls, status_code in ERROR_STATUS:
        if isinstance(error, error_cls):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def securedrive_error_handler(request: Request, exc: SecureDriveError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: [%s] %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_code": exc.code},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler for startup and shutdown."""
    # Startup
    await init_db()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield
    # Shutdown
    await close_db()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
        SecureDrive usage-based insurance API

        Trip and vehicle data are stored encrypted under each owner's Paillier
        key. Premiums are computed on ciphertexts and decrypted through a
        two-party protocol:
        - The Verifier role (public modulus N) encrypts, aggregates and checks
        - The Decryptor role (lambda) only turns R = C mod N into R'
        - The Verifier checks R'^N = C mod N before decrypting

        ## Key Features
        - Pay-as-you-drive and pay-how-you-drive premiums on encrypted data
        - Publicly verifiable decryption
        - Monthly premium accumulation, counted once per trip
        """,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        lifespan=lifespan,
    )

    app.add_exception_handler(SecureDriveError, securedrive_error_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Gzip compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.APP_VERSION}

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": f"{settings.API_V1_PREFIX}/docs"
        }

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "securedrive.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS if not settings.DEBUG else 1,
    )
