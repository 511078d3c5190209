"""
FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import APIError, api_error_handler, generic_error_handler, por_error_handler
from api.routes import health, por, verify
from core.config import get_default_config
from core.schemas.errors import PorException


logging.basicConfig(
    level=getattr(logging, get_default_config().logging.level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="GRUSH Proof-of-Reserve API",
        description="""
HTTP API for GRUSH reserve commitments and attestations.

## Endpoints

- **POST /por/build** - Reserve list (raw body) to PorOutput
- **POST /por/prove** - Inclusion proof for one serial number
- **POST /verify/attestation** - Recover and check an attestation signer
- **POST /verify/proof** - Check a Merkle inclusion proof
- **GET /health** - Health check

Errors are returned as `{"ok": false, "error": {"code", "message", "details"}}`.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(PorException, por_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(por.router)
    app.include_router(verify.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
