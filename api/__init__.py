"""
HTTP API (FastAPI)

- POST /por/build - Build PorOutput from a reserve list
- POST /por/prove - Merkle proof for one serial number
- POST /verify/attestation - Verify a signed attestation
- POST /verify/proof - Verify an inclusion proof
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
