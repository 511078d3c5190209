"""
HTTP Client Module

requests Session and options behind the web3 HTTPProvider used by the
JSON-RPC registry client.
"""

from .client import HttpClient, redact_url

__all__ = [
    "HttpClient",
    "redact_url",
]
