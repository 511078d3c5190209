"""
Runtime Configuration Module

Provides configuration loading and management for the PoR core.
"""

from .runtime import (
    ChainConfig,
    HttpConfig,
    LoggingConfig,
    PorConfig,
    RuntimeConfig,
    SignerConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "RuntimeConfig",
    "ChainConfig",
    "SignerConfig",
    "PorConfig",
    "HttpConfig",
    "LoggingConfig",
    "get_default_config",
    "set_default_config",
]
