"""
Runtime Configuration

Central configuration for chain access, attestation signing and reserve
commitment behavior.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()

REDACTED = "***"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ChainConfig:
    """Where attestations are bound and published."""
    chain_id: Optional[int] = None
    rpc_url: Optional[str] = None
    registry_address: Optional[str] = None
    publisher_address: Optional[str] = None


@dataclass
class SignerConfig:
    """Attestation signing key and publisher transaction key. Never printed or logged."""
    private_key: Optional[str] = None
    publisher_key: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"SignerConfig(private_key={REDACTED if self.private_key else None}, "
            f"publisher_key={REDACTED if self.publisher_key else None})"
        )


@dataclass
class PorConfig:
    """Reserve commitment behavior."""
    strict_totals: bool = False


@dataclass
class HttpConfig:
    """Configuration for the JSON-RPC HTTP transport."""
    timeout: float = 30.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    chain: ChainConfig = field(default_factory=ChainConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)
    por: PorConfig = field(default_factory=PorConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - GRUSH_CHAIN_ID: Chain id attestations are bound to
        - GRUSH_RPC_URL (or RPC_URL): JSON-RPC endpoint
        - GRUSH_REGISTRY_ADDRESS: ReserveRegistry contract address
        - GRUSH_PUBLISHER_ADDRESS: Node-managed account that publishes
        - ATTESTATION_SIGNER_PK: Attestation signing key (hex)
        - PUBLISHER_PK: Key that signs publish transactions locally (hex)
        - GRUSH_STRICT_TOTALS: Fail on advisory totals mismatch (true/false)
        - GRUSH_HTTP_TIMEOUT: RPC timeout in seconds
        - GRUSH_LOG_LEVEL / GRUSH_LOG_FILE: Logging setup
        """
        overrides: dict[str, Any] = {}

        # Chain settings
        if os.getenv("GRUSH_CHAIN_ID"):
            overrides.setdefault("chain", {})["chain_id"] = int(os.environ["GRUSH_CHAIN_ID"])
        rpc_url = os.getenv("GRUSH_RPC_URL") or os.getenv("RPC_URL")
        if rpc_url:
            overrides.setdefault("chain", {})["rpc_url"] = rpc_url
        if os.getenv("GRUSH_REGISTRY_ADDRESS"):
            overrides.setdefault("chain", {})["registry_address"] = os.getenv("GRUSH_REGISTRY_ADDRESS")
        if os.getenv("GRUSH_PUBLISHER_ADDRESS"):
            overrides.setdefault("chain", {})["publisher_address"] = os.getenv("GRUSH_PUBLISHER_ADDRESS")

        # Signer
        if os.getenv("ATTESTATION_SIGNER_PK"):
            overrides.setdefault("signer", {})["private_key"] = os.getenv("ATTESTATION_SIGNER_PK")
        if os.getenv("PUBLISHER_PK"):
            overrides.setdefault("signer", {})["publisher_key"] = os.getenv("PUBLISHER_PK")

        # Commitment
        if os.getenv("GRUSH_STRICT_TOTALS"):
            overrides.setdefault("por", {})["strict_totals"] = _env_bool(os.environ["GRUSH_STRICT_TOTALS"])

        # HTTP
        if os.getenv("GRUSH_HTTP_TIMEOUT"):
            overrides.setdefault("http", {})["timeout"] = float(os.environ["GRUSH_HTTP_TIMEOUT"])

        # Logging
        if os.getenv("GRUSH_LOG_LEVEL"):
            overrides.setdefault("logging", {})["level"] = os.environ["GRUSH_LOG_LEVEL"].upper()
        if os.getenv("GRUSH_LOG_FILE"):
            overrides.setdefault("logging", {})["file"] = os.getenv("GRUSH_LOG_FILE")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        chain_data = data.get("chain") or {}
        signer_data = data.get("signer") or {}
        por_data = data.get("por") or {}
        http_data = data.get("http") or {}
        logging_data = data.get("logging") or {}

        return cls(
            chain=ChainConfig(**chain_data),
            signer=SignerConfig(**signer_data),
            por=PorConfig(**por_data),
            http=HttpConfig(**http_data),
            logging=LoggingConfig(**logging_data),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for section, values in overrides.items():
            target = getattr(new_config, section)
            for key, value in values.items():
                setattr(target, key, value)
        return new_config

    def to_dict(self, redact: bool = True) -> dict[str, Any]:
        """Convert configuration to a dictionary; keys are redacted by default."""
        private_key = self.signer.private_key
        publisher_key = self.signer.publisher_key
        if redact:
            private_key = REDACTED if private_key else None
            publisher_key = REDACTED if publisher_key else None
        return {
            "chain": {
                "chain_id": self.chain.chain_id,
                "rpc_url": self.chain.rpc_url,
                "registry_address": self.chain.registry_address,
                "publisher_address": self.chain.publisher_address,
            },
            "signer": {
                "private_key": private_key,
                "publisher_key": publisher_key,
            },
            "por": {
                "strict_totals": self.por.strict_totals,
            },
            "http": {
                "timeout": self.http.timeout,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set the default runtime configuration (None resets it)."""
    global _default_config
    _default_config = config
