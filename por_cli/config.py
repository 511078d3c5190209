"""
CLI Configuration

Configuration management for the GRUSH PoR CLI.
Supports environment variables and JSON configuration files.
The attestation signing key is never read from or written to a config file.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any


# Environment variable prefix
ENV_PREFIX = "GRUSH_"

DEFAULT_CONFIG_NAME = "grush.json"


@dataclass
class CLIConfig:
    """Main CLI configuration."""

    # Chain
    chain_id: int | None = None
    rpc_url: str | None = None
    registry_address: str | None = None
    publisher_address: str | None = None

    # Commitment
    strict_totals: bool = False

    # Transport
    http_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def default_config_paths() -> list[Path]:
    return [
        Path.cwd() / DEFAULT_CONFIG_NAME,
        Path.cwd() / f".{DEFAULT_CONFIG_NAME}",
        Path.home() / ".config" / "grush" / "config.json",
    ]


def load_config_from_file(path: Path) -> CLIConfig:
    """Load configuration from a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")

    config = CLIConfig()
    config.chain_id = data.get("chain_id", config.chain_id)
    config.rpc_url = data.get("rpc_url", config.rpc_url)
    config.registry_address = data.get("registry_address", config.registry_address)
    config.publisher_address = data.get("publisher_address", config.publisher_address)
    config.strict_totals = bool(data.get("strict_totals", config.strict_totals))
    config.http_timeout = float(data.get("http_timeout", config.http_timeout))
    config.log_level = data.get("log_level", config.log_level)
    config.log_file = data.get("log_file", config.log_file)
    return config


def apply_env_overrides(config: CLIConfig) -> CLIConfig:
    """Overlay GRUSH_* environment variables (env takes precedence)."""
    if os.getenv(f"{ENV_PREFIX}CHAIN_ID"):
        config.chain_id = int(os.environ[f"{ENV_PREFIX}CHAIN_ID"])
    rpc_url = os.getenv(f"{ENV_PREFIX}RPC_URL") or os.getenv("RPC_URL")
    if rpc_url:
        config.rpc_url = rpc_url
    if os.getenv(f"{ENV_PREFIX}REGISTRY_ADDRESS"):
        config.registry_address = os.environ[f"{ENV_PREFIX}REGISTRY_ADDRESS"]
    if os.getenv(f"{ENV_PREFIX}PUBLISHER_ADDRESS"):
        config.publisher_address = os.environ[f"{ENV_PREFIX}PUBLISHER_ADDRESS"]
    if os.getenv(f"{ENV_PREFIX}STRICT_TOTALS"):
        config.strict_totals = os.environ[f"{ENV_PREFIX}STRICT_TOTALS"].lower() in ("1", "true", "yes")
    if os.getenv(f"{ENV_PREFIX}HTTP_TIMEOUT"):
        config.http_timeout = float(os.environ[f"{ENV_PREFIX}HTTP_TIMEOUT"])
    if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config.log_level = os.environ[f"{ENV_PREFIX}LOG_LEVEL"]
    if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config.log_file = os.environ[f"{ENV_PREFIX}LOG_FILE"]
    return config


def load_config(config_path: Path | None = None) -> CLIConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings. Without an explicit path
    the first existing default location is used.

    Args:
        config_path: Optional path to config file

    Returns:
        Merged configuration
    """
    config = CLIConfig()

    if config_path is not None:
        config = load_config_from_file(config_path)
    else:
        for default_path in default_config_paths():
            if default_path.exists():
                config = load_config_from_file(default_path)
                break

    return apply_env_overrides(config)


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """{
  "chain_id": 11155111,
  "rpc_url": "http://localhost:8545",
  "registry_address": null,
  "publisher_address": null,
  "strict_totals": false,
  "http_timeout": 30,
  "log_level": "INFO",
  "log_file": null
}
"""
