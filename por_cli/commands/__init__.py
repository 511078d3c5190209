"""
CLI command modules.
"""

from por_cli.commands import attest, reserves

__all__ = ["attest", "reserves"]
