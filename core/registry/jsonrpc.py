"""
JSON-RPC Reserve Registry

Talks to a deployed ReserveRegistry through an Ethereum JSON-RPC node using
a web3 contract bound to RESERVE_REGISTRY_ABI.

Reads are contract calls. Publication is simulated with a call first
(surfacing reverts and the signer the contract recovers) and then sent
either:
- signed locally with the publisher key and broadcast as a raw
  transaction, or
- with eth_sendTransaction from a node-managed publisher account, when no
  key is configured.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import requests
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import ContractLogicError, ProviderConnectionError, TimeExhausted, Web3Exception, Web3RPCError

from core.crypto.addresses import normalize_address
from core.crypto.hashing import require_bytes32
from core.crypto.signatures import load_signing_key
from core.http import HttpClient, redact_url
from core.registry.abi import RESERVE_REGISTRY_ABI
from core.registry.base import AttestationRecord, ReserveRegistry
from core.schemas.errors import RegistryException, ValidationError

logger = logging.getLogger(__name__)


class JsonRpcReserveRegistry(ReserveRegistry):
    """
    ReserveRegistry backed by a JSON-RPC endpoint.

    Usage:
        registry = JsonRpcReserveRegistry(rpc_url, registry_address, publisher_key=pk)
        if registry.is_allowed_signer(signer):
            registry.publish_attestation(...)
            print(registry.last_transaction_hash)
    """

    def __init__(
        self,
        rpc_url: str,
        registry_address: str,
        *,
        publisher_address: Optional[str] = None,
        publisher_key: str | bytes | LocalAccount | None = None,
        http_client: Optional[HttpClient] = None,
        timeout: float = 30.0,
        web3: Optional[Web3] = None,
    ) -> None:
        """
        Args:
            rpc_url: JSON-RPC endpoint (may embed credentials; never logged)
            registry_address: Deployed ReserveRegistry contract
            publisher_address: Unlocked node account that sends publish transactions
            publisher_key: Key that signs publish transactions locally; wins over
                a node-managed publisher_address
            http_client: Session and request options; a new HttpClient is created when omitted
            timeout: Request timeout in seconds
            web3: Preconfigured Web3 instance; built from rpc_url when omitted
        """
        self.rpc_url = rpc_url
        self.address = normalize_address(registry_address, "registry_address")
        self.timeout = timeout

        self._account: Optional[LocalAccount] = None
        if publisher_key is not None:
            self._account = (
                publisher_key if isinstance(publisher_key, LocalAccount) else load_signing_key(publisher_key)
            )
            if publisher_address and normalize_address(publisher_address, "publisher_address") != self._account.address:
                raise ValidationError(
                    "publisher_address does not match the publisher key",
                    field_path="publisher_address",
                    value=publisher_address,
                )
            self.publisher_address: Optional[str] = self._account.address
        else:
            self.publisher_address = (
                normalize_address(publisher_address, "publisher_address") if publisher_address else None
            )

        self._http = http_client or HttpClient(timeout=timeout)
        self.w3 = web3 or Web3(self._http.provider(rpc_url))
        self.contract = self.w3.eth.contract(address=self.address, abi=RESERVE_REGISTRY_ABI)
        self._chain_id: Optional[int] = None
        self.last_transaction_hash: Optional[str] = None

    @contextmanager
    def _node(self, action: str) -> Iterator[None]:
        """
        Translate transport and node failures into RegistryException.

        Connection problems are retryable; reverts and node errors are not.
        """
        endpoint = redact_url(self.rpc_url)
        try:
            yield
        except requests.RequestException as e:
            raise RegistryException(
                f"{action} via {endpoint} failed: {type(e).__name__}",
                details={"action": action},
                retryable=True,
            ) from e
        except (ProviderConnectionError, TimeExhausted) as e:
            raise RegistryException(
                f"{action} via {endpoint} failed: {type(e).__name__}",
                details={"action": action},
                retryable=True,
            ) from e
        except ContractLogicError as e:
            raise RegistryException(
                f"{action} reverted: {e.message}",
                details={"action": action, "revert_data": e.data if isinstance(e.data, (str, dict)) else None},
            ) from e
        except Web3RPCError as e:
            error = (e.rpc_response or {}).get("error")
            raise RegistryException(
                f"{action} error: {e.message}",
                details={"action": action, "rpc_error": error},
            ) from e
        except Web3Exception as e:
            raise RegistryException(f"{action} failed: {e}", details={"action": action}) from e

    # ------------------------------------------------------------------
    # ReserveRegistry
    # ------------------------------------------------------------------

    def chain_id(self) -> int:
        if self._chain_id is None:
            with self._node("eth_chainId"):
                self._chain_id = int(self.w3.eth.chain_id)
        return self._chain_id

    def publish_attestation(
        self,
        report_id: bytes,
        as_of_timestamp: int,
        attested_fine_gold_grams: int,
        merkle_root: bytes,
        bar_list_hash: bytes,
        signature: bytes,
    ) -> str:
        sender = self.publisher_address
        if not sender:
            raise RegistryException("publisher_address or a publisher key is required to publish")

        args = (
            require_bytes32(report_id, "report_id"),
            as_of_timestamp,
            attested_fine_gold_grams,
            require_bytes32(merkle_root, "merkle_root"),
            require_bytes32(bar_list_hash, "bar_list_hash"),
            bytes(signature),
        )

        # Simulate first so a revert surfaces before a transaction is sent
        with self._node("publishAttestation"):
            fn = self.contract.functions.publishAttestation(*args)
            signer = fn.call({"from": sender})

        if self._account is None:
            with self._node("eth_sendTransaction"):
                tx_hash = fn.transact({"from": sender})
        else:
            chain_id = self.chain_id()
            with self._node("eth_sendRawTransaction"):
                tx = fn.build_transaction({
                    "from": sender,
                    "nonce": self.w3.eth.get_transaction_count(sender),
                    "gas": fn.estimate_gas({"from": sender}),
                    "gasPrice": self.w3.eth.gas_price,
                    "chainId": chain_id,
                })
                signed = self._account.sign_transaction(tx)
                tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)

        self.last_transaction_hash = Web3.to_hex(tx_hash)
        logger.info("Sent publishAttestation tx %s (signer %s)", self.last_transaction_hash, signer)
        return signer

    def is_allowed_signer(self, address: str) -> bool:
        with self._node("isAllowedSigner"):
            return bool(self.contract.functions.isAllowedSigner(normalize_address(address)).call())

    def latest_report_id(self) -> bytes:
        with self._node("latestReportId"):
            return bytes(self.contract.functions.latestReportId().call())

    def latest_attestation(self) -> tuple[bytes, AttestationRecord]:
        with self._node("latestAttestation"):
            report_id, record = self.contract.functions.latestAttestation().call()
        as_of, published_at, grams, merkle_root, bar_list_hash, signer = record
        return bytes(report_id), AttestationRecord(
            as_of_timestamp=as_of,
            published_at=published_at,
            attested_fine_gold_grams=grams,
            merkle_root=bytes(merkle_root),
            bar_list_hash=bytes(bar_list_hash),
            signer=signer,
        )

    def exists(self, report_id: bytes) -> bool:
        with self._node("exists"):
            return bool(self.contract.functions.exists(require_bytes32(report_id, "report_id")).call())

    def get_report_ids(self, start: int, count: int) -> list[bytes]:
        if start < 0 or count < 0:
            raise RegistryException("start and count must be non-negative")
        with self._node("getReportIds"):
            return [bytes(item) for item in self.contract.functions.getReportIds(start, count).call()]

    def close(self) -> None:
        self._http.close()


__all__ = ["JsonRpcReserveRegistry"]
