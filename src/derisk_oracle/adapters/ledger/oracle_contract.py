from __future__ import annotations

import asyncio
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from ...abi import load_derisk_oracle_abi
from ...domain import Confirmation
from ...errors import LedgerReadError, SubmissionFailure
from ...logger import get_logger
from ...report.encoder import encode_update_score
from ...units import U64_MAX
from .base import BaseLedger

logger = get_logger(__name__)


class DeRiskOracleLedger(BaseLedger):
    """The DeRiskOracle contract, written through a locally signed transaction."""

    def __init__(
        self,
        w3: Web3,
        oracle_address: str,
        *,
        private_key: str | None = None,
        receipt_timeout: float = 300.0,
    ):
        self.w3 = w3
        self.oracle_address = Web3.to_checksum_address(oracle_address)
        self.contract = w3.eth.contract(
            address=self.oracle_address, abi=load_derisk_oracle_abi()
        )
        self._private_key = private_key
        self.receipt_timeout = receipt_timeout

    @classmethod
    def from_rpc(
        cls,
        rpc_url: str,
        oracle_address: str,
        *,
        private_key: str | None = None,
        receipt_timeout: float = 300.0,
    ) -> "DeRiskOracleLedger":
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 30}))
        return cls(
            w3,
            oracle_address,
            private_key=private_key,
            receipt_timeout=receipt_timeout,
        )

    @property
    def ledger_name(self) -> str:
        return "derisk_oracle"

    def _account(self) -> LocalAccount:
        if not self._private_key:
            raise SubmissionFailure("private_key required to submit scores")
        return Account.from_key(self._private_key)

    def _build_transaction(
        self, sender: str, protocol_id: str, journal_bytes: bytes, seal: bytes
    ) -> dict[str, Any]:
        to_address, calldata = encode_update_score(
            self.oracle_address, protocol_id, journal_bytes, seal
        )
        tx: dict[str, Any] = {
            "from": sender,
            "to": to_address,
            "data": calldata,
            "value": 0,
            "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
            "chainId": self.w3.eth.chain_id,
        }
        tx["gas"] = self.w3.eth.estimate_gas(tx)
        tx["gasPrice"] = self.w3.eth.gas_price
        return tx

    def _submit_blocking(
        self, protocol_id: str, journal_bytes: bytes, seal: bytes
    ) -> Confirmation:
        account = self._account()
        logger.info("Submitting score as %s to %s", account.address, self.oracle_address)
        logger.debug(
            "Journal size: %d bytes, seal size: %d bytes", len(journal_bytes), len(seal)
        )

        tx = self._build_transaction(account.address, protocol_id, journal_bytes, seal)
        signed = account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info("Transaction sent: %s, waiting for confirmation...", tx_hash_hex)

        receipt = self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )
        if receipt["status"] != 1:
            raise SubmissionFailure(
                f"Transaction {tx_hash_hex} reverted in block {receipt['blockNumber']}"
            )

        return Confirmation(
            tx_hash=tx_hash_hex,
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )

    async def submit_score(
        self, protocol_id: str, journal_bytes: bytes, seal: bytes
    ) -> Confirmation:
        try:
            return await asyncio.to_thread(
                self._submit_blocking, protocol_id, journal_bytes, seal
            )
        except SubmissionFailure:
            raise
        except Exception as e:
            raise SubmissionFailure(f"Failed to submit score: {e}") from e

    async def read_score(self, protocol_id: str) -> int:
        """Return the stored score for protocol_id.

        Raises:
            LedgerReadError: If the call fails or the value does not fit in u64
        """
        try:
            value = await asyncio.to_thread(
                self.contract.functions.safetyScores(
                    Web3.to_checksum_address(protocol_id)
                ).call
            )
        except Exception as e:
            raise LedgerReadError(f"Failed to read score for {protocol_id}: {e}") from e

        value = int(value)
        if not 0 <= value <= U64_MAX:
            raise LedgerReadError(f"Stored score {value} for {protocol_id} exceeds u64")
        return value
