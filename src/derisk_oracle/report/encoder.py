"""Binary encoders for prover input, journal commitments and oracle calldata."""

from __future__ import annotations

import logging
import struct

from eth_typing.evm import ChecksumAddress
from web3 import Web3

from ..abi import load_derisk_oracle_abi
from ..domain import Journal, ReserveRecord, ScoringInput
from ..units import U8_MAX, U64_MAX, U128_MAX

logger = logging.getLogger(__name__)

WORD_SIZE = 4
JOURNAL_SIZE = 48  # u64 + u128 + u128 + u64


class WordWriter:
    """Little-endian 32-bit word serializer matching the zkVM serde layout."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def u32(self, value: int) -> "WordWriter":
        if not 0 <= value <= 2**32 - 1:
            raise ValueError(f"value out of u32 range: {value}")
        self._buf += struct.pack("<I", value)
        return self

    def u8(self, value: int) -> "WordWriter":
        if not 0 <= value <= U8_MAX:
            raise ValueError(f"value out of u8 range: {value}")
        return self.u32(value)

    def u64(self, value: int) -> "WordWriter":
        if not 0 <= value <= U64_MAX:
            raise ValueError(f"value out of u64 range: {value}")
        self._buf += struct.pack("<Q", value)
        return self

    def u128(self, value: int) -> "WordWriter":
        if not 0 <= value <= U128_MAX:
            raise ValueError(f"value out of u128 range: {value}")
        self._buf += value.to_bytes(16, "little")
        return self

    def string(self, value: str) -> "WordWriter":
        raw = value.encode("utf-8")
        self.u32(len(raw))
        padding = (-len(raw)) % WORD_SIZE
        self._buf += raw + b"\x00" * padding
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class WordReader:
    """Counterpart of WordWriter; raises ValueError on truncated input."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._pos = 0

    def _take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise ValueError(
                f"unexpected end of data: need {size} bytes at offset {self._pos}"
            )
        chunk = self._data[self._pos : end].tobytes()
        self._pos = end
        return chunk

    def u32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def u8(self) -> int:
        value = self.u32()
        if value > U8_MAX:
            raise ValueError(f"value out of u8 range: {value}")
        return value

    def u64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]

    def u128(self) -> int:
        return int.from_bytes(self._take(16), "little")

    def string(self) -> str:
        length = self.u32()
        raw = self._take(length)
        self._take((-length) % WORD_SIZE)
        return raw.decode("utf-8")

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos


def encode_input(scoring_input: ScoringInput) -> bytes:
    """Serialize a scoring input for the prover."""
    writer = WordWriter()
    writer.u32(len(scoring_input.reserves))
    for reserve in scoring_input.reserves:
        (
            writer.string(reserve.address)
            .u128(reserve.total_supplied)
            .u128(reserve.total_stable_debt)
            .u128(reserve.total_variable_debt)
            .u128(reserve.price_usd)
            .u8(reserve.decimals)
        )
    writer.string(scoring_input.protocol_name).u64(scoring_input.timestamp)
    return writer.getvalue()


def decode_input(data: bytes) -> ScoringInput:
    """Parse bytes produced by encode_input."""
    reader = WordReader(data)
    count = reader.u32()
    reserves = []
    for _ in range(count):
        reserves.append(
            ReserveRecord(
                address=reader.string(),
                total_supplied=reader.u128(),
                total_stable_debt=reader.u128(),
                total_variable_debt=reader.u128(),
                price_usd=reader.u128(),
                decimals=reader.u8(),
            )
        )
    protocol_name = reader.string()
    timestamp = reader.u64()
    if reader.remaining:
        raise ValueError(f"{reader.remaining} trailing bytes after input")
    return ScoringInput(
        reserves=tuple(reserves), protocol_name=protocol_name, timestamp=timestamp
    )


def encode_journal(journal: Journal) -> bytes:
    """Fixed 48-byte encoding of the public journal."""
    return (
        WordWriter()
        .u64(journal.safety_score)
        .u128(journal.total_assets_usd)
        .u128(journal.total_liabilities_usd)
        .u64(journal.timestamp)
        .getvalue()
    )


def decode_journal(data: bytes) -> Journal:
    """Parse journal bytes.

    Raises:
        ValueError: If the length is not JOURNAL_SIZE or a field is out of range
    """
    if len(data) != JOURNAL_SIZE:
        raise ValueError(
            f"journal must be {JOURNAL_SIZE} bytes, got {len(data)}"
        )
    reader = WordReader(data)
    return Journal(
        safety_score=reader.u64(),
        total_assets_usd=reader.u128(),
        total_liabilities_usd=reader.u128(),
        timestamp=reader.u64(),
    )


def encode_update_score(
    oracle_address: str,
    protocol_id: str,
    journal_bytes: bytes,
    seal: bytes,
) -> tuple[str, bytes]:
    """Encode updateScore() transaction data.

    Args:
        oracle_address: DeRiskOracle contract address
        protocol_id: Address identifying the scored protocol
        journal_bytes: Encoded journal
        seal: Compact proof bytes

    Returns:
        Tuple of (to_address, encoded_calldata)
    """
    w3 = Web3()
    checksum_address = w3.to_checksum_address(oracle_address)
    contract = w3.eth.contract(address=checksum_address, abi=load_derisk_oracle_abi())
    protocol: ChecksumAddress = w3.to_checksum_address(protocol_id)

    logger.debug(
        "Encoding updateScore(%s) with journal=%d bytes, seal=%d bytes",
        protocol_id,
        len(journal_bytes),
        len(seal),
    )

    calldata_hex = contract.encode_abi(
        abi_element_identifier="updateScore",
        args=[protocol, journal_bytes, seal],
    )
    calldata = bytes.fromhex(calldata_hex.removeprefix("0x"))

    return (oracle_address, calldata)
