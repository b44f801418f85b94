"""Blockchain contract address constants."""

from typing import TypedDict


class AaveAddresses(TypedDict):
    pool: str
    price_oracle: str


AAVE_V3_MAINNET: AaveAddresses = {
    "pool": "0x87870Bca3F3fD6335C3F4ce8392D69350B4fA4E2",
    "price_oracle": "0x54586bE62E3c3580375aE3723C145253060Ca0C2",
}

AAVE_V3_SEPOLIA: AaveAddresses = {
    "pool": "0x6Ae43d3271ff6888e7Fc43Fd7321a503ff738951",
    "price_oracle": "0x2da88497588bf89281816106C7259e31AF45a663",
}

DEFAULT_MAINNET_RPC_URL = "https://eth.llamarpc.com"
DEFAULT_SEPOLIA_RPC_URL = "https://sepolia.drpc.org"

DEFAULT_PROTOCOL_NAME = "Aave V3"

# Artifact file names inside the output directory
INPUT_SNAPSHOT_FILE = "aave_input.json"
JOURNAL_FILE = "proof_journal.bin"
SEAL_FILE = "proof_seal.bin"
SUMMARY_FILE = "safety_score_output.json"
RECEIPT_FILE = "proof_receipt.json"

# Expected size of a compact (Groth16) seal, in bytes
DEFAULT_SEAL_MIN_BYTES = 200
DEFAULT_SEAL_MAX_BYTES = 10_000

# Development seals are tagged with this prefix so they are never mistaken
# for a compact proof.
DEV_SEAL_SELECTOR = b"DEV0"
