"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    AAVE_V3_MAINNET,
    AAVE_V3_SEPOLIA,
    DEFAULT_MAINNET_RPC_URL,
    DEFAULT_PROTOCOL_NAME,
    DEFAULT_SEAL_MAX_BYTES,
    DEFAULT_SEAL_MIN_BYTES,
    DEFAULT_SEPOLIA_RPC_URL,
    AaveAddresses,
)

load_dotenv()

CONFIG_ENV_VAR = "DERISK_ORACLE_CONFIG"
SECRET_FIELDS = {"private_key", "prover_api_key"}


class Network(str, Enum):
    MAINNET = "mainnet"
    SEPOLIA = "sepolia"


class RunMode(str, Enum):
    FETCH_ONLY = "fetch-only"
    PROVE_ONLY = "prove-only"
    FULL = "full"
    SUBMIT_ONLY = "submit-only"


class ProverBackend(str, Enum):
    LOCAL = "local"
    HTTP = "http"


class DryRunFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


NETWORK_RPC_DEFAULTS = {
    Network.MAINNET: DEFAULT_MAINNET_RPC_URL,
    Network.SEPOLIA: DEFAULT_SEPOLIA_RPC_URL,
}

NETWORK_AAVE_DEFAULTS: dict[Network, AaveAddresses] = {
    Network.MAINNET: AAVE_V3_MAINNET,
    Network.SEPOLIA: AAVE_V3_SEPOLIA,
}


class OracleSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with DERISK_ORACLE_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- run shape ---
    mode: RunMode = RunMode.FULL
    network: Network = Network.MAINNET
    output_dir: Path = Path("./output")
    input_file: Path | None = None
    submit: bool = False
    dry_run_format: DryRunFormat = DryRunFormat.TABLE

    # --- chain data ---
    rpc_url: str | None = None
    block_number: int | None = None
    aave_pool_address: str | None = None
    aave_price_oracle_address: str | None = None
    protocol_name: str = DEFAULT_PROTOCOL_NAME

    # --- ledger / signing ---
    oracle_address: str | None = None
    protocol_address: str | None = None
    private_key: SecretStr | None = None

    # --- prover ---
    prover: ProverBackend = ProverBackend.LOCAL
    prover_url: str | None = None
    prover_api_key: SecretStr | None = None
    prover_poll_interval: float = Field(default=5.0, gt=0)
    image_id: str = "0x" + "00" * 32
    seal_min_bytes: int = Field(default=DEFAULT_SEAL_MIN_BYTES, ge=0)
    seal_max_bytes: int = Field(default=DEFAULT_SEAL_MAX_BYTES, gt=0)

    # --- timeouts (seconds; None disables) ---
    fetch_timeout: float | None = 30.0
    execute_timeout: float | None = None
    compact_timeout: float | None = None
    submit_timeout: float | None = 300.0
    global_timeout_seconds: float | None = None

    # --- RPC settings ---
    max_calls: int = Field(default=3, ge=1)
    rpc_max_concurrent_calls: int = Field(default=5, ge=1)

    # --- logging ---
    log_level: str = "INFO"

    # --- runtime computed values ---
    using_default_rpc: bool = False

    model_config = SettingsConfigDict(
        env_prefix="DERISK_ORACLE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("private_key", "prover_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator(
        "fetch_timeout",
        "execute_timeout",
        "compact_timeout",
        "submit_timeout",
        "global_timeout_seconds",
    )
    @classmethod
    def positive_or_none(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("timeouts must be positive (omit to disable)")
        return v

    @model_validator(mode="after")
    def validate_seal_range(self) -> "OracleSettings":
        if self.seal_min_bytes >= self.seal_max_bytes:
            raise ValueError(
                f"seal_min_bytes ({self.seal_min_bytes}) must be less than "
                f"seal_max_bytes ({self.seal_max_bytes})"
            )
        return self

    @model_validator(mode="after")
    def set_derived_values(self) -> "OracleSettings":
        """Fill network-specific defaults for anything left unset."""
        if self.rpc_url is None:
            self.rpc_url = NETWORK_RPC_DEFAULTS[self.network]
            self.using_default_rpc = True

        defaults = NETWORK_AAVE_DEFAULTS[self.network]
        if self.aave_pool_address is None:
            self.aave_pool_address = defaults["pool"]
        if self.aave_price_oracle_address is None:
            self.aave_price_oracle_address = defaults["price_oracle"]
        if self.protocol_address is None:
            self.protocol_address = self.aave_pool_address
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get(CONFIG_ENV_VAR)
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("derisk-oracle.toml")
                    user_config = (
                        Path.home() / ".config" / "derisk-oracle" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [derisk_oracle]
                body = data.get("derisk_oracle", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def submit_enabled(self) -> bool:
        """True when the run ends in a ledger submission; submit-only always does."""
        return self.submit or self.mode == RunMode.SUBMIT_ONLY

    @property
    def rpc_url_required(self) -> str:
        """Get rpc_url, raising ValueError if not set."""
        if self.rpc_url is None:
            raise ValueError("rpc_url must be configured")
        return self.rpc_url

    @property
    def oracle_address_required(self) -> str:
        """Get oracle_address, raising ValueError if not set."""
        if self.oracle_address is None:
            raise ValueError("oracle_address must be configured")
        return self.oracle_address

    @property
    def protocol_address_required(self) -> str:
        if self.protocol_address is None:
            raise ValueError("protocol_address must be configured")
        return self.protocol_address

    @property
    def prover_url_required(self) -> str:
        """Get prover_url, raising ValueError if not set."""
        if self.prover_url is None:
            raise ValueError("prover_url must be configured for the http prover")
        return self.prover_url

    @property
    def input_file_required(self) -> Path:
        if self.input_file is None:
            raise ValueError("input_file must be configured for prove-only mode")
        return self.input_file

    @property
    def aave_addresses(self) -> AaveAddresses:
        """Aave contract addresses after network defaults are applied."""
        if self.aave_pool_address is None or self.aave_price_oracle_address is None:
            raise ValueError("Aave pool and price oracle addresses must be configured")
        return {
            "pool": self.aave_pool_address,
            "price_oracle": self.aave_price_oracle_address,
        }

    @property
    def seal_size_range(self) -> tuple[int, int]:
        return (self.seal_min_bytes, self.seal_max_bytes)
