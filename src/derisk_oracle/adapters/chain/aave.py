from __future__ import annotations

import asyncio
from typing import Any, Callable

import backoff
from web3 import Web3
from web3.exceptions import ProviderConnectionError

from ...abi import load_aave_oracle_abi, load_aave_pool_abi, load_erc20_abi
from ...constants import AaveAddresses
from ...domain import ReserveRecord
from ...errors import FetchError
from ...logger import get_logger
from ...units import U128_MAX
from .base import BaseChainDataSource

logger = get_logger(__name__)


def uint256_to_u128(value: int, field: str) -> int:
    """Narrow a uint256 contract value to u128.

    Raises:
        FetchError: If the value does not fit
    """
    value = int(value)
    if not 0 <= value <= U128_MAX:
        raise FetchError(f"{field}={value} too large for u128")
    return value


class AaveV3DataSource(BaseChainDataSource):
    """Reads Aave V3 reserves through the Pool and its price oracle."""

    def __init__(
        self,
        w3: Web3,
        addresses: AaveAddresses,
        *,
        block_number: int | None = None,
        max_tries: int = 3,
    ):
        """Initialize the data source.

        Args:
            w3: Connected Web3 instance
            addresses: Pool and price oracle addresses for the network
            block_number: Block to pin every read to; latest when None
            max_tries: Attempts per RPC read on connection errors
        """
        self.w3 = w3
        self.block_identifier: int | str = (
            block_number if block_number is not None else "latest"
        )
        self.max_tries = max_tries
        self.pool = w3.eth.contract(
            address=Web3.to_checksum_address(addresses["pool"]),
            abi=load_aave_pool_abi(),
        )
        self.price_oracle = w3.eth.contract(
            address=Web3.to_checksum_address(addresses["price_oracle"]),
            abi=load_aave_oracle_abi(),
        )
        self._erc20_abi = load_erc20_abi()

    @classmethod
    def from_rpc(
        cls,
        rpc_url: str,
        addresses: AaveAddresses,
        *,
        block_number: int | None = None,
        max_tries: int = 3,
    ) -> "AaveV3DataSource":
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 15}))
        return cls(w3, addresses, block_number=block_number, max_tries=max_tries)

    @property
    def source_name(self) -> str:
        return "aave_v3"

    async def _call(self, fn: Callable[..., Any]) -> Any:
        """Run one view call in a thread, retrying connection errors."""

        @backoff.on_exception(
            backoff.expo,
            ProviderConnectionError,
            max_tries=self.max_tries,
            jitter=backoff.full_jitter,
        )
        async def _with_retry() -> Any:
            return await asyncio.to_thread(fn, block_identifier=self.block_identifier)

        return await _with_retry()

    def _erc20(self, address: str):
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=self._erc20_abi
        )

    async def list_reserve_ids(self) -> list[str]:
        logger.debug("Fetching reserve list from pool %s", self.pool.address)
        try:
            reserves = await self._call(self.pool.functions.getReservesList().call)
        except Exception as e:
            raise FetchError(f"Failed to fetch reserve list: {e}") from e
        return [Web3.to_checksum_address(r) for r in reserves]

    async def fetch_record(self, reserve_id: str) -> ReserveRecord:
        asset = Web3.to_checksum_address(reserve_id)
        try:
            reserve_data = await self._call(
                self.pool.functions.getReserveData(asset).call
            )
            # ReserveData tuple: aToken, stable debt and variable debt token
            # addresses sit at indices 8, 9 and 10.
            a_token, stable_debt_token, variable_debt_token = reserve_data[8:11]

            decimals, total_supplied, stable_debt, variable_debt, price = (
                await asyncio.gather(
                    self._call(self._erc20(asset).functions.decimals().call),
                    self._call(self._erc20(a_token).functions.totalSupply().call),
                    self._call(
                        self._erc20(stable_debt_token).functions.totalSupply().call
                    ),
                    self._call(
                        self._erc20(variable_debt_token).functions.totalSupply().call
                    ),
                    self._call(self.price_oracle.functions.getAssetPrice(asset).call),
                )
            )
        except Exception as e:
            raise FetchError(
                f"Failed to fetch reserve {asset}: {e}", reserve_id=asset
            ) from e

        try:
            return ReserveRecord(
                address=asset,
                total_supplied=uint256_to_u128(total_supplied, "total_supplied"),
                total_stable_debt=uint256_to_u128(stable_debt, "total_stable_debt"),
                total_variable_debt=uint256_to_u128(
                    variable_debt, "total_variable_debt"
                ),
                price_usd=uint256_to_u128(price, "price_usd"),
                decimals=int(decimals),
            )
        except FetchError as e:
            raise FetchError(f"Reserve {asset}: {e.message}", reserve_id=asset) from e
        except ValueError as e:
            raise FetchError(f"Reserve {asset}: {e}", reserve_id=asset) from e
