"""
Metadata Resolver
On-chain name/symbol first, then CoinGecko, then Etherscan, then sentinels
"""
import asyncio
from typing import Any, Dict, Optional, Sequence, Union
import logging

from mint_watch.config.constants import MINT_METADATA_FIELDS, NOT_AVAILABLE
from mint_watch.connectors.chain.ethereum import EthereumConnector
from mint_watch.connectors.metadata.coingecko import CoinGeckoConnector
from mint_watch.connectors.metadata.etherscan import EtherscanConnector
from mint_watch.core.data_models import TokenMetadata
from mint_watch.core.exceptions import MintWatchException
from mint_watch.storage.cache_manager import MetadataCache


logger = logging.getLogger(__name__)


class MetadataResolver:
    """
    Resolves TokenMetadata for a contract address. Never raises.

    Resolution order:
        1. cache
        2. on-chain reads of `onchain_fields` (any failure -> uncached placeholder)
        3. CoinGecko for icon and USD volume
        4. Etherscan for the icon, only if CoinGecko failed and a key is set
        5. result cached and returned
    """

    def __init__(
        self,
        chain: EthereumConnector,
        cache: MetadataCache,
        primary: CoinGeckoConnector,
        secondary: Optional[EtherscanConnector] = None,
        onchain_fields: Sequence[str] = MINT_METADATA_FIELDS,
        dedupe_inflight: bool = False
    ):
        self.chain = chain
        self.cache = cache
        self.primary = primary
        self.secondary = secondary
        self.onchain_fields = tuple(onchain_fields)
        self.dedupe_inflight = dedupe_inflight
        self._inflight: Dict[str, asyncio.Task] = {}

    async def resolve(self, address: str) -> TokenMetadata:
        cached = self.cache.get(address)
        if cached is not None:
            return cached

        if not self.dedupe_inflight:
            return await self._resolve_uncached(address)

        key = self.cache.cache_key(address)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._resolve_uncached(address))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(task)

    async def _resolve_uncached(self, address: str) -> TokenMetadata:
        onchain = await self._read_onchain(address)
        if onchain is None:
            return TokenMetadata.placeholder(address)

        icon, volume = await self._lookup_market_data(address)

        metadata = TokenMetadata(
            address=address,
            name=onchain["name"],
            symbol=onchain["symbol"],
            decimals=onchain.get("decimals"),
            total_supply=onchain.get("total_supply"),
            icon=icon,
            volume=volume
        )
        self.cache.set(address, metadata)
        return metadata

    async def _read_onchain(self, address: str) -> Optional[Dict[str, Any]]:
        results = await asyncio.gather(
            *(self.chain.call_erc20(address, fn) for fn in self.onchain_fields),
            return_exceptions=True
        )

        values: Dict[str, Any] = {}
        for fn, result in zip(self.onchain_fields, results):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Error fetching metadata for {address}: {fn}() failed: {result}",
                    extra={"contract_address": address}
                )
                return None
            if fn == "totalSupply":
                values["total_supply"] = str(result)
            elif fn == "decimals":
                values["decimals"] = int(result)
            else:
                values[fn] = str(result)
        return values

    async def _lookup_market_data(self, address: str) -> "tuple[str, Union[int, float, str]]":
        try:
            market = await self.primary.get_contract_market_data(address)
            return market.icon, market.volume_usd
        except MintWatchException as e:
            logger.info(
                f"CoinGecko lookup failed for {address}: {e.message}",
                extra={"contract_address": address}
            )

        if self.secondary is None or not self.secondary.is_configured:
            return NOT_AVAILABLE, NOT_AVAILABLE

        try:
            icon = await self.secondary.get_token_logo(address)
        except MintWatchException as e:
            logger.info(
                f"Etherscan lookup failed for {address}: {e.message}",
                extra={"contract_address": address}
            )
            icon = NOT_AVAILABLE
        return icon, NOT_AVAILABLE
