"""
Contract Classifier
Speculative on-chain probes that treat any failure as "no"
"""
import asyncio
import logging

from mint_watch.config.constants import ERC20_PROBE_FUNCTIONS
from mint_watch.connectors.chain.ethereum import EthereumConnector


logger = logging.getLogger(__name__)


class ContractClassifier:
    """Answers "is there code here?" and "does this look like ERC-20?"."""

    def __init__(self, chain: EthereumConnector):
        self.chain = chain

    async def has_deployed_code(self, address: str) -> bool:
        """True iff eth_getCode returns non-empty bytecode; errors count as False"""
        try:
            code = await self.chain.get_code(address)
        except Exception as e:
            logger.debug(f"get_code failed for {address}: {e}")
            return False

        if isinstance(code, str):
            return code not in ("", "0x")
        return bool(code)

    async def is_erc20_conformant(self, address: str) -> bool:
        """
        Heuristic ERC-20 check.

        Calls name, symbol, decimals and totalSupply concurrently and
        returns True only if all four calls succeed. Returned values are
        not inspected.
        """
        results = await asyncio.gather(
            *(self.chain.call_erc20(address, fn) for fn in ERC20_PROBE_FUNCTIONS),
            return_exceptions=True
        )
        failed = [
            fn for fn, result in zip(ERC20_PROBE_FUNCTIONS, results)
            if isinstance(result, BaseException)
        ]
        if failed:
            logger.debug(
                f"{address} is not ERC-20: {', '.join(failed)} failed",
                extra={"contract_address": address}
            )
            return False
        return True
