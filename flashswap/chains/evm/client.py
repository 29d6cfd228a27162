"""EVM JSON-RPC client with fallback support."""
from __future__ import annotations

import asyncio
import logging
import ssl
from dataclasses import dataclass
from typing import Any

import aiohttp
import certifi

from ...addresses import normalize_address
from ...config import ChainConfig

logger = logging.getLogger(__name__)

# Function selectors of the constant-product pair ABI.
GET_RESERVES_SELECTOR = "0x0902f1ac"
TOKEN0_SELECTOR = "0x0dfe1681"
TOKEN1_SELECTOR = "0xd21220a7"

WORD_HEX = 64


def _words(result: str) -> list[int]:
    """Split an ``eth_call`` hex result into 32-byte unsigned words."""
    body = result[2:] if result.startswith("0x") else result
    if not body or len(body) % WORD_HEX:
        raise ValueError(f"Malformed call result: {result!r}")
    return [int(body[i : i + WORD_HEX], 16) for i in range(0, len(body), WORD_HEX)]


class EvmClient:
    """EVM RPC client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        if not config.rpc_endpoints:
            raise ValueError("At least one RPC endpoint is required")
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0
        self._request_id = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise RuntimeError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result.get("result")
            except (aiohttp.ClientError, asyncio.TimeoutError, RuntimeError, ValueError) as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        return await self.rpc_call("eth_call", [{"to": to, "data": data}, block])

    async def get_reserves(self, pair: str, block: str = "latest") -> tuple[int, int, int]:
        """Return ``(reserve0, reserve1, block_timestamp_last)`` of a pair."""
        words = _words(await self.eth_call(pair, GET_RESERVES_SELECTOR, block))
        if len(words) != 3:
            raise ValueError(f"getReserves returned {len(words)} words")
        return words[0], words[1], words[2]

    async def token_address(self, pair: str, selector: str, block: str = "latest") -> str:
        (word,) = _words(await self.eth_call(pair, selector, block))
        return normalize_address(f"0x{word:040x}")


@dataclass(frozen=True)
class PoolSnapshot:
    """Pair state read at one block; satisfies the pool read surface."""

    address: str
    token0_address: str
    token1_address: str
    reserve0: int
    reserve1: int
    block_timestamp: int

    def token0(self) -> str:
        return self.token0_address

    def token1(self) -> str:
        return self.token1_address

    def get_reserves(self) -> tuple[int, int, int]:
        return self.reserve0, self.reserve1, self.block_timestamp


async def fetch_pool_snapshot(
    client: EvmClient, pair: str, block: str = "latest"
) -> PoolSnapshot:
    """Read token ordering and reserves of ``pair`` pinned to one block."""
    if block == "latest":
        block = await client.rpc_call("eth_blockNumber", [])
    token0 = await client.token_address(pair, TOKEN0_SELECTOR, block)
    token1 = await client.token_address(pair, TOKEN1_SELECTOR, block)
    reserve0, reserve1, timestamp = await client.get_reserves(pair, block)
    logger.info(
        "Pool %s at block %s: reserves %d / %d", pair, block, reserve0, reserve1
    )
    return PoolSnapshot(
        address=normalize_address(pair),
        token0_address=token0,
        token1_address=token1,
        reserve0=reserve0,
        reserve1=reserve1,
        block_timestamp=timestamp,
    )
