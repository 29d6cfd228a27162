"""EVM JSON-RPC access to constant-product pools."""
from .client import EvmClient, PoolSnapshot, fetch_pool_snapshot

__all__ = ["EvmClient", "PoolSnapshot", "fetch_pool_snapshot"]
