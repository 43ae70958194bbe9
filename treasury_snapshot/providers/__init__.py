"""
Providers package - chain and explorer data sources.
"""

from treasury_snapshot.providers.etherscan import TransferHistoryClient
from treasury_snapshot.providers.rpc import ChainBalanceReader


__all__ = [
    "ChainBalanceReader",
    "TransferHistoryClient",
]
