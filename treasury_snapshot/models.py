"""
Treasury Snapshot Models - normalized, chain-agnostic snapshot schema.

Every balance and amount is carried as a decimal-digit string, in memory
and on the wire, so no value ever passes through a float or a fixed-width
integer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


PLACEHOLDER_SYMBOL = "TOKEN"


class Direction(Enum):
    """Direction of a transfer relative to the tracked address."""
    IN = "in"
    OUT = "out"
    SELF = "self"
    OTHER = "other"


@dataclass(frozen=True)
class SymbolLookup:
    """
    Outcome of a best-effort symbol() call.

    A degraded lookup carries the placeholder symbol and the reason the
    contract call failed, so callers can log it instead of losing it.
    """
    symbol: str
    degraded: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, symbol: str) -> "SymbolLookup":
        return cls(symbol=symbol)

    @classmethod
    def fallback(cls, reason: str, placeholder: str = PLACEHOLDER_SYMBOL) -> "SymbolLookup":
        return cls(symbol=placeholder, degraded=True, reason=reason)


@dataclass(frozen=True)
class NativeBalance:
    """Base-currency balance of the tracked address on one chain."""
    symbol: str
    decimals: int
    balance_wei: str
    balance_formatted: str
    explorer_address_url: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "symbol": self.symbol,
            "decimals": self.decimals,
            "balanceWei": self.balance_wei,
            "balanceFormatted": self.balance_formatted,
            "explorerAddressUrl": self.explorer_address_url,
        }


@dataclass(frozen=True)
class TokenBalance:
    """ERC-20 balance with the metadata reported by the contract."""
    contract: str
    symbol: str
    decimals: int
    balance_raw: str
    balance_formatted: str
    explorer_token_url: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "symbol": self.symbol,
            "contract": self.contract,
            "decimals": self.decimals,
            "balanceRaw": self.balance_raw,
            "balanceFormatted": self.balance_formatted,
            "explorerTokenUrl": self.explorer_token_url,
        }


@dataclass(frozen=True)
class TransferRecord:
    """One token transfer, classified against the tracked address."""
    hash: str
    timestamp: str
    from_address: str
    to_address: str
    direction: Direction
    amount_raw: str
    amount_formatted: str
    explorer_tx_url: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "hash": self.hash,
            "timestamp": self.timestamp,
            "from": self.from_address,
            "to": self.to_address,
            "direction": self.direction.value,
            "amountRaw": self.amount_raw,
            "amountFormatted": self.amount_formatted,
            "explorerTxUrl": self.explorer_tx_url,
        }


@dataclass(frozen=True)
class ChainSnapshot:
    """Per-chain treasury document."""
    chain: str
    chain_id: int
    treasury_address: str
    generated_at: str
    native: NativeBalance
    tokens: dict[str, TokenBalance] = field(default_factory=dict)
    recent_transfers: dict[str, tuple[TransferRecord, ...]] = field(default_factory=dict)
    sources: dict[str, str] = field(default_factory=dict)

    @property
    def asset_symbols(self) -> list[str]:
        """Native symbol followed by the token keys, in insertion order."""
        return [self.native.symbol, *self.tokens.keys()]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "chain": self.chain,
            "chainId": self.chain_id,
            "treasuryAddress": self.treasury_address,
            "generatedAt": self.generated_at,
            "native": self.native.to_dict(),
            "tokens": {
                symbol: balance.to_dict()
                for symbol, balance in self.tokens.items()
            },
            "recentTransfers": {
                symbol: [record.to_dict() for record in records]
                for symbol, records in self.recent_transfers.items()
            },
            "sources": dict(self.sources),
        }


@dataclass(frozen=True)
class SnapshotIndex:
    """Cross-chain summary so consumers can check freshness cheaply."""
    generated_at: str
    address: str
    assets: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "generatedAt": self.generated_at,
            "address": self.address,
            "assets": {chain: list(symbols) for chain, symbols in self.assets.items()},
        }


@dataclass(frozen=True)
class SnapshotRun:
    """Everything one successful run produced."""
    generated_at: str
    snapshots: dict[str, ChainSnapshot]
    index: SnapshotIndex
