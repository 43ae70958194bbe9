"""
Snapshot Assembler - pure composition of per-chain documents and the index.
"""

from typing import Iterable, Mapping, Sequence

from treasury_snapshot.config import ChainContext
from treasury_snapshot.models import (
    ChainSnapshot,
    NativeBalance,
    SnapshotIndex,
    TokenBalance,
    TransferRecord,
)


class SnapshotAssembler:
    """
    Builds ChainSnapshots and the SnapshotIndex.

    The capture timestamp is always supplied by the caller so every chain
    in one run reports the same instant.
    """

    def __init__(self, tracked_address: str) -> None:
        self._tracked_address = tracked_address

    def assemble(
        self,
        chain: ChainContext,
        generated_at: str,
        native: NativeBalance,
        tokens: Mapping[str, TokenBalance],
        transfers: Mapping[str, Sequence[TransferRecord]],
    ) -> ChainSnapshot:
        return ChainSnapshot(
            chain=chain.name,
            chain_id=chain.chain_id,
            treasury_address=self._tracked_address,
            generated_at=generated_at,
            native=native,
            tokens=dict(tokens),
            recent_transfers={symbol: tuple(records) for symbol, records in transfers.items()},
            sources={"rpc": chain.rpc_env_var, "explorer": chain.explorer_url},
        )

    def build_index(self, generated_at: str, snapshots: Iterable[ChainSnapshot]) -> SnapshotIndex:
        return SnapshotIndex(
            generated_at=generated_at,
            address=self._tracked_address,
            assets={snapshot.chain: snapshot.asset_symbols for snapshot in snapshots},
        )
