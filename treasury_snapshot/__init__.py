"""
Treasury Snapshot - point-in-time treasury balances across EVM chains.

For each configured chain the pipeline reads the tracked address's native
balance and its designated token balance over JSON-RPC, pulls the token's
recent transfers from the Etherscan V2 API, and emits normalized JSON
documents plus a shared index.

Quick Start:
    from treasury_snapshot import (
        ArtifactWriter,
        Orchestrator,
        SnapshotConfig,
    )

    async def capture():
        config = SnapshotConfig.from_env()
        run = await Orchestrator(config).run()
        ArtifactWriter(config.output_dir).write(run, config.chains)

Guarantees:
- Balances and amounts are decimal-digit strings end to end
- One capture timestamp shared by every chain in a run
- Any fatal error aborts the run; nothing is written
"""

__version__ = "1.0.0"

from treasury_snapshot.amounts import (
    format_instant,
    iso_from_unix_seconds,
    to_decimal_string,
    to_integer,
)
from treasury_snapshot.assembler import SnapshotAssembler
from treasury_snapshot.config import (
    ChainContext,
    SnapshotConfig,
    TokenSpec,
    default_chains,
)
from treasury_snapshot.exceptions import (
    ApiError,
    ConfigError,
    FormatError,
    NetworkError,
    SnapshotError,
    TransportError,
)
from treasury_snapshot.models import (
    ChainSnapshot,
    Direction,
    NativeBalance,
    SnapshotIndex,
    SnapshotRun,
    SymbolLookup,
    TokenBalance,
    TransferRecord,
)
from treasury_snapshot.normalizer import TransferNormalizer, classify_direction
from treasury_snapshot.orchestrator import Orchestrator, RunStage
from treasury_snapshot.providers import ChainBalanceReader, TransferHistoryClient
from treasury_snapshot.writer import ArtifactWriter


__all__ = [
    # Amounts
    "to_integer",
    "to_decimal_string",
    "iso_from_unix_seconds",
    "format_instant",

    # Configuration
    "SnapshotConfig",
    "ChainContext",
    "TokenSpec",
    "default_chains",

    # Models
    "Direction",
    "SymbolLookup",
    "NativeBalance",
    "TokenBalance",
    "TransferRecord",
    "ChainSnapshot",
    "SnapshotIndex",
    "SnapshotRun",

    # Exceptions
    "SnapshotError",
    "ConfigError",
    "NetworkError",
    "TransportError",
    "ApiError",
    "FormatError",

    # Pipeline
    "ChainBalanceReader",
    "TransferHistoryClient",
    "TransferNormalizer",
    "classify_direction",
    "SnapshotAssembler",
    "Orchestrator",
    "RunStage",
    "ArtifactWriter",
]
