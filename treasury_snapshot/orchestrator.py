"""
Snapshot Orchestrator.

============================================================
RESPONSIBILITY
============================================================
Sequences one snapshot run:

    INIT -> VALIDATE_CONFIG -> PROCESS_CHAINS -> ASSEMBLE_INDEX -> DONE

PROCESS_CHAINS runs, per chain:
    native balance -> token balance/metadata -> raw transfers
    -> normalized transfers -> ChainSnapshot

- Chains are independent and may run concurrently or sequentially;
  the output is identical either way.
- Any fatal error aborts the whole run (FAILED). Nothing is returned,
  so nothing can be written.
- The capture timestamp is taken once and shared by every chain.

============================================================
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from treasury_snapshot.amounts import format_instant
from treasury_snapshot.assembler import SnapshotAssembler
from treasury_snapshot.config import ChainContext, SnapshotConfig
from treasury_snapshot.models import ChainSnapshot, SnapshotRun
from treasury_snapshot.normalizer import TransferNormalizer
from treasury_snapshot.providers import ChainBalanceReader, TransferHistoryClient


logger = logging.getLogger(__name__)


ReaderFactory = Callable[[ChainContext, float], ChainBalanceReader]
HistoryFactory = Callable[[SnapshotConfig], TransferHistoryClient]


class RunStage(Enum):
    """Stages of a snapshot run."""
    INIT = "init"
    VALIDATE_CONFIG = "validate_config"
    PROCESS_CHAINS = "process_chains"
    ASSEMBLE_INDEX = "assemble_index"
    DONE = "done"
    FAILED = "failed"


def _default_reader(chain: ChainContext, timeout: float) -> ChainBalanceReader:
    return ChainBalanceReader(chain, timeout=timeout)


def _default_history(config: SnapshotConfig) -> TransferHistoryClient:
    return TransferHistoryClient(
        api_key=config.explorer_api_key,
        api_url=config.explorer_api_url,
        timeout=config.request_timeout,
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Orchestrator:
    """
    Runs the snapshot pipeline for every configured chain.

    Usage:
        config = SnapshotConfig.from_env()
        run = await Orchestrator(config).run()
        ArtifactWriter(config.output_dir).write(run, config.chains)
    """

    def __init__(
        self,
        config: SnapshotConfig,
        reader_factory: Optional[ReaderFactory] = None,
        history_factory: Optional[HistoryFactory] = None,
        clock: Optional[Callable[[], datetime]] = None,
        concurrent: bool = True,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            config: Immutable run configuration
            reader_factory: Builds a ChainBalanceReader per chain
            history_factory: Builds the shared TransferHistoryClient
            clock: Source of the capture timestamp (default: UTC now)
            concurrent: Process chains concurrently (default) or one by one
        """
        self._config = config
        self._reader_factory = reader_factory or _default_reader
        self._history_factory = history_factory or _default_history
        self._clock = clock or _utc_now
        self._concurrent = concurrent
        self._assembler = SnapshotAssembler(config.tracked_address)
        self._stage = RunStage.INIT

    @property
    def stage(self) -> RunStage:
        """Current (or final) stage of the most recent run."""
        return self._stage

    def _transition(self, stage: RunStage) -> None:
        logger.info(f"Stage {self._stage.value} -> {stage.value}")
        self._stage = stage

    async def run(self) -> SnapshotRun:
        """
        Execute one full snapshot run.

        Raises:
            ConfigError: before any network call
            NetworkError, TransportError, ApiError, FormatError: from any chain
        """
        self._stage = RunStage.INIT
        try:
            self._transition(RunStage.VALIDATE_CONFIG)
            self._config.validate()

            generated_at = format_instant(self._clock())
            logger.info(
                f"Snapshot of {self._config.tracked_address} at {generated_at} "
                f"across {', '.join(c.name for c in self._config.chains)}"
            )

            self._transition(RunStage.PROCESS_CHAINS)
            async with self._history_factory(self._config) as history:
                snapshots = await self._process_chains(history, generated_at)

            self._transition(RunStage.ASSEMBLE_INDEX)
            index = self._assembler.build_index(generated_at, snapshots.values())

            self._transition(RunStage.DONE)
            return SnapshotRun(generated_at=generated_at, snapshots=snapshots, index=index)

        except Exception as e:
            logger.error(f"Snapshot run aborted during {self._stage.value}: {e}")
            self._transition(RunStage.FAILED)
            raise

    async def _process_chains(
        self,
        history: TransferHistoryClient,
        generated_at: str,
    ) -> dict[str, ChainSnapshot]:
        chains = self._config.chains

        if not self._concurrent:
            snapshots = {}
            for chain in chains:
                snapshots[chain.name] = await self._process_chain(chain, history, generated_at)
            return snapshots

        # Let every chain settle, then report the first failure in config order.
        results = await asyncio.gather(
            *(self._process_chain(chain, history, generated_at) for chain in chains),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        return {chain.name: result for chain, result in zip(chains, results)}

    async def _process_chain(
        self,
        chain: ChainContext,
        history: TransferHistoryClient,
        generated_at: str,
    ) -> ChainSnapshot:
        address = self._config.tracked_address
        page_size = self._config.transfer_page_size
        normalizer = TransferNormalizer(chain)

        async with self._reader_factory(chain, self._config.request_timeout) as reader:
            native = await reader.get_native_balance(address)
            logger.info(f"[{chain.name}] {native.symbol} balance: {native.balance_formatted}")

            tokens = {}
            transfers = {}
            for token in chain.tokens:
                balance = await reader.get_token_balance(token.contract, address)
                logger.info(f"[{chain.name}] {token.symbol} balance: {balance.balance_formatted}")

                rows = await history.fetch_transfers(
                    chain_id=chain.chain_id,
                    address=address,
                    contract_address=token.contract,
                    page=1,
                    page_size=page_size,
                )
                records = normalizer.normalize(rows, address, balance.decimals)
                logger.info(f"[{chain.name}] {token.symbol}: {len(records)} recent transfers")

                tokens[token.symbol] = balance
                transfers[token.symbol] = records[:page_size]

        return self._assembler.assemble(
            chain=chain,
            generated_at=generated_at,
            native=native,
            tokens=tokens,
            transfers=transfers,
        )
