"""
Transfer Normalizer - raw explorer rows to canonical TransferRecords.
"""

import logging
from typing import Any, Iterable, Optional

from treasury_snapshot.amounts import iso_from_unix_seconds, to_decimal_string
from treasury_snapshot.config import ChainContext
from treasury_snapshot.models import Direction, TransferRecord


logger = logging.getLogger(__name__)


def _lower(address: Optional[str]) -> str:
    return str(address or "").lower()


def classify_direction(from_address: Optional[str], to_address: Optional[str], tracked_address: str) -> Direction:
    """
    Classify a transfer relative to the tracked address (case-insensitive).

    | from == tracked | to == tracked | Direction |
    |-----------------|---------------|-----------|
    | yes             | yes           | SELF      |
    | no              | yes           | IN        |
    | yes             | no            | OUT       |
    | no              | no            | OTHER     |
    """
    me = _lower(tracked_address)
    is_from = _lower(from_address) == me
    is_to = _lower(to_address) == me

    if is_from and is_to:
        return Direction.SELF
    if is_to:
        return Direction.IN
    if is_from:
        return Direction.OUT
    return Direction.OTHER


class TransferNormalizer:
    """Converts raw tokentx rows for one chain into TransferRecords."""

    def __init__(self, chain: ChainContext) -> None:
        self._chain = chain

    def normalize(
        self,
        raw_events: Iterable[Any],
        tracked_address: str,
        decimals: int,
    ) -> list[TransferRecord]:
        """
        Normalize raw events, preserving their order.

        Args:
            raw_events: Rows from TransferHistoryClient.fetch_transfers
            tracked_address: Address the direction is relative to
            decimals: The token's precision (not the native chain's)

        Raises:
            FormatError: a row has a malformed value or timestamp
        """
        records = []
        for row in raw_events:
            if not isinstance(row, dict):
                logger.debug(f"[{self._chain.name}] Skipping non-object transfer row: {row!r}")
                continue
            records.append(self._normalize_row(row, tracked_address, decimals))
        return records

    def _normalize_row(self, row: dict[str, Any], tracked_address: str, decimals: int) -> TransferRecord:
        tx_hash = str(row.get("hash") or "")
        from_address = row.get("from") or ""
        to_address = row.get("to") or ""
        amount_raw = str(row.get("value") or "0")

        return TransferRecord(
            hash=tx_hash,
            timestamp=iso_from_unix_seconds(row.get("timeStamp")),
            from_address=from_address,
            to_address=to_address,
            direction=classify_direction(from_address, to_address, tracked_address),
            amount_raw=amount_raw,
            amount_formatted=to_decimal_string(amount_raw, decimals),
            explorer_tx_url=self._chain.tx_url(tx_hash),
        )
