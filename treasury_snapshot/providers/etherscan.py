"""
Etherscan Transfer History Client - ERC-20 transfer lists via API V2.

Uses the unified multichain endpoint (https://api.etherscan.io/v2/api),
selecting the network with the `chainid` parameter, so one credential
covers Ethereum and Base.

Response envelope: {"status": "1"|"0", "message": ..., "result": ...}.
A "0" status with message "No transactions found" is an empty result,
not an error.
"""

import logging
from typing import Any, Optional

import aiohttp

from treasury_snapshot.base import BaseHttpClient
from treasury_snapshot.config import ETHERSCAN_V2_API_URL
from treasury_snapshot.exceptions import ApiError, TransportError


logger = logging.getLogger(__name__)


NO_RESULTS_MESSAGE = "No transactions found"
PAYLOAD_EXCERPT_CHARS = 120


class TransferHistoryClient(BaseHttpClient):
    """Fetches recent token transfers for an address from Etherscan V2."""

    def __init__(
        self,
        api_key: str,
        api_url: str = ETHERSCAN_V2_API_URL,
        timeout: float = BaseHttpClient.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self._api_key = api_key
        self._api_url = api_url

    @property
    def name(self) -> str:
        return "etherscan"

    def _request_failed(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> TransportError:
        return TransportError(
            message=f"Etherscan tokentx {message}",
            status_code=status_code,
            response_body=response_body,
            request_url=request_url,
            original_error=original_error,
        )

    def _build_params(
        self,
        chain_id: int,
        address: str,
        contract_address: str,
        page: int,
        page_size: int,
    ) -> dict[str, str]:
        """Query parameters for account/tokentx, newest first."""
        return {
            "chainid": str(chain_id),
            "module": "account",
            "action": "tokentx",
            "address": address,
            "contractaddress": contract_address,
            "page": str(page),
            "offset": str(page_size),
            "sort": "desc",
            "apikey": self._api_key,
        }

    async def fetch_transfers(
        self,
        chain_id: int,
        address: str,
        contract_address: str,
        page: int = 1,
        page_size: int = 25,
    ) -> list[dict[str, Any]]:
        """
        Fetch one page of raw transfer events, most recent first.

        Args:
            chain_id: EIP-155 chain id
            address: Address whose transfers are listed
            contract_address: Token contract to filter on
            page: 1-based page number
            page_size: Transfers per page

        Returns:
            Raw transfer objects exactly as the explorer returned them

        Raises:
            ValueError: page or page_size below 1
            TransportError: HTTP failure
            ApiError: explorer reported a failure other than "no results"
        """
        if page < 1:
            raise ValueError("page must be at least 1")
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        params = self._build_params(chain_id, address, contract_address, page, page_size)
        response = await self._make_request("GET", self._api_url, params=params)

        logger.debug(
            f"[{self.name}] tokentx chainid={chain_id} contract={contract_address} "
            f"page={page} offset={page_size} latency={self.last_latency_ms or 0:.1f}ms"
        )

        return self._unwrap(response, chain_id)

    def _unwrap(self, response: Any, chain_id: int) -> list[dict[str, Any]]:
        """Apply the status/message rules to a decoded response."""
        if not isinstance(response, dict):
            raise ApiError(
                message="Etherscan response is not a JSON object",
                payload_excerpt=str(response)[:PAYLOAD_EXCERPT_CHARS],
                context={"chainid": chain_id},
            )

        status = str(response.get("status", ""))
        message = response.get("message") or ""
        result = response.get("result")

        if status != "1":
            if message == NO_RESULTS_MESSAGE:
                logger.info(f"[{self.name}] No transfers found for chainid={chain_id}")
                return []

            excerpt = result[:PAYLOAD_EXCERPT_CHARS] if isinstance(result, str) else ""
            raise ApiError(
                message=f"Etherscan error: {message or 'unknown'} ({excerpt})",
                provider_message=message or None,
                payload_excerpt=excerpt,
                context={"chainid": chain_id},
            )

        if not isinstance(result, list):
            logger.warning(f"[{self.name}] Unexpected result type {type(result).__name__}, treating as empty")
            return []

        return result
