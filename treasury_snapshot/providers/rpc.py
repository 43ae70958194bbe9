"""
JSON-RPC Balance Reader - native and ERC-20 balances from a chain node.

Talks plain JSON-RPC 2.0 over HTTP:
- eth_getBalance for the native currency
- eth_call with the ERC-20 selectors for symbol(), decimals() and
  balanceOf(address)

symbol() is best-effort: plenty of older tokens revert on it or return
bytes32 instead of a string. decimals() and balanceOf() are not.
"""

import asyncio
import itertools
import logging
import re
from typing import Any, Optional

import aiohttp

from treasury_snapshot.amounts import to_decimal_string
from treasury_snapshot.base import BaseHttpClient
from treasury_snapshot.config import ChainContext
from treasury_snapshot.exceptions import NetworkError
from treasury_snapshot.models import NativeBalance, SymbolLookup, TokenBalance


logger = logging.getLogger(__name__)

_HEX = re.compile(r"^0x[0-9a-fA-F]*$")


def _hex_to_int(hex_str: str) -> int:
    if hex_str == "0x":
        return 0
    return int(hex_str, 16)


def _decode_uint256(result_hex: Any) -> Optional[int]:
    if not isinstance(result_hex, str) or not _HEX.match(result_hex) or result_hex == "0x":
        return None
    return _hex_to_int(result_hex)


def _decode_string(result_hex: Any) -> Optional[str]:
    """Decode an ABI string, falling back to the bytes32 layout."""
    if not isinstance(result_hex, str) or not _HEX.match(result_hex) or len(result_hex) % 2:
        return None
    raw = bytes.fromhex(result_hex[2:])

    if len(raw) == 32:
        return raw.rstrip(b"\x00").decode("utf-8", errors="replace").strip() or None
    if len(raw) < 64:
        return None

    offset = int.from_bytes(raw[0:32], "big")
    if offset + 32 > len(raw):
        return None
    strlen = int.from_bytes(raw[offset:offset + 32], "big")
    start = offset + 32
    end = start + strlen
    if end > len(raw):
        return None
    return raw[start:end].decode("utf-8", errors="replace").strip() or None


class ChainBalanceReader(BaseHttpClient):
    """Reads balances for one chain from its JSON-RPC endpoint."""

    _SYMBOL = "0x95d89b41"
    _DECIMALS = "0x313ce567"
    _BALANCE_OF = "0x70a08231"

    def __init__(
        self,
        chain: ChainContext,
        timeout: float = BaseHttpClient.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self._chain = chain
        self._ids = itertools.count(1)

    @property
    def name(self) -> str:
        return f"rpc:{self._chain.name}"

    @property
    def chain(self) -> ChainContext:
        return self._chain

    def _request_failed(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> NetworkError:
        # The RPC URL usually embeds a provider key; report the env var instead.
        return NetworkError(
            message=f"RPC request failed: {message}",
            chain=self._chain.name,
            endpoint=self._chain.rpc_env_var,
            original_error=original_error,
            context={"status_code": status_code, "response_body": response_body},
        )

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC call and return its result."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = await self._make_request("POST", self._chain.rpc_url, json_body=payload)

        if not isinstance(response, dict):
            raise NetworkError(
                message="Malformed JSON-RPC response",
                chain=self._chain.name,
                method=method,
                endpoint=self._chain.rpc_env_var,
                context={"response": str(response)[:200]},
            )

        if "error" in response:
            error = response.get("error") or {}
            detail = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise NetworkError(
                message=f"JSON-RPC error: {detail}",
                chain=self._chain.name,
                method=method,
                endpoint=self._chain.rpc_env_var,
            )

        if "result" not in response:
            raise NetworkError(
                message="JSON-RPC response has no result",
                chain=self._chain.name,
                method=method,
                endpoint=self._chain.rpc_env_var,
            )

        return response["result"]

    async def _eth_call(self, contract: str, data: str) -> Any:
        return await self._rpc("eth_call", [{"to": contract, "data": data}, "latest"])

    # ─────────────────────────────────────────────────────────────
    # Native balance
    # ─────────────────────────────────────────────────────────────

    async def get_native_balance(self, address: str) -> NativeBalance:
        """
        Fetch the native-currency balance of an address.

        Raises:
            NetworkError: RPC unreachable or returned malformed data
        """
        result = await self._rpc("eth_getBalance", [address, "latest"])
        wei = _decode_uint256(result)
        if wei is None:
            raise NetworkError(
                message=f"Malformed eth_getBalance result: {str(result)[:80]!r}",
                chain=self._chain.name,
                method="eth_getBalance",
                endpoint=self._chain.rpc_env_var,
            )

        logger.debug(f"[{self.name}] Native balance of {address}: {wei} wei")

        decimals = self._chain.native_decimals
        return NativeBalance(
            symbol=self._chain.native_symbol,
            decimals=decimals,
            balance_wei=str(wei),
            balance_formatted=to_decimal_string(str(wei), decimals),
            explorer_address_url=self._chain.address_url(address),
        )

    # ─────────────────────────────────────────────────────────────
    # ERC-20
    # ─────────────────────────────────────────────────────────────

    async def lookup_symbol(self, contract: str) -> SymbolLookup:
        """Best-effort symbol() call; never raises for contract failures."""
        try:
            result = await self._eth_call(contract, self._SYMBOL)
        except NetworkError as e:
            return SymbolLookup.fallback(reason=e.message)

        symbol = _decode_string(result)
        if symbol is None:
            return SymbolLookup.fallback(reason=f"Undecodable symbol() result: {str(result)[:80]!r}")
        return SymbolLookup.ok(symbol)

    async def _get_decimals(self, contract: str) -> int:
        result = await self._eth_call(contract, self._DECIMALS)
        decimals = _decode_uint256(result)
        if decimals is None or decimals > 255:
            raise NetworkError(
                message=f"Malformed decimals() result for {contract}: {str(result)[:80]!r}",
                chain=self._chain.name,
                method="eth_call",
                endpoint=self._chain.rpc_env_var,
            )
        return decimals

    async def _get_balance_of(self, contract: str, owner: str) -> int:
        data = self._BALANCE_OF + owner[2:].lower().rjust(64, "0")
        result = await self._eth_call(contract, data)
        balance = _decode_uint256(result)
        if balance is None:
            raise NetworkError(
                message=f"Malformed balanceOf() result for {contract}: {str(result)[:80]!r}",
                chain=self._chain.name,
                method="eth_call",
                endpoint=self._chain.rpc_env_var,
            )
        return balance

    async def get_token_balance(self, contract: str, owner: str) -> TokenBalance:
        """
        Read symbol, decimals and balance from an ERC-20 contract.

        A failing symbol() call degrades to the placeholder symbol and is
        logged; decimals() and balanceOf() failures are fatal.

        Raises:
            NetworkError: decimals or balance could not be read
        """
        # Settle all three calls before the session can be closed by the caller.
        results = await asyncio.gather(
            self.lookup_symbol(contract),
            self._get_decimals(contract),
            self._get_balance_of(contract, owner),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        lookup, decimals, balance = results

        if lookup.degraded:
            logger.warning(
                f"[{self.name}] symbol() failed for {contract}, "
                f"using placeholder '{lookup.symbol}': {lookup.reason}"
            )

        return TokenBalance(
            contract=contract,
            symbol=lookup.symbol,
            decimals=decimals,
            balance_raw=str(balance),
            balance_formatted=to_decimal_string(str(balance), decimals),
            explorer_token_url=self._chain.token_url(contract),
        )
