"""
In-memory stand-ins for aiohttp sessions and the remote services.

FakeSession mimics the slice of aiohttp.ClientSession used by
BaseHttpClient: request(...) returning an async context manager whose
response exposes status, text() and json().
"""

from typing import Any, Callable, Optional, Union


TRACKED = "0xABC0000000000000000000000000000000000001"
COUNTERPARTY = "0xDEF0000000000000000000000000000000000002"
TOKEN_CONTRACT = "0x1111111111111111111111111111111111111111"


class _InvalidJson:
    pass


INVALID_JSON = _InvalidJson()


class FakeResponse:
    """Response object usable as `async with session.request(...) as resp`."""

    def __init__(self, payload: Any = None, status: int = 200, text: str = "") -> None:
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self, content_type: Optional[str] = None) -> Any:
        if self._payload is INVALID_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        return False


Handler = Callable[..., Union[FakeResponse, Exception]]


class FakeSession:
    """Routes every request through a handler and records the calls."""

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, params: Any = None, json: Any = None) -> FakeResponse:
        self.calls.append({"method": method, "url": url, "params": params, "json": json})
        outcome = self._handler(method=method, url=url, params=params, json=json)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


# ─────────────────────────────────────────────────────────────
# JSON-RPC node
# ─────────────────────────────────────────────────────────────

def encode_uint(value: int) -> str:
    return "0x" + format(value, "064x")


def encode_string(text: str) -> str:
    data = text.encode("utf-8")
    padded = data.ljust(max(32, (len(data) + 31) // 32 * 32), b"\x00")
    return "0x" + (32).to_bytes(32, "big").hex() + len(data).to_bytes(32, "big").hex() + padded.hex()


def encode_bytes32(text: str) -> str:
    return "0x" + text.encode("utf-8").ljust(32, b"\x00").hex()


def rpc_result(request_id: Any, result: Any) -> FakeResponse:
    return FakeResponse({"jsonrpc": "2.0", "id": request_id, "result": result})


def rpc_error(request_id: Any, message: str = "execution reverted") -> FakeResponse:
    return FakeResponse({"jsonrpc": "2.0", "id": request_id, "error": {"code": 3, "message": message}})


class FakeChainNode:
    """
    Answers eth_getBalance and the ERC-20 eth_calls for one token.

    Pass a FakeResponse or Exception as symbol/decimals/balance overrides
    to simulate reverts and transport failures.
    """

    SYMBOL = "0x95d89b41"
    DECIMALS = "0x313ce567"
    BALANCE_OF = "0x70a08231"

    def __init__(
        self,
        native_wei: int = 0,
        symbol: Any = "USDT",
        decimals: Any = 6,
        balance: Any = 0,
    ) -> None:
        self.native_wei = native_wei
        self.symbol = symbol
        self.decimals = decimals
        self.balance = balance
        self.requests: list[dict[str, Any]] = []

    def _answer(self, request_id: Any, value: Any, encoder: Callable[[Any], str]) -> Union[FakeResponse, Exception]:
        if isinstance(value, (FakeResponse, Exception)):
            return value
        return rpc_result(request_id, encoder(value))

    def __call__(self, method: str, url: str, params: Any = None, json: Any = None) -> Union[FakeResponse, Exception]:
        self.requests.append(json)
        request_id = json["id"]

        if json["method"] == "eth_getBalance":
            return rpc_result(request_id, hex(self.native_wei))

        data = json["params"][0]["data"]
        if data == self.SYMBOL:
            return self._answer(request_id, self.symbol, encode_string)
        if data == self.DECIMALS:
            return self._answer(request_id, self.decimals, encode_uint)
        if data.startswith(self.BALANCE_OF):
            return self._answer(request_id, self.balance, encode_uint)
        return rpc_error(request_id, f"unexpected call {data}")


# ─────────────────────────────────────────────────────────────
# Explorer
# ─────────────────────────────────────────────────────────────

def transfer_row(
    tx_hash: str = "0xaaa",
    from_address: str = TRACKED,
    to_address: str = COUNTERPARTY,
    value: Any = "2000000",
    timestamp: Any = "1700000000",
) -> dict[str, Any]:
    """A tokentx row trimmed to the fields the pipeline reads."""
    return {
        "blockNumber": "18573000",
        "timeStamp": timestamp,
        "hash": tx_hash,
        "from": from_address,
        "to": to_address,
        "value": value,
        "tokenSymbol": "USDT",
        "tokenDecimal": "6",
    }


def explorer_ok(rows: list[dict[str, Any]]) -> FakeResponse:
    return FakeResponse({"status": "1", "message": "OK", "result": rows})


def explorer_empty() -> FakeResponse:
    return FakeResponse({"status": "0", "message": "No transactions found", "result": []})


def explorer_notok(result: str = "Invalid API Key") -> FakeResponse:
    return FakeResponse({"status": "0", "message": "NOTOK", "result": result})
