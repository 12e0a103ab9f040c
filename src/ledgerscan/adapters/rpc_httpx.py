from __future__ import annotations
import asyncio, base64, httpx
from typing import Any, Sequence
from ..domain.value_types import Address, Commitment, ProgramId
from ..errors import RpcError
from ..ports.rpc import LedgerClient

def _decode_data(info: dict[str, Any] | None) -> bytes | None:
    """account info -> raw bytes; `data` is ["<b64>", "base64"]."""
    if not info:
        return None
    data = info.get("data")
    if not data:
        return None
    if isinstance(data, list):
        b64, enc = data[0], (data[1] if len(data) > 1 else "base64")
        if enc != "base64":
            raise RpcError(f"unexpected account encoding {enc!r}")
        return base64.b64decode(b64) if b64 else b""
    raise RpcError(f"unexpected account data shape: {type(data).__name__}")

def _unwrap_value(result: Any) -> Any:
    # RpcResponse<T> carries {context, value}; withContext=false returns T directly
    if isinstance(result, dict) and "value" in result:
        return result["value"]
    return result

class HttpxSolanaRPC(LedgerClient):
    def __init__(
        self,
        rpc_url: str,
        timeout_s: int = 30,
        max_conn: int = 8,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.max_retries = max_retries
        self._req_id = 0
        self.client = httpx.AsyncClient(
            http2=True,
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(max_connections=max_conn, max_keepalive_connections=max(1, max_conn//2)),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any:
        self._req_id += 1
        payload = {"jsonrpc": "2.0", "id": self._req_id, "method": method, "params": params}
        # retry on 429 with simple backoff; every other failure surfaces as RpcError
        for attempt in range(self.max_retries):
            try:
                r = await self.client.post(self.rpc_url, json=payload)
            except httpx.HTTPError as e:
                raise RpcError(f"{method} transport error: {type(e).__name__}: {e}") from e
            if r.status_code == 429:
                ra = r.headers.get("Retry-After")
                delay = max(1.0, float(ra)) if ra and ra.isdigit() else (1.0 * (2**attempt))
                await asyncio.sleep(delay); continue
            try:
                r.raise_for_status()
                data = r.json()
            except (httpx.HTTPStatusError, ValueError) as e:
                raise RpcError(f"{method} failed: {e}") from e
            if "error" in data:
                err = data["error"]
                code = err.get("code") if isinstance(err, dict) else None
                msg = err.get("message") if isinstance(err, dict) else str(err)
                raise RpcError(f"{method} RPC error code={code} message={msg}")
            return data.get("result")
        raise RpcError(f"Retries exhausted for {method}")

    async def get_program_account_addresses(
        self, program_id: ProgramId, commitment: Commitment = "confirmed",
    ) -> list[Address]:
        res = await self._call("getProgramAccounts", [str(program_id), {
            "encoding": "base64",
            "commitment": commitment,
            "dataSlice": {"offset": 0, "length": 0},   # addresses only
        }])
        items = _unwrap_value(res) or []
        return [Address(it["pubkey"]) for it in items]

    async def get_multiple_accounts(
        self, addresses: Sequence[Address], commitment: Commitment = "confirmed",
    ) -> list[bytes | None]:
        res = await self._call("getMultipleAccounts", [[str(a) for a in addresses], {
            "encoding": "base64",
            "commitment": commitment,
        }])
        value = _unwrap_value(res)
        if not isinstance(value, list):
            raise RpcError(f"getMultipleAccounts returned {type(value).__name__}, expected list")
        return [_decode_data(info) for info in value]
