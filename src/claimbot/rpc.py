"""Minimal async client for the Antelope ``/v1/chain`` HTTP API.

One shared httpx.AsyncClient; every call names the endpoint it goes to so the
pool, not the client, decides where traffic lands.
"""

import logging
from typing import Any

import httpx

import claimbot.constants as C
from claimbot.errors import EndpointUnavailable, RpcError

log = logging.getLogger("claimbot.rpc")


def _error_message(body: Any, resp: httpx.Response) -> str:
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        err = body["error"]
        details = [d.get("message", "") for d in err.get("details", []) if isinstance(d, dict)]
        what = err.get("what") or body.get("message") or "error"
        return f"{what}: {'; '.join(d for d in details if d)}" if any(details) else what
    return resp.reason_phrase or "unexpected response"


class ChainClient:
    def __init__(self, *, timeout: float = C.SUBMIT_TIMEOUT, transport: httpx.AsyncBaseTransport | None = None):
        self._http = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ChainClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _post(self, endpoint: str, path: str, payload: dict | None = None) -> dict:
        url = f"{endpoint}/v1/chain/{path}"
        try:
            resp = await self._http.post(url, json=payload or {})
        except httpx.HTTPError as e:
            raise EndpointUnavailable(endpoint, f"{e.__class__.__name__}: {e}") from e
        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.status_code >= 400 or not isinstance(body, dict):
            raise RpcError(endpoint, resp.status_code, _error_message(body, resp))
        return body

    async def get_table_rows(
        self,
        endpoint: str,
        *,
        code: str,
        table: str,
        scope: str,
        lower_bound: str | int | None = None,
        upper_bound: str | int | None = None,
        index_position: int = 1,
        key_type: str = "i64",
        limit: int = C.TABLE_LIMIT,
    ) -> dict:
        payload: dict[str, Any] = {
            "json": True,
            "code": code,
            "scope": scope,
            "table": table,
            "index_position": str(index_position),
            "key_type": key_type,
            "limit": limit,
        }
        if lower_bound is not None:
            payload["lower_bound"] = str(lower_bound)
        if upper_bound is not None:
            payload["upper_bound"] = str(upper_bound)
        return await self._post(endpoint, "get_table_rows", payload)

    async def get_info(self, endpoint: str) -> dict:
        return await self._post(endpoint, "get_info")

    async def abi_json_to_bin(self, endpoint: str, *, code: str, action: str, args: dict) -> str:
        """Hex-encoded action payload, serialized by the node from the contract ABI."""
        body = await self._post(endpoint, "abi_json_to_bin", {"code": code, "action": action, "args": args})
        binargs = body.get("binargs")
        if not isinstance(binargs, str):
            raise RpcError(endpoint, 200, f"no binargs for {code}::{action}")
        return binargs

    async def push_transaction(self, endpoint: str, *, signatures: list[str], packed_trx: bytes) -> dict:
        payload = {
            "signatures": signatures,
            "compression": 0,
            "packed_context_free_data": "",
            "packed_trx": packed_trx.hex(),
        }
        log.debug("push_transaction -> %s (%d bytes)", endpoint, len(packed_trx))
        return await self._post(endpoint, "push_transaction", payload)
