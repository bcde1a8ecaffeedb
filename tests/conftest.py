import asyncio
import hashlib
import json

import httpx
import pytest

from claimbot.config import BotConfig
from claimbot.models import Credential

ENDPOINTS = ("https://a.example", "https://b.example", "https://c.example")

# The well-known development key shipped with every Antelope tutorial
DEV_KEY = "5KQwrPbwdL6PhXujxW37FSSQZ1JiwsST4cqQzDeyXtP79zkvFD3"
DEV_PUB = "EOS6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV"

WAX_CHAIN_ID = "1064487b3cd1a897ce03ae5b6a865651747e2e152090f99c1d19d44e01aea5a4"
HEAD_BLOCK_ID = "00112233" + "44556677" + "8899aabb" + "cc" * 20


def encode_args(args: dict) -> str:
    """Stand-in for the node's ABI encoding: any stable bytes will do."""
    return hashlib.sha256(json.dumps(args, sort_keys=True).encode()).hexdigest()[:32]


class FakeChain:
    """In-process stand-in for a set of nodes, served through httpx.MockTransport."""

    def __init__(self):
        self.tables: dict[tuple, list[dict]] = {}
        self.info = {
            "chain_id": WAX_CHAIN_ID,
            "head_block_num": 123456789,
            "head_block_id": HEAD_BLOCK_ID,
            "head_block_time": "2024-05-01T12:00:00.000",
        }
        self.down: set[str] = set()
        self.slow: set[str] = set()
        self.rowless: set[str] = set()
        self.push_error: dict | None = None
        self.calls: list[tuple[str, str, dict]] = []
        self.pushed: list[dict] = []

    def set_table(self, code, table, scope, rows, bound=None):
        self.tables[(code, table, scope, None if bound is None else str(bound))] = rows

    def endpoints_called(self, path=None):
        return [e for e, p, _ in self.calls if path is None or p == path]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = f"{request.url.scheme}://{request.url.host}"
        path = request.url.path.rsplit("/", 1)[-1]
        payload = json.loads(request.content or b"{}")
        self.calls.append((endpoint, path, payload))

        if endpoint in self.down:
            raise httpx.ConnectError("connection refused", request=request)
        if endpoint in self.slow:
            await asyncio.sleep(1)

        if path == "get_table_rows":
            if endpoint in self.rowless:
                return httpx.Response(200, json={"more": False})
            key = (payload["code"], payload["table"], payload["scope"], payload.get("lower_bound"))
            return httpx.Response(200, json={"rows": self.tables.get(key, []), "more": False})
        if path == "get_info":
            return httpx.Response(200, json=self.info)
        if path == "abi_json_to_bin":
            return httpx.Response(200, json={"binargs": encode_args(payload["args"])})
        if path == "push_transaction":
            if self.push_error is not None:
                return httpx.Response(500, json=self.push_error)
            self.pushed.append(payload)
            txid = hashlib.sha256(bytes.fromhex(payload["packed_trx"])).hexdigest()
            return httpx.Response(202, json={"transaction_id": txid, "processed": {}})
        return httpx.Response(404, json={"code": 404, "message": "Not Found"})


def make_config(**overrides) -> BotConfig:
    base = dict(
        endpoints=ENDPOINTS,
        read_timeout=0.2,
        delay_min=0.0,
        delay_max=0.0,
        task_settle_delay=0.0,
        account_delay_min=0.0,
        account_delay_max=0.0,
        check_interval=1,
        accounts=(Credential(name="alice", private_key=DEV_KEY),),
    )
    base.update(overrides)
    return BotConfig(**base)


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def transport(chain) -> httpx.MockTransport:
    return httpx.MockTransport(chain.handler)
