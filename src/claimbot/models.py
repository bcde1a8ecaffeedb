"""Typed records for chain data.

Table rows come back from ``get_table_rows`` as loosely shaped JSON; each kind
is parsed here, right after the fetch, so the rest of the bot only ever sees
these dataclasses. A row of the wrong shape raises RowShapeError.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import claimbot.constants as C
from claimbot.errors import RowShapeError


@dataclass(frozen=True, slots=True)
class Asset:
    amount: Decimal
    symbol: str
    precision: int = 4

    @classmethod
    def parse(cls, text: str) -> "Asset":
        """Parse an on-chain quantity such as ``"120.0000 DWG"``."""
        parts = str(text).split()
        if len(parts) != 2:
            raise ValueError(f"not an asset: {text!r}")
        raw_amount, symbol = parts
        try:
            amount = Decimal(raw_amount)
        except InvalidOperation as e:
            raise ValueError(f"not an asset: {text!r}") from e
        precision = len(raw_amount.split(".", 1)[1]) if "." in raw_amount else 0
        if not symbol.isalpha() or not symbol.isupper() or len(symbol) > 7:
            raise ValueError(f"bad symbol in {text!r}")
        return cls(amount=amount, symbol=symbol, precision=precision)

    def with_amount(self, amount: Decimal) -> "Asset":
        return Asset(amount=amount, symbol=self.symbol, precision=self.precision)

    def __str__(self) -> str:
        return f"{self.amount:.{self.precision}f} {self.symbol}"


def parse_asset_list(text: str | None) -> dict[str, Asset]:
    """Parse ``"100 DWG, 5.5 DWD"`` into a mapping keyed by symbol."""
    assets: dict[str, Asset] = {}
    for chunk in (text or "").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        a = Asset.parse(chunk)
        assets[a.symbol] = a
    return assets


def _epoch(value: Any) -> int:
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def _parse(kind: str, row: Any, fn):
    if not isinstance(row, dict):
        raise RowShapeError(kind, row, "not an object")
    try:
        return fn(row)
    except KeyError as e:
        raise RowShapeError(kind, row, f"missing {e.args[0]!r}") from e
    except (TypeError, ValueError) as e:
        raise RowShapeError(kind, row, str(e)) from e


# =============================================================================
# Table rows
# =============================================================================


@dataclass(frozen=True, slots=True)
class Tool:
    asset_id: int
    template_id: int
    durability: int
    ready_at: int  # epoch seconds
    next_mine: int  # epoch seconds

    @classmethod
    def from_row(cls, row: dict) -> "Tool":
        return _parse("tool", row, lambda r: cls(
            asset_id=int(r["asset_id"]),
            template_id=int(r["template_id"]),
            durability=int(r["durability"]),
            ready_at=_epoch(r.get("ready_at", 0)),
            next_mine=_epoch(r.get("next_mine", 0)),
        ))


@dataclass(frozen=True, slots=True)
class ToolTemplate:
    template_id: int
    init_durability: int
    durability_consume: int

    @classmethod
    def from_row(cls, row: dict) -> "ToolTemplate":
        def build(r):
            init = int(r["init_durability"])
            if init <= 0:
                raise ValueError("init_durability must be positive")
            return cls(
                template_id=int(r["template_id"]),
                init_durability=init,
                durability_consume=int(r["durability_consume"]),
            )
        return _parse("toolsconfig", row, build)


@dataclass(frozen=True, slots=True)
class FeeConfig:
    min_fee: float
    fee: float

    @classmethod
    def from_row(cls, row: dict) -> "FeeConfig":
        return _parse("config", row, lambda r: cls(min_fee=float(r["min_fee"]), fee=float(r["fee"])))


@dataclass(frozen=True, slots=True)
class GameAccount:
    """The game's ``userbalance`` row: in-game balances for one account."""

    account: str
    balances: tuple[Asset, ...]

    @classmethod
    def from_row(cls, row: dict) -> "GameAccount":
        def build(r):
            balance = r["balance"]
            if not isinstance(balance, list):
                raise TypeError("balance is not a list")
            return cls(account=str(r.get("account", "")), balances=tuple(Asset.parse(b) for b in balance))
        return _parse("userbalance", row, build)


def wallet_balance_from_row(row: dict) -> Asset:
    """A ``diggerstoken/accounts`` row is just ``{"balance": "1.0000 DWG"}``."""
    return _parse("accounts", row, lambda r: Asset.parse(r["balance"]))


# =============================================================================
# Actions & transactions
# =============================================================================


@dataclass(frozen=True, slots=True)
class Authorization:
    actor: str
    permission: str = C.PERMISSION


@dataclass(slots=True)
class Action:
    account: str  # contract
    name: str
    authorization: list[Authorization]
    data: dict[str, Any]

    @classmethod
    def for_account(cls, contract: str, name: str, actor: str, data: dict[str, Any]) -> "Action":
        return cls(account=contract, name=name, authorization=[Authorization(actor=actor)], data=data)

    @property
    def actors(self) -> set[str]:
        return {a.actor for a in self.authorization}

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "name": self.name,
            "authorization": [{"actor": a.actor, "permission": a.permission} for a in self.authorization],
            "data": self.data,
        }


@dataclass(frozen=True, slots=True)
class ChainInfo:
    """Reference block data from ``get_info``. Fetched fresh for every transaction."""

    head_block_id: str
    head_block_time: datetime
    head_block_num: int
    chain_id: str

    @classmethod
    def from_info_result(cls, result: dict) -> "ChainInfo":
        def build(r):
            block_time = datetime.fromisoformat(r["head_block_time"])
            if block_time.tzinfo is None:
                block_time = block_time.replace(tzinfo=timezone.utc)
            block_id = str(r["head_block_id"])
            if len(block_id) != 64:
                raise ValueError("head_block_id is not 32 bytes")
            return cls(
                head_block_id=block_id,
                head_block_time=block_time,
                head_block_num=int(r["head_block_num"]),
                chain_id=str(r["chain_id"]),
            )
        return _parse("get_info", result, build)

    @property
    def ref_block_num(self) -> int:
        return self.head_block_num & 0xFFFF

    @property
    def ref_block_prefix(self) -> int:
        # bytes 8..11 of the block id, little-endian
        return int.from_bytes(bytes.fromhex(self.head_block_id[16:24]), "little")


@dataclass(slots=True)
class TransactionRequest:
    expiration: datetime
    ref_block_num: int
    ref_block_prefix: int
    actions: list[Action]

    @classmethod
    def from_chain_info(
        cls, info: ChainInfo, actions: list[Action], *, expire_in: int = C.EXPIRATION_OFFSET
    ) -> "TransactionRequest":
        # All three anti-replay fields come from the same ChainInfo.
        # time_point_sec rounds half up to the nearest second
        seconds = math.floor(info.head_block_time.timestamp() + expire_in + 0.5)
        expiration = datetime.fromtimestamp(seconds, timezone.utc)
        return cls(
            expiration=expiration,
            ref_block_num=info.ref_block_num,
            ref_block_prefix=info.ref_block_prefix,
            actions=list(actions),
        )


@dataclass(frozen=True, slots=True)
class Credential:
    name: str
    private_key: str = field(repr=False)


@dataclass(slots=True)
class TaskReport:
    account: str
    task: C.TaskName
    outcome: C.Outcome
    actions: list[Action] = field(default_factory=list)
    transaction_id: str | None = None
    error: str | None = None
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "task": str(self.task),
            "outcome": str(self.outcome),
            "actions": [f"{a.account}::{a.name}" for a in self.actions],
            "transaction_id": self.transaction_id,
            "error": self.error,
            "finished_at": self.finished_at.isoformat(),
        }
