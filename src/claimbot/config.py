import logging
import os
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

import claimbot.constants as C
from claimbot.errors import ConfigError
from claimbot.models import Asset, Credential, parse_asset_list

log = logging.getLogger("claimbot.config")

pkg_root = Path(__file__).parent
config_file = pkg_root / "config.toml"

_ACCOUNT_VAR = re.compile(r"^ACCOUNT_NAME(.*)$")


@dataclass(frozen=True)
class BotConfig:
    endpoints: tuple[str, ...] = C.WAX_ENDPOINTS
    read_timeout: float = C.READ_TIMEOUT
    submit_timeout: float = C.SUBMIT_TIMEOUT
    game_contract: str = C.GAME_CONTRACT
    token_contract: str = C.TOKEN_CONTRACT
    check_interval: float = C.CHECK_INTERVAL_MINUTES  # minutes
    delay_min: float = C.ACTION_DELAY[0]
    delay_max: float = C.ACTION_DELAY[1]
    task_settle_delay: float = C.TASK_SETTLE_DELAY
    account_delay_min: float = C.ACCOUNT_DELAY[0]
    account_delay_max: float = C.ACCOUNT_DELAY[1]
    repair_threshold: float = C.REPAIR_THRESHOLD
    auto_deposit: bool = False
    deposit_thresholds: Mapping[str, Asset] = field(default_factory=dict)
    max_deposit: Mapping[str, Asset] = field(default_factory=dict)
    auto_withdraw: bool = False
    withdraw_thresholds: Mapping[str, Asset] = field(default_factory=dict)
    max_withdraw: Mapping[str, Asset] = field(default_factory=dict)
    max_fee: float | str | None = None  # None: no cap, "min_fee": the contract's own minimum
    dev_mode: bool = False
    accounts: tuple[Credential, ...] = ()

    def __post_init__(self):
        if not self.endpoints:
            raise ConfigError("At least one chain endpoint is required")
        if self.delay_min > self.delay_max:
            raise ConfigError(f"delay_min ({self.delay_min}) is greater than delay_max ({self.delay_max})")
        if self.account_delay_min > self.account_delay_max:
            raise ConfigError("account_delay_min is greater than account_delay_max")
        if self.check_interval <= 0:
            raise ConfigError("check_interval must be positive")

    @property
    def interval_seconds(self) -> float:
        return self.check_interval * 60


def deep_update(base: dict, override: dict) -> dict:
    """Recursively merge override dict into base dict."""
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            deep_update(base[k], v)
        else:
            base[k] = v
    return base


def _flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _max_fee(value) -> float | str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text == "min_fee":
        return text
    try:
        return float(text)
    except ValueError as e:
        raise ConfigError(f"MAX_FEE must be a number or 'min_fee', got {text!r}") from e


def _assets(name: str, value) -> dict[str, Asset]:
    try:
        return parse_asset_list(value)
    except ValueError as e:
        raise ConfigError(f"Cannot parse {name}: {e}") from e


def accounts_from_env(env: Mapping[str, str]) -> list[Credential]:
    """Pair ``ACCOUNT_NAME<N>`` with ``PRIVATE_KEY<N>``."""
    accounts = []
    for k, name in sorted(env.items()):
        m = _ACCOUNT_VAR.match(k)
        if not m or not name.strip():
            continue
        suffix = m.group(1)
        key = env.get(f"PRIVATE_KEY{suffix}")
        if not key:
            log.warning("Account %s does not have a PRIVATE_KEY%s", name, suffix)
            continue
        accounts.append(Credential(name=name.strip(), private_key=key.strip()))
    return accounts


def _env_overrides(env: Mapping[str, str]) -> dict:
    o: dict = {}

    def put(section, key, var):
        if env.get(var) not in (None, ""):
            o.setdefault(section, {})[key] = env[var]

    if env.get("DEV_MODE") not in (None, ""):
        o["dev_mode"] = env["DEV_MODE"]
    put("schedule", "check_interval", "CHECK_INTERVAL")
    put("schedule", "delay_min", "DELAY_MIN")
    put("schedule", "delay_max", "DELAY_MAX")
    put("repair", "threshold", "REPAIR_THRESHOLD")
    put("deposit", "enabled", "AUTO_DEPOSIT")
    put("deposit", "thresholds", "DEPOSIT_THRESHOLD")
    put("deposit", "max", "MAX_DEPOSIT")
    put("withdraw", "enabled", "AUTO_WITHDRAW")
    put("withdraw", "thresholds", "WITHDRAW_THRESHOLD")
    put("withdraw", "max", "MAX_WITHDRAW")
    put("withdraw", "max_fee", "MAX_FEE")
    if env.get("CHAIN_ENDPOINTS"):
        o.setdefault("chain", {})["endpoints"] = [e.strip() for e in env["CHAIN_ENDPOINTS"].split(",") if e.strip()]
    return o


def from_dict(cfg: dict, accounts: list[Credential]) -> BotConfig:
    chain, game = cfg.get("chain", {}), cfg.get("game", {})
    sched, repair = cfg.get("schedule", {}), cfg.get("repair", {})
    dep, wd = cfg.get("deposit", {}), cfg.get("withdraw", {})
    try:
        return BotConfig(
            endpoints=tuple(chain.get("endpoints", C.WAX_ENDPOINTS)),
            read_timeout=float(chain.get("read_timeout", C.READ_TIMEOUT)),
            submit_timeout=float(chain.get("submit_timeout", C.SUBMIT_TIMEOUT)),
            game_contract=game.get("contract", C.GAME_CONTRACT),
            token_contract=game.get("token_contract", C.TOKEN_CONTRACT),
            check_interval=float(sched.get("check_interval", C.CHECK_INTERVAL_MINUTES)),
            delay_min=float(sched.get("delay_min", C.ACTION_DELAY[0])),
            delay_max=float(sched.get("delay_max", C.ACTION_DELAY[1])),
            task_settle_delay=float(sched.get("task_settle_delay", C.TASK_SETTLE_DELAY)),
            account_delay_min=float(sched.get("account_delay_min", C.ACCOUNT_DELAY[0])),
            account_delay_max=float(sched.get("account_delay_max", C.ACCOUNT_DELAY[1])),
            repair_threshold=float(repair.get("threshold", C.REPAIR_THRESHOLD)),
            auto_deposit=_flag(dep.get("enabled", False)),
            deposit_thresholds=_assets("deposit thresholds", dep.get("thresholds")),
            max_deposit=_assets("max deposit", dep.get("max")),
            auto_withdraw=_flag(wd.get("enabled", False)),
            withdraw_thresholds=_assets("withdraw thresholds", wd.get("thresholds")),
            max_withdraw=_assets("max withdraw", wd.get("max")),
            max_fee=_max_fee(wd.get("max_fee")),
            dev_mode=_flag(cfg.get("dev_mode", False)),
            accounts=tuple(accounts),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: Path | str | None = None, env: Mapping[str, str] | None = None) -> BotConfig:
    """Package defaults, then the user's TOML file, then the environment."""
    if env is None:
        load_dotenv()
        env = os.environ

    cfg = tomllib.loads(config_file.read_text())

    path = path or env.get("CLAIMBOT_CONFIG")
    if path:
        user_file = Path(path)
        if not user_file.is_file():
            raise ConfigError(f"Config file {user_file} not found")
        try:
            user_cfg = tomllib.loads(user_file.read_text())
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Cannot parse {user_file}: {e}") from e
        deep_update(cfg, user_cfg)

    deep_update(cfg, _env_overrides(env))

    accounts = [
        Credential(name=a["name"], private_key=a["private_key"])
        for a in cfg.get("accounts", [])
        if a.get("name") and a.get("private_key")
    ]
    accounts.extend(accounts_from_env(env))
    return from_dict(cfg, accounts)
