import asyncio
import contextlib
import logging
import random
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import claimbot.constants as C
from claimbot.config import BotConfig
from claimbot.display import format_remaining
from claimbot.endpoints import EndpointPool
from claimbot.errors import (
    AccountNotFound,
    ClaimbotError,
    ConfigError,
    EndpointUnavailable,
    FeeExceedsPolicy,
    InvalidCredential,
)
from claimbot.models import Credential, TaskReport
from claimbot.rpc import ChainClient
from claimbot.signing import SignatureProvider, signer_for
from claimbot.tables import TableReader
from claimbot.tasks import GameTasks, Sleep
from claimbot.transaction import TransactionBuilder

log = logging.getLogger("claimbot.orchestrator")


@dataclass(slots=True)
class BotAccount:
    name: str
    signer: SignatureProvider

    def __str__(self):
        return self.name


def load_accounts(credentials: Iterable[Credential]) -> list[BotAccount]:
    """Validate every key once; a malformed key drops only that account."""
    accounts = []
    for cred in credentials:
        try:
            accounts.append(BotAccount(name=cred.name, signer=signer_for(cred)))
        except InvalidCredential as e:
            log.warning("Excluding account %s: %s", e.account, e.reason)
    return accounts


class Orchestrator:
    """Runs every account through Deposit -> Repair -> Use -> Withdraw, one at a time, forever."""

    def __init__(
        self,
        config: BotConfig,
        tasks: GameTasks,
        accounts: list[BotAccount],
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
        on_pass_complete: Callable[[list[TaskReport]], None] | None = None,
    ):
        self.config = config
        self.tasks = tasks
        self.accounts = list(accounts)
        self.sleep = sleep
        self.clock = clock
        self.rng = rng or random.Random()
        self.on_pass_complete = on_pass_complete

        # latest report per (account, task) for the status API
        self.reports: dict[tuple[str, C.TaskName], TaskReport] = {}
        self.passes = 0
        self.running = False

    @property
    def pool(self) -> EndpointPool:
        return self.tasks.reader.pool

    async def _pause(self, seconds: float, stop: asyncio.Event | None) -> None:
        if stop is None or seconds <= 0:
            await self.sleep(max(0.0, seconds))
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=seconds)

    async def run_task(self, account: BotAccount, name: C.TaskName) -> TaskReport:
        """Run one task; whatever goes wrong stays inside this account/task."""
        try:
            report = await self.tasks.for_name(name)(account.name, account.signer)
        except FeeExceedsPolicy as e:
            log.warning("%s aborting until next round", e)
            report = TaskReport(account.name, name, C.Outcome.SKIPPED, error=str(e))
        except AccountNotFound as e:
            log.error("Error %s", e)
            report = TaskReport(account.name, name, C.Outcome.FAILED, error=str(e))
        except EndpointUnavailable as e:
            log.error("%s %s: chain unreachable (%s)", name, account, e)
            report = TaskReport(account.name, name, C.Outcome.FAILED, error=str(e))
        except ClaimbotError as e:
            log.error("%s %s failed: %s", name, account, e)
            report = TaskReport(account.name, name, C.Outcome.FAILED, error=str(e))
        except Exception as e:
            log.exception("%s %s crashed", name, account)
            report = TaskReport(account.name, name, C.Outcome.FAILED, error=f"{e.__class__.__name__}: {e}")
        self.reports[(account.name, name)] = report
        return report

    async def run_account(self, account: BotAccount, stop: asyncio.Event | None = None) -> list[TaskReport]:
        reports = []
        for name in C.TASK_ORDER:
            if stop is not None and stop.is_set():
                break
            reports.append(await self.run_task(account, name))
            await self._pause(self.config.task_settle_delay, stop)
        return reports

    async def run_pass(self, stop: asyncio.Event | None = None) -> list[TaskReport]:
        self.passes += 1
        log.info("Pass %d over %d account(s)", self.passes, len(self.accounts))
        if not self.tasks.templates:
            await self.tasks.load_templates()

        reports: list[TaskReport] = []
        for account in self.accounts:
            if stop is not None and stop.is_set():
                break
            reports.extend(await self.run_account(account, stop))
            # break up the rhythm between accounts
            delay = round(self.rng.uniform(self.config.account_delay_min, self.config.account_delay_max), 2)
            await self._pause(delay, stop)

        if self.on_pass_complete is not None:
            self.on_pass_complete(reports)
        return reports

    async def run(self, stop: asyncio.Event, *, once: bool = False) -> None:
        """Repeat passes until ``stop`` is set.

        A pass starts ``check_interval`` minutes after the previous one
        started, or immediately if the previous pass ran longer than that.
        """
        self.running = True
        try:
            while not stop.is_set():
                started = self.clock()
                await self.run_pass(stop)
                if once or stop.is_set():
                    break
                wait = max(0.0, self.config.interval_seconds - (self.clock() - started))
                log.info("Next pass in %s", format_remaining(wait) or "0 seconds")
                await self._pause(wait, stop)
        finally:
            self.running = False
        log.info("Scheduler stopped after %d pass(es)", self.passes)

    def snapshot(self) -> list[dict]:
        return [r.to_dict() for r in self.reports.values()]


def build_orchestrator(config: BotConfig, client: ChainClient, **kwargs) -> Orchestrator:
    pool = EndpointPool(config.endpoints)
    reader = TableReader(client, pool, timeout=config.read_timeout)
    builder = TransactionBuilder(client, pool, dev_mode=config.dev_mode)
    tasks = GameTasks(config, reader, builder)
    accounts = load_accounts(config.accounts)
    if not accounts:
        raise ConfigError("No valid accounts configured (set ACCOUNT_NAME<N> / PRIVATE_KEY<N>)")
    return Orchestrator(config, tasks, accounts, **kwargs)
