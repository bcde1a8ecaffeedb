import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable

import claimbot.actions as A
import claimbot.constants as C
from claimbot import rules
from claimbot.config import BotConfig
from claimbot.display import format_remaining
from claimbot.errors import AccountNotFound, RowShapeError, SubmissionFailure
from claimbot.models import (
    Action,
    Asset,
    FeeConfig,
    GameAccount,
    TaskReport,
    Tool,
    ToolTemplate,
    wallet_balance_from_row,
)
from claimbot.signing import SignatureProvider
from claimbot.tables import TableReader
from claimbot.transaction import TransactionBuilder

log = logging.getLogger("claimbot.tasks")

Sleep = Callable[[float], Awaitable[None]]


class GameTasks:
    """The four per-account tasks.

    Each one reshuffles the endpoint pool, reads fresh state, applies the
    rules and, when there is something to do, waits a random delay and
    submits a single transaction.
    """

    def __init__(
        self,
        config: BotConfig,
        reader: TableReader,
        builder: TransactionBuilder,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self.config = config
        self.reader = reader
        self.builder = builder
        self.clock = clock
        self.sleep = sleep
        self.rng = rng or random.Random()
        self.templates: dict[int, ToolTemplate] = {}

    # =========================================================================
    # Reads
    # =========================================================================

    async def load_templates(self) -> int:
        game = self.config.game_contract
        templates = await self.reader.fetch_parsed(ToolTemplate.from_row, game, "toolsconfig", game, strict=False)
        self.templates = {t.template_id: t for t in templates}
        log.info("Loaded %d tool templates", len(self.templates))
        return len(self.templates)

    async def fetch_account(self, account: str) -> GameAccount:
        game = self.config.game_contract
        log.info("Fetching account %s", account)
        rows = await self.reader.fetch_parsed(GameAccount.from_row, game, "userbalance", game, account, 1)
        if not rows:
            raise AccountNotFound(account)
        return rows[0]

    async def fetch_tools(self, account: str) -> list[Tool]:
        game = self.config.game_contract
        log.info("Fetching tools for account %s", account)
        tools = await self.reader.fetch_parsed(Tool.from_row, game, "tools", game, account, 2)
        return rules.sort_tools(tools)

    async def fetch_wallet(self, account: str) -> list[Asset]:
        log.info("Fetching balances for account %s", account)
        return await self.reader.fetch_parsed(wallet_balance_from_row, self.config.token_contract, "accounts", account)

    async def fetch_fee_config(self) -> FeeConfig:
        game = self.config.game_contract
        log.info("Fetching config table")
        rows = await self.reader.fetch_parsed(FeeConfig.from_row, game, "config", game)
        if not rows:
            raise RowShapeError("config", rows, "config table is empty")
        return rows[0]

    # =========================================================================
    # Submission
    # =========================================================================

    def action_delay(self) -> float:
        return round(self.rng.uniform(self.config.delay_min, self.config.delay_max), 2)

    async def _submit(
        self, task: C.TaskName, account: str, signer: SignatureProvider, actions: list[Action], delay: float
    ) -> TaskReport:
        await self.sleep(delay)
        try:
            txid = await self.builder.submit(account, signer, actions)
        except SubmissionFailure as e:
            log.error("%s %s failed: %s", task, account, e.reason)
            return TaskReport(account, task, C.Outcome.FAILED, actions=actions, error=str(e))
        outcome = C.Outcome.DRY_RUN if txid is None else C.Outcome.SUBMITTED
        return TaskReport(account, task, outcome, actions=actions, transaction_id=txid)

    def _pool_shuffle(self) -> None:
        # spread load; don't always fail over in the same order
        self.reader.pool.shuffle()

    # =========================================================================
    # Tasks
    # =========================================================================

    async def deposit(self, account: str, signer: SignatureProvider) -> TaskReport:
        task = C.TaskName.DEPOSIT
        if not self.config.auto_deposit:
            return TaskReport(account, task, C.Outcome.DISABLED)

        self._pool_shuffle()
        log.info("Task: Depositing Tokens")
        game_account = await self.fetch_account(account)
        wallet = await self.fetch_wallet(account)

        below, deposits = rules.plan_deposit(
            game_account.balances, wallet, self.config.deposit_thresholds, self.config.max_deposit
        )
        if not below:
            log.info("No token deposit is needed %s", ", ".join(map(str, game_account.balances)))
            return TaskReport(account, task, C.Outcome.NOTHING)
        if not deposits:
            log.warning("No token deposit is possible %s", ", ".join(map(str, wallet)))
            return TaskReport(account, task, C.Outcome.NOTHING)

        delay = self.action_delay()
        log.info("\tDepositing %s (after a %ds delay)", ", ".join(map(str, deposits)), round(delay))
        actions = [A.deposit(self.config.token_contract, self.config.game_contract, account, q) for q in deposits]
        return await self._submit(task, account, signer, actions, delay)

    async def repair(self, account: str, signer: SignatureProvider) -> TaskReport:
        task = C.TaskName.REPAIR
        self._pool_shuffle()
        log.info("Task: Repairing Tools")
        await self.fetch_account(account)
        tools = await self.fetch_tools(account)

        repairables = rules.select_repairable(tools, self.templates, self.config.repair_threshold)
        log.info("Found %d tools / %d tools ready to be repaired", len(tools), len(repairables))
        if not repairables:
            return TaskReport(account, task, C.Outcome.NOTHING)

        delay = self.action_delay()
        for tool in repairables:
            template = self.templates[tool.template_id]
            log.info(
                "\tRepairing (%s) (strength %s / %s) (%.2f%%) (after a %ds delay)",
                tool.asset_id, tool.durability, template.init_durability,
                rules.durability_percent(tool, template), round(delay),
            )
        actions = [A.repair(self.config.game_contract, account, t.asset_id) for t in repairables]
        return await self._submit(task, account, signer, actions, delay)

    async def use(self, account: str, signer: SignatureProvider) -> TaskReport:
        task = C.TaskName.USE
        self._pool_shuffle()
        log.info("Task: Using Tools")
        tools = await self.fetch_tools(account)
        log.info("Found %d tools", len(tools))

        now = self.clock()
        ready, skipped = rules.select_usable(tools, self.templates, now)
        for tool, reason in skipped:
            if reason == "cooldown":
                log.info("\tNotice Tool (%s) still in cooldown %s", tool.asset_id, format_remaining(tool.next_mine - now))
            elif reason == "durability":
                template = self.templates[tool.template_id]
                log.warning(
                    "\tTool (%s) does not have enough durability (durability %s / %s)",
                    tool.asset_id, tool.durability, template.init_durability,
                )
            else:
                log.warning("\tTool (%s) has unknown template %s", tool.asset_id, tool.template_id)
        if not ready:
            return TaskReport(account, task, C.Outcome.NOTHING)

        delay = self.action_delay()
        for tool in ready:
            template = self.templates[tool.template_id]
            log.info(
                "\tClaiming with (%s) (durability %s / %s) (%.2f%%) (after a %ds delay)",
                tool.asset_id, tool.durability, template.init_durability,
                rules.durability_percent(tool, template), round(delay),
            )
        actions = [A.claim(self.config.game_contract, account, t.asset_id) for t in ready]
        return await self._submit(task, account, signer, actions, delay)

    async def withdraw(self, account: str, signer: SignatureProvider) -> TaskReport:
        task = C.TaskName.WITHDRAW
        if not self.config.auto_withdraw:
            return TaskReport(account, task, C.Outcome.DISABLED)

        self._pool_shuffle()
        fee_config = await self.fetch_fee_config()
        rules.check_fee(fee_config, self.config.max_fee)

        game_account = await self.fetch_account(account)
        quantities = rules.plan_withdraw(
            game_account.balances, self.config.withdraw_thresholds, self.config.max_withdraw
        )
        if not quantities:
            log.warning("Not enough tokens to auto-withdraw %s", ", ".join(map(str, game_account.balances)))
            return TaskReport(account, task, C.Outcome.NOTHING)

        delay = self.action_delay()
        log.info("\tWithdrawing %s (after a %ds delay)", ", ".join(map(str, quantities)), round(delay))
        action = A.withdraw(self.config.game_contract, account, quantities)
        return await self._submit(task, account, signer, [action], delay)

    def for_name(self, name: C.TaskName) -> Callable[[str, SignatureProvider], Awaitable[TaskReport]]:
        return {
            C.TaskName.DEPOSIT: self.deposit,
            C.TaskName.REPAIR: self.repair,
            C.TaskName.USE: self.use,
            C.TaskName.WITHDRAW: self.withdraw,
        }[name]
