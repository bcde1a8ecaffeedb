from typing import Final
from enum import StrEnum

# Game contracts on WAX
GAME_CONTRACT: Final = "diggerswgame"
TOKEN_CONTRACT: Final = "diggerstoken"

WAX_ENDPOINTS: Final = (
    "https://api.wax.greeneosio.com",
    "https://api.waxsweden.org",
    "https://wax.cryptolions.io",
    "https://wax.eu.eosamsterdam.net",
    "https://wax.greymass.com",
    "https://wax.pink.gg",
)


class TaskName(StrEnum):
    DEPOSIT  = "deposit"
    REPAIR   = "repair"
    USE      = "use"
    WITHDRAW = "withdraw"


# Per-account order is fixed: funds are staged before anything consumes them
TASK_ORDER: Final = (TaskName.DEPOSIT, TaskName.REPAIR, TaskName.USE, TaskName.WITHDRAW)


class Outcome(StrEnum):
    SUBMITTED = "SUBMITTED"
    DRY_RUN   = "DRY_RUN"
    NOTHING   = "NOTHING"
    SKIPPED   = "SKIPPED"
    DISABLED  = "DISABLED"
    FAILED    = "FAILED"


PERMISSION: Final = "active"

TABLE_LIMIT = 1000
READ_TIMEOUT = 5.0  # seconds per endpoint attempt
SUBMIT_TIMEOUT = 20.0
EXPIRATION_OFFSET = 3600  # seconds past head block time

TASK_SETTLE_DELAY = 5.0
ACCOUNT_DELAY = (5.0, 15.0)
ACTION_DELAY = (4.0, 10.0)
CHECK_INTERVAL_MINUTES = 15
REPAIR_THRESHOLD = 50.0

__all__ = [
    "ACCOUNT_DELAY",
    "ACTION_DELAY",
    "CHECK_INTERVAL_MINUTES",
    "EXPIRATION_OFFSET",
    "GAME_CONTRACT",
    "PERMISSION",
    "READ_TIMEOUT",
    "REPAIR_THRESHOLD",
    "SUBMIT_TIMEOUT",
    "TABLE_LIMIT",
    "TASK_ORDER",
    "TASK_SETTLE_DELAY",
    "TOKEN_CONTRACT",
    "WAX_ENDPOINTS",

    ######
    "Outcome",
    "TaskName",
]
