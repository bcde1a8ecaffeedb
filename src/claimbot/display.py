"""Console rendering for the operator: startup banner and per-pass summary."""

from collections.abc import Iterable

from rich.console import Console
from rich.table import Table
from rich.text import Text

import claimbot.constants as C
from claimbot.models import TaskReport

console = Console()

_OUTCOME_STYLE = {
    C.Outcome.SUBMITTED: "green",
    C.Outcome.DRY_RUN: "cyan",
    C.Outcome.NOTHING: "dim",
    C.Outcome.DISABLED: "dim",
    C.Outcome.SKIPPED: "yellow",
    C.Outcome.FAILED: "bold red",
}


def format_remaining(seconds: float) -> str:
    """``3725`` -> ``"01 hours, 02 minutes, 05 seconds"``; zero parts are dropped."""
    diff = max(0, int(seconds))
    hours, rem = divmod(diff, 3600)
    minutes, secs = divmod(rem, 60)
    parts = [
        f"{hours:02d} hours" if hours else None,
        f"{minutes:02d} minutes" if minutes else None,
        f"{secs:02d} seconds" if secs else None,
    ]
    return ", ".join(p for p in parts if p)


def print_banner(accounts: Iterable[str], interval_minutes: float, *, dev_mode: bool = False) -> None:
    names = Text(", ").join(Text(a, style="cyan") for a in accounts)
    console.print(Text.assemble("Diggers World Bot running for ", names))
    console.print(f"Running every {interval_minutes:g} minutes")
    if dev_mode:
        console.print(Text("DEV_MODE: transactions will not be submitted", style="yellow"))
    console.print()


def summary_table(reports: Iterable[TaskReport], title: str = "Pass summary") -> Table:
    table = Table(title=title)
    table.add_column("Account", style="cyan")
    table.add_column("Task")
    table.add_column("Outcome")
    table.add_column("Actions", justify="right")
    table.add_column("Transaction / error", overflow="fold")
    for r in reports:
        detail = r.transaction_id or r.error or ""
        table.add_row(
            r.account,
            str(r.task),
            Text(str(r.outcome), style=_OUTCOME_STYLE.get(r.outcome, "")),
            str(len(r.actions)),
            detail,
        )
    return table


def print_summary(reports: Iterable[TaskReport]) -> None:
    console.print(summary_table(reports))
