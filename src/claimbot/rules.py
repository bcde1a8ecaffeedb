"""Game rules: which tools to repair or use, what to deposit or withdraw.

Pure functions over parsed rows; nothing in here touches the network.
"""

import logging
from collections.abc import Iterable, Mapping

from claimbot.errors import FeeExceedsPolicy
from claimbot.models import Asset, FeeConfig, Tool, ToolTemplate

log = logging.getLogger("claimbot.rules")


def sort_tools(tools: Iterable[Tool]) -> list[Tool]:
    return sorted(tools, key=lambda t: (t.template_id, t.ready_at))


def durability_percent(tool: Tool, template: ToolTemplate) -> float:
    return 100 * (tool.durability / template.init_durability)


def select_repairable(
    tools: Iterable[Tool], templates: Mapping[int, ToolTemplate], threshold: float
) -> list[Tool]:
    out = []
    for tool in tools:
        template = templates.get(tool.template_id)
        if template is None:
            log.warning("Tool %s has unknown template %s, skipping", tool.asset_id, tool.template_id)
            continue
        if durability_percent(tool, template) < threshold:
            out.append(tool)
    return out


def select_usable(
    tools: Iterable[Tool], templates: Mapping[int, ToolTemplate], now: float
) -> tuple[list[Tool], list[tuple[Tool, str]]]:
    """Split tools into ready-to-use and skipped, with the reason for each skip.

    ``now`` is wall-clock epoch seconds at decision time.
    """
    ready: list[Tool] = []
    skipped: list[tuple[Tool, str]] = []
    for tool in tools:
        template = templates.get(tool.template_id)
        if template is None:
            skipped.append((tool, "unknown template"))
        elif tool.next_mine > now:
            skipped.append((tool, "cooldown"))
        elif template.durability_consume > tool.durability:
            skipped.append((tool, "durability"))
        else:
            ready.append(tool)
    return ready, skipped


def _cap(asset: Asset, caps: Mapping[str, Asset]) -> Asset:
    cap = caps.get(asset.symbol)
    if cap is not None and cap.amount > 0 and cap.amount < asset.amount:
        return asset.with_amount(cap.amount)
    return asset


def plan_withdraw(
    balances: Iterable[Asset], thresholds: Mapping[str, Asset], caps: Mapping[str, Asset]
) -> list[Asset]:
    """Balances at or over their threshold, each capped at its maximum."""
    out = []
    for b in balances:
        threshold = thresholds.get(b.symbol)
        if threshold is None or b.amount < threshold.amount:
            continue
        out.append(_cap(b, caps))
    return out


def plan_deposit(
    game_balances: Iterable[Asset],
    wallet_balances: Iterable[Asset],
    thresholds: Mapping[str, Asset],
    caps: Mapping[str, Asset],
) -> tuple[list[Asset], list[Asset]]:
    """Return ``(below_threshold, deposits)``.

    A token needs topping up when its in-game balance is under the threshold;
    it can only be deposited if the wallet holds a positive amount of it.
    """
    below = [
        g for g in game_balances
        if g.symbol in thresholds and g.amount < thresholds[g.symbol].amount
    ]
    wallet = {w.symbol: w for w in wallet_balances}
    deposits = [
        _cap(wallet[g.symbol], caps)
        for g in below
        if g.symbol in wallet and wallet[g.symbol].amount > 0
    ]
    return below, deposits


def max_fee_allowed(policy: float | str | None, config: FeeConfig) -> float | None:
    if policy is None:
        return None
    if policy == "min_fee":
        return config.min_fee
    return float(policy)


def check_fee(config: FeeConfig, policy: float | str | None) -> None:
    limit = max_fee_allowed(policy, config)
    if limit is not None and config.fee > limit:
        raise FeeExceedsPolicy(config.fee, limit)
