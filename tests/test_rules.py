from decimal import Decimal

import pytest

from claimbot import rules
from claimbot.errors import FeeExceedsPolicy, RowShapeError
from claimbot.models import Asset, FeeConfig, GameAccount, Tool, ToolTemplate, parse_asset_list

TEMPLATES = {10: ToolTemplate(template_id=10, init_durability=100, durability_consume=5)}
NOW = 1_700_000_000


def tool(asset_id=1, durability=100, next_mine=0, template_id=10):
    return Tool(asset_id=asset_id, template_id=template_id, durability=durability, ready_at=0, next_mine=next_mine)


def assets(text):
    return parse_asset_list(text)


def test_repair_below_threshold_only():
    worn, fine = tool(1, durability=30), tool(2, durability=60)
    assert rules.select_repairable([worn, fine], TEMPLATES, 50) == [worn]


def test_repair_skips_unknown_template():
    assert rules.select_repairable([tool(template_id=99, durability=1)], TEMPLATES, 50) == []


def test_use_skips_cooldown():
    waiting, ready = tool(1, next_mine=NOW + 600), tool(2, next_mine=NOW - 1)
    usable, skipped = rules.select_usable([waiting, ready], TEMPLATES, NOW)
    assert usable == [ready]
    assert skipped == [(waiting, "cooldown")]


def test_use_skips_worn_out_tool():
    usable, skipped = rules.select_usable([tool(durability=4)], TEMPLATES, NOW)
    assert usable == []
    assert skipped[0][1] == "durability"


def test_tools_sorted_by_template_then_ready_time():
    a = Tool(1, 20, 100, 5, 0)
    b = Tool(2, 10, 100, 9, 0)
    c = Tool(3, 10, 100, 1, 0)
    assert rules.sort_tools([a, b, c]) == [c, b, a]


def test_withdraw_is_capped():
    planned = rules.plan_withdraw([Asset.parse("120.0000 SYM")], assets("100 SYM"), assets("50 SYM"))
    assert [str(q) for q in planned] == ["50.0000 SYM"]


def test_withdraw_below_threshold():
    assert rules.plan_withdraw([Asset.parse("99.9999 SYM")], assets("100 SYM"), {}) == []


def test_withdraw_ignores_unconfigured_symbols():
    planned = rules.plan_withdraw(
        [Asset.parse("500.0000 ABC"), Asset.parse("150.0000 SYM")], assets("100 SYM"), {}
    )
    assert [str(q) for q in planned] == ["150.0000 SYM"]


def test_deposit_tops_up_from_wallet():
    below, deposits = rules.plan_deposit(
        [Asset.parse("10.0000 SYM"), Asset.parse("500.0000 ABC")],
        [Asset.parse("80.0000 SYM"), Asset.parse("5.0000 ABC")],
        assets("50 SYM, 100 ABC"),
        assets("25 SYM"),
    )
    assert [str(b) for b in below] == ["10.0000 SYM"]
    assert [str(d) for d in deposits] == ["25.0000 SYM"]


def test_deposit_needs_wallet_funds():
    below, deposits = rules.plan_deposit(
        [Asset.parse("10.0000 SYM")], [Asset.parse("0.0000 SYM")], assets("50 SYM"), {}
    )
    assert len(below) == 1
    assert deposits == []


@pytest.mark.parametrize(
    "policy, fee, ok",
    [
        (None, 9.0, True),
        (5.0, 5.0, True),
        (5.0, 5.5, False),
        ("min_fee", 1.0, True),
        ("min_fee", 3.0, False),
    ],
)
def test_fee_policy(policy, fee, ok):
    config = FeeConfig(min_fee=1.0, fee=fee)
    if ok:
        rules.check_fee(config, policy)
    else:
        with pytest.raises(FeeExceedsPolicy):
            rules.check_fee(config, policy)


def test_asset_parse_keeps_precision():
    a = Asset.parse("1.50 WAX")
    assert a.amount == Decimal("1.50")
    assert a.precision == 2
    assert str(a.with_amount(Decimal("3"))) == "3.00 WAX"


def test_row_parsing():
    t = Tool.from_row({"asset_id": "1099511627776", "template_id": 10, "durability": 40,
                       "ready_at": 0, "next_mine": "2024-05-01T12:00:00"})
    assert t.asset_id == 1099511627776
    assert t.next_mine == 1714564800

    acct = GameAccount.from_row({"account": "alice", "balance": ["1.0000 DWG", "2.0000 DWD"]})
    assert [str(b) for b in acct.balances] == ["1.0000 DWG", "2.0000 DWD"]


@pytest.mark.parametrize(
    "row",
    [
        {"template_id": 10, "durability": 40},
        {"asset_id": 1, "template_id": "x", "durability": 40},
        ["not", "a", "row"],
    ],
)
def test_bad_tool_rows(row):
    with pytest.raises(RowShapeError):
        Tool.from_row(row)


def test_template_with_zero_durability_is_rejected():
    with pytest.raises(RowShapeError):
        ToolTemplate.from_row({"template_id": 1, "init_durability": 0, "durability_consume": 1})
