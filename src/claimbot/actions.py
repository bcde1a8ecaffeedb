from claimbot.models import Action, Asset


def claim(contract: str, account: str, asset_id: int) -> Action:
    return Action.for_account(contract, "safemine", account, {"asset_id": asset_id, "asset_owner": account})


def repair(contract: str, account: str, asset_id: int) -> Action:
    return Action.for_account(contract, "trepair", account, {"asset_owner": account, "asset_id": asset_id})


def withdraw(contract: str, account: str, quantities: list[Asset]) -> Action:
    return Action.for_account(contract, "withdraw", account, {"owner": account, "quantities": [str(q) for q in quantities]})


def deposit(token_contract: str, game_contract: str, account: str, quantity: Asset) -> Action:
    return Action.for_account(
        token_contract,
        "transfer",
        account,
        {"from": account, "to": game_contract, "quantity": str(quantity), "memo": "deposit"},
    )
