"""Transaction packing.

Action payloads are encoded from the contract ABI by the node
(``abi_json_to_bin``); the envelope around them is packed locally with eospy,
so the signature covers exactly the bytes that get pushed.
"""

from eospy.types import Transaction

from claimbot.models import TransactionRequest


def _eospy_transaction(request: TransactionRequest, action_data: list[str]) -> dict:
    # resource limits, delay and extensions are left to eospy defaults (all zero)
    return {
        "expiration": str(request.expiration),
        "ref_block_num": request.ref_block_num,
        "ref_block_prefix": request.ref_block_prefix,
        "actions": [a.to_dict() | {"data": data} for a, data in zip(request.actions, action_data, strict=True)],
    }


def pack_transaction(request: TransactionRequest, action_data: list[str]) -> bytes:
    """Serialize ``request`` with the hex-encoded ``action_data`` of each action, in order."""
    trx = Transaction(
        _eospy_transaction(request, action_data),
        # only consulted for fields missing from the dict; kept consistent with it
        {"last_irreversible_block_num": request.ref_block_num},
        {"ref_block_prefix": request.ref_block_prefix},
    )
    return bytes(trx.encode())
