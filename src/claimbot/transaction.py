import hashlib
import logging
from dataclasses import dataclass

import claimbot.constants as C
from claimbot.abi import pack_transaction
from claimbot.endpoints import EndpointPool
from claimbot.errors import SubmissionFailure
from claimbot.models import Action, ChainInfo, TransactionRequest
from claimbot.rpc import ChainClient
from claimbot.signing import KeySigner, SignatureProvider, SigningRequest

log = logging.getLogger("claimbot.txn")


@dataclass(slots=True)
class SignedTransaction:
    account: str
    endpoint: str
    request: TransactionRequest
    packed_trx: bytes
    signatures: list[str]

    @property
    def local_id(self) -> str:
        return hashlib.sha256(self.packed_trx).hexdigest()


class TransactionBuilder:
    def __init__(
        self,
        client: ChainClient,
        pool: EndpointPool,
        *,
        dev_mode: bool = False,
        expire_in: int = C.EXPIRATION_OFFSET,
    ):
        self.client = client
        self.pool = pool
        self.dev_mode = dev_mode
        self.expire_in = expire_in

    @staticmethod
    def check_authorization(account: str, actions: list[Action]) -> None:
        for a in actions:
            if not a.authorization or a.actors != {account}:
                raise SubmissionFailure(account, f"{a.account}::{a.name} is not authorized by {account} alone")

    async def build_and_sign(
        self, endpoint: str, account: str, signer: SignatureProvider, actions: list[Action]
    ) -> SignedTransaction:
        # Fresh reference block for every transaction; never reuse a ChainInfo
        info = ChainInfo.from_info_result(await self.client.get_info(endpoint))
        request = TransactionRequest.from_chain_info(info, actions, expire_in=self.expire_in)

        # payloads are encoded by the same node that will receive the push
        action_data = [
            await self.client.abi_json_to_bin(endpoint, code=a.account, action=a.name, args=a.data) for a in actions
        ]
        packed = pack_transaction(request, action_data)

        signatures = signer.sign(
            SigningRequest(
                chain_id=info.chain_id,
                serialized_transaction=packed,
                required_keys=tuple(signer.public_keys()),
            )
        )
        log.debug(
            "Signed %s: ref_block_num=%s ref_block_prefix=%s expiration=%s",
            account, request.ref_block_num, request.ref_block_prefix, request.expiration.isoformat(),
        )
        return SignedTransaction(
            account=account, endpoint=endpoint, request=request, packed_trx=packed, signatures=signatures
        )

    async def submit(self, account: str, signer: SignatureProvider | str, actions: list[Action]) -> str | None:
        """Build, sign and push one transaction to one randomly chosen endpoint.

        Returns the transaction id, or None in dev mode. Any failure raises
        SubmissionFailure; nothing is retried here because a push whose
        delivery is unknown may already have landed.
        """
        if not actions:
            return None
        self.check_authorization(account, actions)

        if self.dev_mode:
            log.info("DEV_MODE: not submitting %s for %s", ", ".join(f"{a.account}::{a.name}" for a in actions), account)
            return None

        endpoint = self.pool.sample()
        try:
            if isinstance(signer, str):
                signer = KeySigner(signer)
            signed = await self.build_and_sign(endpoint, account, signer, actions)
            res = await self.client.push_transaction(endpoint, signatures=signed.signatures, packed_trx=signed.packed_trx)
        except SubmissionFailure:
            raise
        except Exception as e:
            raise SubmissionFailure(account, f"{e.__class__.__name__}: {e}", endpoint=endpoint) from e

        txid = res.get("transaction_id")
        if not isinstance(txid, str) or not txid:
            raise SubmissionFailure(account, f"no transaction id in response: {res!r}", endpoint=endpoint)
        if txid != signed.local_id:
            log.warning("Server transaction id %s differs from local id %s", txid, signed.local_id)
        log.info("%s pushed %s via %s", account, txid, endpoint)
        return txid
