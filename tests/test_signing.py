import hashlib

import base58
import pytest
from Crypto.Hash import RIPEMD160
from eospy.keys import EOSKey

from claimbot.errors import InvalidCredential
from claimbot.models import Credential
from claimbot.signing import KeySigner, SigningRequest, signer_for

from conftest import DEV_KEY, DEV_PUB, WAX_CHAIN_ID


def pvt_k1(wif: str) -> str:
    secret = base58.b58decode_check(wif)[1:]
    checksum = RIPEMD160.new(secret + b"K1").digest()[:4]
    return "PVT_K1_" + base58.b58encode(secret + checksum).decode()


def test_public_key_from_wif():
    assert KeySigner(DEV_KEY).public_keys() == [DEV_PUB]


def test_public_key_from_pvt_k1():
    assert signer_for(Credential(name="alice", private_key=pvt_k1(DEV_KEY))).public_keys() == [DEV_PUB]


def test_repr_hides_the_secret():
    assert DEV_KEY not in repr(KeySigner(DEV_KEY))
    assert DEV_KEY not in repr(Credential(name="alice", private_key=DEV_KEY))


def test_signing_request_digest():
    packed = b"\x01\x02\x03"
    request = SigningRequest(chain_id=WAX_CHAIN_ID, serialized_transaction=packed, required_keys=(DEV_PUB,))
    expected = hashlib.sha256(bytes.fromhex(WAX_CHAIN_ID) + packed + bytes(32)).hexdigest()
    assert request.digest == expected


def test_signer_signs_for_required_keys():
    signer = KeySigner(DEV_KEY)
    request = SigningRequest(chain_id=WAX_CHAIN_ID, serialized_transaction=b"trx", required_keys=(DEV_PUB,))
    [sig] = signer.sign(request)

    assert sig.startswith("SIG_K1_")
    assert EOSKey(DEV_KEY).verify(sig, request.digest)
    # deterministic (RFC 6979)
    assert signer.sign(request) == [sig]


def test_signer_refuses_unknown_key():
    signer = KeySigner(DEV_KEY)
    request = SigningRequest(chain_id=WAX_CHAIN_ID, serialized_transaction=b"trx", required_keys=("EOSnotmine",))
    with pytest.raises(ValueError):
        signer.sign(request)


@pytest.mark.parametrize("bad", ["not-a-key", "", DEV_KEY[:-1] + "4", "PVT_K1_abc"])
def test_malformed_keys_are_invalid_credentials(bad):
    with pytest.raises(InvalidCredential) as exc:
        signer_for(Credential(name="bob", private_key=bad))
    assert exc.value.account == "bob"
