"""Signature providers.

Key parsing, public key derivation and canonical ``SIG_K1_`` signatures are
eospy's; this module only adapts them to the provider interface the
transaction builder expects.
"""

from dataclasses import dataclass
from typing import Protocol

from eospy.keys import EOSKey
from eospy.utils import sig_digest

from claimbot.errors import InvalidCredential
from claimbot.models import Credential


@dataclass(frozen=True, slots=True)
class SigningRequest:
    chain_id: str
    serialized_transaction: bytes
    required_keys: tuple[str, ...]

    @property
    def digest(self) -> str:
        """Hex sha256 of chain id, packed transaction and empty context-free data."""
        return sig_digest(self.serialized_transaction, self.chain_id)


class SignatureProvider(Protocol):
    def public_keys(self) -> list[str]: ...
    def sign(self, request: SigningRequest) -> list[str]: ...


class KeySigner:
    """In-memory signature provider holding one or more private keys (WIF or ``PVT_K1_``)."""

    def __init__(self, *private_keys: str):
        keys = [EOSKey(p.strip()) for p in private_keys]
        self._keys: dict[str, EOSKey] = {k.to_public(): k for k in keys}

    def __repr__(self) -> str:
        return f"KeySigner(public_keys={self.public_keys()!r})"

    def public_keys(self) -> list[str]:
        return list(self._keys)

    def sign(self, request: SigningRequest) -> list[str]:
        missing = [k for k in request.required_keys if k not in self._keys]
        if missing:
            raise ValueError(f"no private key for {', '.join(missing)}")
        digest = request.digest
        return [self._keys[k].sign(digest) for k in request.required_keys]


def signer_for(credential: Credential) -> KeySigner:
    """Validate a credential's key up front; raise InvalidCredential if malformed."""
    if not credential.private_key.strip():
        raise InvalidCredential(credential.name, "private key is empty")
    try:
        return KeySigner(credential.private_key)
    # bad checksums and encodings: ValueError; out-of-range secrets: AssertionError
    except (ValueError, TypeError, AssertionError) as e:
        raise InvalidCredential(credential.name, f"private key is not a valid EOS key ({e})") from e
