"""
Delegated (relayed) minting.

A solver who does not want to pay for submission signs

    sha256("powmint-delegated-mint" || sha256(engine_id) || nonce || origin)

off-line and hands (nonce, origin, signature) to any relayer. The engine
recovers the signer from the signature and credits the origin, never the
relayer. The engine id is part of the signed payload, so a packet cannot be
replayed on another deployment that happens to share a challenge schedule.

Flow:
1. Solver finds nonce with digest(nonce, origin, challenge) <= target
2. Solver signs the binding digest (65 bytes, r || s || v)
3. Relayer calls delegated_mint(nonce, origin, signature)
4. Engine recovers signer == origin, then mints with claimant = origin
"""

import logging
from typing import Optional
from ...protocol.crypto.hash import sha256
from ...protocol.crypto.pow import nonce_bytes, MAX_NONCE
from ...protocol.crypto.keys import sign_recoverable, recover_public_key, public_key_from_private
from ...protocol.crypto.addresses import (
    address_from_payload, address_from_pubkey, address_payload, decode_address,
    is_null_address, DEFAULT_PREFIX,
)
from ...protocol.types.common import SignatureMismatch, InvalidOrigin, ValidationError, MintError
from ...protocol.types.mint import MintPacket
from ..core.coordinator import MintCoordinator
from ..observability.metrics import record_rejection

logger = logging.getLogger(__name__)

DOMAIN_TAG = b"powmint-delegated-mint"


def binding_digest(nonce: int, origin: str, engine_id: str) -> bytes:
    """The 32-byte message a solver signs to authorize a relayed mint."""
    return sha256(DOMAIN_TAG + sha256(engine_id.encode("utf-8")) + nonce_bytes(nonce) + address_payload(origin))


def sign_mint_packet(nonce: int, priv_key: bytes, engine_id: str, prefix: str = DEFAULT_PREFIX) -> MintPacket:
    """Builds a MintPacket for the address owned by priv_key."""
    origin = address_from_pubkey(public_key_from_private(priv_key), prefix=prefix)
    signature = sign_recoverable(binding_digest(nonce, origin, engine_id), priv_key)
    return MintPacket(nonce=nonce, origin=origin, signature=signature.hex())


class DelegatedMintAuthorizer:
    def __init__(self, engine: MintCoordinator):
        self.engine = engine

    def recover_signer(self, nonce: int, origin: str, signature: bytes) -> Optional[str]:
        """Address that produced `signature` over (nonce, origin), or None."""
        pub = recover_public_key(binding_digest(nonce, origin, self.engine.engine_id), signature)
        if pub is None:
            return None
        return address_from_pubkey(pub, prefix=self.engine.config.address_prefix)

    def authorize(self, packet: MintPacket) -> str:
        """
        Authenticates a packet and returns the address to credit.

        Raises:
            InvalidOrigin: null origin, or no signer could be recovered
            SignatureMismatch: the recovered signer is not the origin
        """
        if not 0 <= packet.nonce <= MAX_NONCE:
            raise ValidationError("nonce must be a uint256")
        try:
            prefix, payload = decode_address(packet.origin)
        except ValueError as e:
            raise ValidationError(f"Invalid origin address: {e}")
        origin = address_from_payload(payload, prefix)
        if is_null_address(origin):
            raise InvalidOrigin("Origin is the null address")

        try:
            signature = bytes.fromhex(packet.signature)
        except ValueError:
            raise InvalidOrigin("Signature is not hex")

        signer = self.recover_signer(packet.nonce, origin, signature)
        if signer is None or is_null_address(signer):
            raise InvalidOrigin("Could not recover a signer from the signature")
        if signer != origin:
            raise SignatureMismatch(f"Packet signed by {signer}, not by origin {origin}")
        return signer

    def delegated_mint(self, nonce: int, origin: str, signature: str, relayer: Optional[str] = None) -> bool:
        """
        Relayed mint. The origin is credited; `relayer` is only logged.

        Returns False for a wrong or late nonce, raises for authentication
        failures and the other hard rejections.
        """
        packet = MintPacket(nonce=nonce, origin=origin, signature=signature)
        try:
            claimant = self.authorize(packet)
        except MintError as e:
            record_rejection(self.engine.engine_id, e.reason.value)
            logger.warning(f"Delegated mint from relayer {relayer} refused: {e.reason.value}: {e}")
            raise

        if relayer:
            logger.info(f"Relaying mint for {claimant} via {relayer}")
        return self.engine.mint(nonce, claimant)
