"""
Proof-of-work hash oracle.

The digest a miner must push under the mining target:

    sha256(challenge || claimant_payload || nonce)

The claimant's 20-byte address payload is part of the preimage, so a
solution observed in transit is worthless to anyone but the claimant, and a
pool can force its participants to mine under the pool address. Mining
software recomputes exactly this function off-line.
"""

from .hash import sha256
from .addresses import address_payload

DIGEST_SIZE = 32
MAX_NONCE = 2**256 - 1


def nonce_bytes(nonce: int) -> bytes:
    """Encodes a uint256 nonce as 32 big-endian bytes."""
    return nonce.to_bytes(DIGEST_SIZE, 'big')

def challenge_bytes(challenge: str) -> bytes:
    """Decodes a hex challenge number into its 32 raw bytes."""
    raw = bytes.fromhex(challenge)
    if len(raw) != DIGEST_SIZE:
        raise ValueError(f"challenge must be {DIGEST_SIZE} bytes, got {len(raw)}")
    return raw

def mint_digest(nonce: int, claimant: str, challenge: str) -> bytes:
    """
    Computes the proof-of-work digest for a mint attempt.

    Args:
        nonce: uint256 nonce chosen by the miner
        claimant: bech32 address that will be credited
        challenge: challenge number (hex) the nonce was searched against

    Returns:
        32-byte digest
    """
    preimage = challenge_bytes(challenge) + address_payload(claimant) + nonce_bytes(nonce)
    return sha256(preimage)

def digest_to_int(digest: bytes) -> int:
    """Unsigned big-endian value of a digest, the number compared to the target."""
    return int.from_bytes(digest, 'big')
