from ecdsa import SigningKey, VerifyingKey, SECP256k1 # type: ignore
from ecdsa.util import sigencode_string, sigdecode_string # type: ignore
import hashlib
import os
from typing import Optional

SIGNATURE_SIZE = 64
RECOVERABLE_SIGNATURE_SIZE = 65


def generate_private_key() -> bytes:
    """Generates a random 32-byte private key."""
    return os.urandom(32)

def public_key_from_private(priv_bytes: bytes) -> bytes:
    """Returns compressed 33-byte public key from private key."""
    sk = SigningKey.from_string(priv_bytes, curve=SECP256k1)
    vk = sk.get_verifying_key()
    return vk.to_string("compressed")

def sign_recoverable(message_hash: bytes, priv_bytes: bytes) -> bytes:
    """
    Signs a message hash and appends the recovery index.

    Returns 65 bytes: r (32) || s (32) || v (1), where v is the position of
    the signer's key among the candidates public-key recovery yields.
    """
    sk = SigningKey.from_string(priv_bytes, curve=SECP256k1)
    signature = sk.sign_digest_deterministic(message_hash, hashfunc=hashlib.sha256, sigencode=sigencode_string)
    own_key = sk.get_verifying_key().to_string("compressed")

    candidates = VerifyingKey.from_public_key_recovery_with_digest(
        signature, message_hash, SECP256k1, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
    )
    for v, candidate in enumerate(candidates):
        if candidate.to_string("compressed") == own_key:
            return signature + bytes([v])

    raise ValueError("Signing key not among recovered candidates")

def recover_public_key(message_hash: bytes, signature: bytes) -> Optional[bytes]:
    """
    Recovers the compressed public key that produced a 65-byte signature.

    Returns None for malformed or unrecoverable signatures.
    """
    if len(signature) != RECOVERABLE_SIGNATURE_SIZE:
        return None

    v = signature[SIGNATURE_SIZE]
    try:
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            signature[:SIGNATURE_SIZE], message_hash, SECP256k1,
            hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )
    except Exception:
        return None

    if v >= len(candidates):
        return None
    return candidates[v].to_string("compressed")
