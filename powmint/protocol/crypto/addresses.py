import bech32 # type: ignore
from .hash import sha256, ripemd160
from typing import Tuple, Optional

DEFAULT_PREFIX = "pow"
PAYLOAD_SIZE = 20


def address_from_payload(h20: bytes, prefix: str = DEFAULT_PREFIX) -> str:
    """Encodes a 20-byte payload as a Bech32 address."""
    if len(h20) != PAYLOAD_SIZE:
        raise ValueError(f"address payload must be {PAYLOAD_SIZE} bytes")

    # Convert to 5-bit words
    five_bit_r = bech32.convertbits(h20, 8, 5)
    if five_bit_r is None:
        raise ValueError("Error converting to bech32 words")

    return bech32.bech32_encode(prefix, five_bit_r)

def address_from_pubkey(pub_bytes: bytes, prefix: str = DEFAULT_PREFIX) -> str:
    """Creates Bech32 address from public key."""
    sha = sha256(pub_bytes)
    h20 = ripemd160(sha) # 20 bytes
    return address_from_payload(h20, prefix)

def decode_address(addr: str) -> Tuple[str, bytes]:
    """Decodes Bech32 address to (prefix, h20_bytes)."""
    hrp, data = bech32.bech32_decode(addr)
    if hrp is None or data is None:
        raise ValueError("Invalid bech32 address")

    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None:
        raise ValueError("Error converting from bech32 words")
    if len(decoded) != PAYLOAD_SIZE:
        raise ValueError(f"Invalid address payload length: {len(decoded)}")

    return hrp, bytes(decoded)

def address_payload(addr: str) -> bytes:
    """The 20 bytes an address stands for (what enters digests and signatures)."""
    _, h20 = decode_address(addr)
    return h20

def is_valid_address(addr: str, expected_prefix: Optional[str] = None) -> bool:
    try:
        hrp, _ = decode_address(addr)
        if expected_prefix and hrp != expected_prefix:
            return False
        return True
    except ValueError:
        return False

def is_null_address(addr: str) -> bool:
    """True for the all-zero identity, or for anything that does not decode."""
    try:
        return address_payload(addr) == b'\x00' * PAYLOAD_SIZE
    except ValueError:
        return True

NULL_ADDRESS = address_from_payload(b'\x00' * PAYLOAD_SIZE)
