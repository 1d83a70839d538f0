"""
Challenge rotation.

A fresh challenge is derived after every accepted solution from a beacon
value observed at that moment (e.g. the hash of the latest finalized block of
an external chain) chained with the challenge it replaces. Miners cannot
start on epoch N+1 before epoch N closes, and once the beacon value is
observed it cannot be changed.

If the beacon cannot be read the rotation fails and the whole submission is
rejected; a stale challenge is never reused.
"""

import logging
import secrets
from typing import Iterable, Optional
import requests
from ...protocol.crypto.hash import sha256_hex
from ...protocol.types.common import ChallengeUnavailable
from .state import EngineState

logger = logging.getLogger(__name__)


class ChallengeSource:
    """External, unpredictable and immutable-once-observed entropy."""

    def observe(self) -> str:
        """Returns the current beacon value as hex. Raises ChallengeUnavailable."""
        raise NotImplementedError


class RandomBeacon(ChallengeSource):
    """Local randomness. For devnet and tests only."""

    def observe(self) -> str:
        return secrets.token_hex(32)


class FixedSequenceBeacon(ChallengeSource):
    """Replays recorded beacon values, e.g. to audit a past run."""

    def __init__(self, values: Iterable[str]):
        self._values = iter(list(values))

    def observe(self) -> str:
        try:
            return next(self._values)
        except StopIteration:
            raise ChallengeUnavailable("Beacon sequence exhausted")


class RpcBlockBeacon(ChallengeSource):
    """
    Uses the last finalized block hash reported by a node's /status endpoint.
    """

    def __init__(self, node_url: str, timeout: float = 5.0):
        self.node_url = node_url.rstrip("/")
        self.timeout = timeout

    def observe(self) -> str:
        try:
            resp = requests.get(f"{self.node_url}/status", timeout=self.timeout)
            resp.raise_for_status()
            block_hash = resp.json().get("last_hash")
        except (requests.RequestException, ValueError) as e:
            raise ChallengeUnavailable(f"Beacon node unreachable: {e}")

        if not block_hash:
            raise ChallengeUnavailable("Beacon node reported no finalized block")
        return block_hash


class ChallengeRotator:
    def __init__(self, source: Optional[ChallengeSource] = None):
        self.source = source or RandomBeacon()

    def observe(self) -> str:
        try:
            value = self.source.observe()
        except ChallengeUnavailable:
            raise
        except Exception as e:
            raise ChallengeUnavailable(f"Challenge source failed: {e}")

        if not value:
            raise ChallengeUnavailable("Challenge source returned nothing")
        try:
            bytes.fromhex(value)
        except ValueError:
            raise ChallengeUnavailable(f"Challenge source returned non-hex value: {value!r}")
        return value

    def next_challenge(self, state: EngineState, context: str) -> str:
        """
        Derives the challenge for the next epoch.

        sha256(beacon || previous_challenge || epoch)

        Args:
            state: State whose challenge is being replaced
            context: Beacon value (hex) observed for this rotation

        Raises:
            ChallengeUnavailable: derived value collides with a live or retired challenge
        """
        preimage = bytes.fromhex(context) + bytes.fromhex(state.challenge) + state.epoch.to_bytes(8, 'big')
        challenge = sha256_hex(preimage)

        used = {state.challenge} | {r.challenge for r in state.retired_challenges}
        if challenge in used:
            raise ChallengeUnavailable(f"Derived challenge {challenge[:16]} was already used")
        return challenge

    def genesis_challenge(self) -> str:
        return sha256_hex(bytes.fromhex(self.observe()))
