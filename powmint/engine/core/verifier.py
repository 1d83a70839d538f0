# MIT License
# Copyright (c) 2025 Hashborn

from typing import Optional
from ...protocol.crypto.pow import mint_digest, digest_to_int
from ...protocol.types.mint import SolutionAttempt
from .state import EngineState, RetiredChallenge


class SolutionVerifier:
    """
    Checks nonces against the engine's current challenge and target.

    Read-only: never raises for a wrong nonce and never touches state.
    """

    @staticmethod
    def meets_target(attempt: SolutionAttempt, target: int) -> bool:
        digest = mint_digest(attempt.nonce, attempt.claimant, attempt.challenge)
        return digest_to_int(digest) <= target

    def verify(self, nonce: int, claimant: str, state: EngineState) -> bool:
        """True iff digest(nonce, claimant, state.challenge) <= state.target."""
        attempt = SolutionAttempt(nonce=nonce, claimant=claimant, challenge=state.challenge)
        return self.meets_target(attempt, state.target)

    def solved_retired(self, nonce: int, claimant: str, state: EngineState) -> Optional[RetiredChallenge]:
        """
        Finds a recently rotated-away challenge this nonce would have solved.

        Used only to tell a late racer apart from a plain wrong answer.
        """
        for retired in state.retired_challenges:
            attempt = SolutionAttempt(nonce=nonce, claimant=claimant, challenge=retired.challenge)
            if self.meets_target(attempt, retired.target):
                return retired
        return None
