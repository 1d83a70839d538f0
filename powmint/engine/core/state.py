from pydantic import BaseModel, Field
from typing import List
from ...protocol.config.params import EngineConfig


class RetiredChallenge(BaseModel):
    challenge: str
    target: int
    epoch: int

class EngineState(BaseModel):
    """
    Everything the engine knows between two submissions.

    A committed EngineState is never mutated; each phase returns a modified
    copy and the coordinator swaps the reference when the whole submission
    succeeds.
    """
    challenge: str
    target: int
    epoch: int = 0
    reward_era: int = 0
    last_reward: int = 0
    tokens_minted: int = 0

    last_adjustment_epoch: int = 0
    last_adjustment_time: float = 0.0

    # Most recent first
    retired_challenges: List[RetiredChallenge] = Field(default_factory=list)

    @classmethod
    def genesis(cls, config: EngineConfig, challenge: str, now: float) -> 'EngineState':
        return cls(
            challenge=challenge,
            target=config.initial_target,
            last_adjustment_time=now,
        )

    def clone(self) -> 'EngineState':
        """Deep copy, safe to modify without touching the committed state."""
        return self.model_copy(deep=True)


class EpochLedger:
    """Epoch counter and challenge history bookkeeping."""

    def __init__(self, retired_history: int):
        self.retired_history = retired_history

    def advance(self, state: EngineState, reward: int) -> EngineState:
        """Closes the current epoch. Called exactly once per accepted solution."""
        new_state = state.clone()
        new_state.epoch = state.epoch + 1
        new_state.last_reward = reward
        return new_state

    def retire(self, state: EngineState, new_challenge: str) -> EngineState:
        """Installs new_challenge and remembers the one it replaces."""
        new_state = state.clone()
        if self.retired_history > 0:
            retired = RetiredChallenge(challenge=state.challenge, target=state.target, epoch=state.epoch)
            new_state.retired_challenges = [retired] + state.retired_challenges[:self.retired_history - 1]
        new_state.challenge = new_challenge
        return new_state
