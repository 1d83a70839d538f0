"""
Difficulty control loop.

Every `adjustment_interval` epochs the mining target is nudged toward the
rate that would have produced those epochs in exactly
`adjustment_interval * target_epoch_seconds` seconds:

- solutions came faster than desired -> target goes down (harder)
- solutions came slower than desired -> target goes up (easier)

The step is proportional to the miss, capped at `max_adjustment_pct`
(in units of 1/2000 of the target, so 1000 means at most 50%), and the
result is clamped to [min_target, max_target].

Everything here is integer arithmetic on observable state plus the caller's
clock reading, so any third party can replay the target trajectory.
"""

import logging
from ...protocol.config.params import EngineConfig
from .state import EngineState

logger = logging.getLogger(__name__)

ADJUSTMENT_DENOMINATOR = 2000


class DifficultyController:
    def __init__(self, config: EngineConfig):
        self.config = config

    def is_due(self, state: EngineState) -> bool:
        return state.epoch - state.last_adjustment_epoch >= self.config.adjustment_interval

    def compute_target(self, target: int, epochs_mined: int, elapsed: float) -> int:
        """
        Proportional readjustment, before clamping to the configured bounds.

        Args:
            target: Current mining target
            epochs_mined: Epochs closed since the previous readjustment
            elapsed: Seconds those epochs took

        Returns:
            New raw target
        """
        expected = epochs_mined * self.config.target_epoch_seconds
        elapsed = max(1, int(elapsed))
        step = target // ADJUSTMENT_DENOMINATOR

        if elapsed < expected:
            excess_pct = min(expected * 100 // elapsed - 100, self.config.max_adjustment_pct)
            return target - step * excess_pct

        shortage_pct = min(elapsed * 100 // expected - 100, self.config.max_adjustment_pct)
        return target + step * shortage_pct

    def clamp(self, target: int) -> int:
        return max(self.config.min_target, min(self.config.max_target, target))

    def maybe_adjust(self, state: EngineState, now: float) -> EngineState:
        """
        Readjusts the target if this epoch closes an adjustment interval.

        Returns:
            The same state object when no readjustment is due, otherwise a
            copy with the new target and refreshed adjustment markers.
        """
        if not self.is_due(state):
            return state

        epochs_mined = state.epoch - state.last_adjustment_epoch
        elapsed = now - state.last_adjustment_time
        raw_target = self.compute_target(state.target, epochs_mined, elapsed)
        new_target = self.clamp(raw_target)

        logger.info(
            f"Difficulty readjustment at epoch {state.epoch}: {epochs_mined} epochs in "
            f"{elapsed:.1f}s (wanted {epochs_mined * self.config.target_epoch_seconds}s), "
            f"target {state.target:#x} -> {new_target:#x}"
        )

        new_state = state.clone()
        new_state.target = new_target
        new_state.last_adjustment_epoch = state.epoch
        new_state.last_adjustment_time = now
        return new_state
