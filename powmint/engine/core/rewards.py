import logging
from ...protocol.config.economic_model import EconomicConfig, ECONOMIC_CONFIG, REWARD_POLICY_HALVING
from ...protocol.types.common import SupplyExhausted
from .state import EngineState

logger = logging.getLogger(__name__)


class RewardSchedule:
    """
    Decaying per-epoch reward bounded by max_supply.

    Subclasses decide how the reward decays; the supply cap check is shared.
    """

    def __init__(self, economic_config: EconomicConfig = None):
        self.config = economic_config or ECONOMIC_CONFIG

    @property
    def max_supply(self) -> int:
        return self.config.max_supply

    def current_reward(self, state: EngineState) -> int:
        raise NotImplementedError

    def consume(self, state: EngineState, amount: int) -> EngineState:
        """
        Books `amount` against the supply cap.

        Raises:
            SupplyExhausted: nothing left to pay, or the payout would cross max_supply

        Returns:
            Copy of state with tokens_minted increased
        """
        if amount <= 0:
            raise SupplyExhausted("Reward has decayed to zero")
        if state.tokens_minted + amount > self.config.max_supply:
            raise SupplyExhausted(
                f"Reward {amount} would exceed max supply "
                f"({state.tokens_minted} of {self.config.max_supply} minted)"
            )

        new_state = state.clone()
        new_state.tokens_minted = state.tokens_minted + amount
        return self._after_consume(new_state)

    def _after_consume(self, state: EngineState) -> EngineState:
        return state

    def is_exhausted(self, state: EngineState) -> bool:
        reward = self.current_reward(state)
        return reward <= 0 or state.tokens_minted + reward > self.config.max_supply


class EraRewardSchedule(RewardSchedule):
    """
    Supply-driven halving.

    The reward halves once the current era's share of supply
    (max_supply - max_supply / 2^(era+1)) cannot absorb another payout.
    """

    def current_reward(self, state: EngineState) -> int:
        return self.config.reward_for_era(state.reward_era)

    def _after_consume(self, state: EngineState) -> EngineState:
        start_era = state.reward_era
        while (state.tokens_minted + self.current_reward(state) > self.config.max_supply_for_era(state.reward_era)
               and state.reward_era < self.config.max_era):
            state.reward_era += 1
        if state.reward_era != start_era:
            logger.info(f"Reward era {state.reward_era} begins: reward now {self.current_reward(state)}")
        return state


class HalvingRewardSchedule(RewardSchedule):
    """Reward halves every halving_period_epochs epochs."""

    def current_reward(self, state: EngineState) -> int:
        return self.config.reward_for_epoch(state.epoch)


def build_reward_schedule(economic_config: EconomicConfig = None) -> RewardSchedule:
    config = economic_config or ECONOMIC_CONFIG
    if config.reward_policy == REWARD_POLICY_HALVING:
        return HalvingRewardSchedule(config)
    return EraRewardSchedule(config)
