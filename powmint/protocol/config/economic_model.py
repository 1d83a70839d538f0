# MIT License
# Copyright (c) 2025 Hashborn

"""
PowMint Economic Model
Single source of truth for emission parameters.

Emission policy: the whole supply is pre-allocated to proof-of-work and
released one reward per epoch. Rewards only ever go down; once the next
reward no longer fits under max_supply, minting stops for good.
"""

from dataclasses import dataclass

DECIMALS = 10**8

REWARD_POLICY_ERA = "era"           # halve when the era's share of supply is used up
REWARD_POLICY_HALVING = "halving"   # halve every N epochs

@dataclass
class EconomicConfig:
    """Emission parameters for a network."""

    # ═══════════════════════════════════════════════════════
    # SUPPLY
    # ═══════════════════════════════════════════════════════
    max_supply: int                     # Hard cap in minimal units
    initial_reward: int                 # Reward for epoch 0 in minimal units

    # ═══════════════════════════════════════════════════════
    # DECAY
    # ═══════════════════════════════════════════════════════
    reward_policy: str = REWARD_POLICY_ERA
    halving_period_epochs: int = 210_000    # Only for "halving"
    max_era: int = 39                       # Only for "era"; reward >> 39 is dust

    decimals: int = DECIMALS

    def __post_init__(self):
        if self.max_supply <= 0 or self.initial_reward <= 0:
            raise ValueError("max_supply and initial_reward must be positive")
        if self.initial_reward > self.max_supply:
            raise ValueError("initial_reward exceeds max_supply")
        if self.reward_policy not in (REWARD_POLICY_ERA, REWARD_POLICY_HALVING):
            raise ValueError(f"Unknown reward policy: {self.reward_policy}")
        if self.halving_period_epochs <= 0:
            raise ValueError("halving_period_epochs must be positive")

    # ═══════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════

    def max_supply_for_era(self, era: int) -> int:
        """Cumulative supply that may be minted before era+1 starts."""
        return self.max_supply - self.max_supply // (2 ** (era + 1))

    def reward_for_era(self, era: int) -> int:
        return self.initial_reward >> era

    def reward_for_epoch(self, epoch: int) -> int:
        """Calculate epoch reward with fixed-period halving."""
        halvings = epoch // self.halving_period_epochs
        return self.initial_reward >> halvings


# ═══════════════════════════════════════════════════════════════════════════
# DEVNET CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════
DEVNET = EconomicConfig(
    max_supply=21_000_000 * DECIMALS,           # 21M POW
    initial_reward=50 * DECIMALS,               # 50 POW per solution
    reward_policy=REWARD_POLICY_ERA,
)


# ═══════════════════════════════════════════════════════════════════════════
# TESTNET CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════
TESTNET = EconomicConfig(
    max_supply=21_000_000 * DECIMALS,
    initial_reward=50 * DECIMALS,
    reward_policy=REWARD_POLICY_HALVING,
    halving_period_epochs=210_000,              # Bitcoin-like schedule, sums to the cap
)


# ═══════════════════════════════════════════════════════════════════════════
# MAINNET CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════
MAINNET = EconomicConfig(
    max_supply=21_000_000 * DECIMALS,
    initial_reward=50 * DECIMALS,
    reward_policy=REWARD_POLICY_ERA,
)


ECONOMIC_MODELS = {
    "devnet": DEVNET,
    "testnet": TESTNET,
    "mainnet": MAINNET,
}

# ═══════════════════════════════════════════════════════════════════════════
# CURRENT NETWORK (selected at runtime)
# ═══════════════════════════════════════════════════════════════════════════
ECONOMIC_CONFIG = DEVNET  # Default to devnet, can be changed via CLI/config
