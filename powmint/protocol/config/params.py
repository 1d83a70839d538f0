# MIT License
# Copyright (c) 2025 Hashborn

import os
from typing import Dict, Optional
from .economic_model import EconomicConfig, ECONOMIC_MODELS

# Global Constants
MIN_TARGET = 2**16
MAX_TARGET = 2**234

class EngineConfig:
    def __init__(self,
                 network_id: str,
                 engine_id: str,
                 economics: EconomicConfig,
                 initial_target: Optional[int] = None,
                 min_target: int = MIN_TARGET,
                 max_target: int = MAX_TARGET,
                 # Difficulty control
                 adjustment_interval: int = 1024,       # epochs between readjustments
                 target_epoch_seconds: int = 600,       # desired time per epoch
                 max_adjustment_pct: int = 1000,        # 1000 => at most 50% per readjustment
                 # Stale-challenge classification window
                 retired_history: int = 16,
                 address_prefix: str = "pow",
                 # Devnet beacon node (finalized block hashes)
                 beacon_url: Optional[str] = None):
        self.network_id = network_id
        self.engine_id = engine_id
        self.economics = economics
        self.min_target = min_target
        self.max_target = max_target
        # Start at the easiest difficulty unless told otherwise
        self.initial_target = initial_target if initial_target is not None else max_target
        self.adjustment_interval = adjustment_interval
        self.target_epoch_seconds = target_epoch_seconds
        self.max_adjustment_pct = max_adjustment_pct
        self.retired_history = retired_history
        self.address_prefix = address_prefix
        self.beacon_url = beacon_url
        self._validate()

    def _validate(self):
        if not 0 < self.min_target <= self.max_target:
            raise ValueError(f"Invalid target bounds: [{self.min_target}, {self.max_target}]")
        if not self.min_target <= self.initial_target <= self.max_target:
            raise ValueError(f"initial_target {self.initial_target} outside bounds")
        if self.adjustment_interval <= 0:
            raise ValueError("adjustment_interval must be positive")
        if self.target_epoch_seconds <= 0:
            raise ValueError("target_epoch_seconds must be positive")
        if self.max_adjustment_pct < 0:
            raise ValueError("max_adjustment_pct must not be negative")
        if self.retired_history < 0:
            raise ValueError("retired_history must not be negative")

NETWORKS: Dict[str, EngineConfig] = {
    "devnet": EngineConfig(
        network_id="devnet",
        engine_id="pow-devnet-1",
        economics=ECONOMIC_MODELS["devnet"],
        max_target=2**252,                  # a laptop finds solutions in milliseconds
        adjustment_interval=16,
        target_epoch_seconds=10,
    ),
    "testnet": EngineConfig(
        network_id="testnet",
        engine_id="pow-testnet-1",
        economics=ECONOMIC_MODELS["testnet"],
        adjustment_interval=256,
        target_epoch_seconds=60,
    ),
    "mainnet": EngineConfig(
        network_id="mainnet",
        engine_id="pow-mainnet-1",
        economics=ECONOMIC_MODELS["mainnet"],
        adjustment_interval=1024,
        target_epoch_seconds=600,
    )
}

# Default to devnet for now
CURRENT_NETWORK = NETWORKS[os.environ.get("POWMINT_NETWORK", "devnet")]
