import pytest
from powmint.protocol.config.params import NETWORKS, EngineConfig, CURRENT_NETWORK
from powmint.protocol.config.economic_model import DEVNET, DECIMALS
from powmint.engine.core.state import EngineState, EpochLedger


def test_network_presets():
    for name, config in NETWORKS.items():
        assert config.network_id == name
        assert config.min_target <= config.initial_target <= config.max_target
        assert config.economics.initial_reward <= config.economics.max_supply
    assert CURRENT_NETWORK.network_id in NETWORKS
    assert DEVNET.max_supply == 21_000_000 * DECIMALS


@pytest.mark.parametrize("overrides", [
    {"min_target": 0},
    {"min_target": 2**100, "max_target": 2**50},
    {"initial_target": 2**250, "max_target": 2**240},
    {"adjustment_interval": 0},
    {"target_epoch_seconds": 0},
])
def test_engine_config_rejects_bad_values(overrides):
    params = dict(network_id="x", engine_id="x", economics=DEVNET)
    params.update(overrides)
    with pytest.raises(ValueError):
        EngineConfig(**params)


def test_epoch_ledger_keeps_bounded_history():
    epochs = EpochLedger(retired_history=2)
    state = EngineState(challenge="00" * 32, target=7)

    for i in range(1, 4):
        state = epochs.retire(state, f"{i:02x}" * 32)
        state = epochs.advance(state, 10)

    assert state.epoch == 3
    assert state.last_reward == 10
    assert state.challenge == "03" * 32
    assert [r.challenge for r in state.retired_challenges] == ["02" * 32, "01" * 32]
    assert [r.epoch for r in state.retired_challenges] == [2, 1]
