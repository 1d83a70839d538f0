import hashlib
import itertools
import pytest
from powmint.engine.core.coordinator import MintCoordinator
from powmint.engine.core.events import EventBus
from powmint.engine.core.ledger import InMemoryLedger
from powmint.engine.core.challenge import RandomBeacon
from powmint.protocol.config.economic_model import EconomicConfig, DECIMALS, REWARD_POLICY_ERA
from powmint.protocol.config.params import EngineConfig
from powmint.protocol.crypto.keys import generate_private_key, public_key_from_private
from powmint.protocol.crypto.addresses import address_from_pubkey, address_payload
from powmint.protocol.crypto.pow import challenge_bytes, nonce_bytes


class FakeClock:
    """Manually advanced clock, injected into engines under test."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def new_identity():
    priv = generate_private_key()
    return priv, address_from_pubkey(public_key_from_private(priv))


def find_nonce(claimant: str, challenge: str, target: int, start: int = 0, avoid=()) -> int:
    """
    Brute-force search, same preimage layout as mint_digest.

    `avoid` is a list of (challenge, target) pairs the nonce must NOT solve.
    """
    prefix = challenge_bytes(challenge) + address_payload(claimant)
    avoid_prefixes = [(challenge_bytes(c) + address_payload(claimant), t) for c, t in avoid]
    for nonce in itertools.count(start):
        nb = nonce_bytes(nonce)
        if int.from_bytes(hashlib.sha256(prefix + nb).digest(), 'big') > target:
            continue
        if any(int.from_bytes(hashlib.sha256(p + nb).digest(), 'big') <= t for p, t in avoid_prefixes):
            continue
        return nonce


def find_failing_nonce(claimant: str, challenge: str, target: int) -> int:
    prefix = challenge_bytes(challenge) + address_payload(claimant)
    for nonce in itertools.count():
        if int.from_bytes(hashlib.sha256(prefix + nonce_bytes(nonce)).digest(), 'big') > target:
            return nonce


def make_config(engine_id: str = "pow-test-1", economics: EconomicConfig = None, **overrides) -> EngineConfig:
    params = dict(
        network_id="test",
        engine_id=engine_id,
        economics=economics or EconomicConfig(
            max_supply=21_000_000 * DECIMALS,
            initial_reward=50 * DECIMALS,
            reward_policy=REWARD_POLICY_ERA,
        ),
        min_target=2**200,
        max_target=2**255,
        initial_target=2**254,
        adjustment_interval=4,
        target_epoch_seconds=10,
        retired_history=4,
    )
    params.update(overrides)
    return EngineConfig(**params)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus():
    bus = EventBus()
    yield bus
    bus.clear()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def make_engine(clock, bus, ledger):
    """Factory for engines sharing the test clock, bus and ledger."""
    def _make(config: EngineConfig = None, **kwargs) -> MintCoordinator:
        kwargs.setdefault("ledger", ledger)
        kwargs.setdefault("events", bus)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("source", RandomBeacon())
        return MintCoordinator(config=config or make_config(), **kwargs)
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def miner():
    return new_identity()
