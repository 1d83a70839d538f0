import pytest
from unittest.mock import Mock
from powmint.engine.core.ledger import InMemoryLedger
from powmint.engine.extensions.merged import MergedMintDispatcher
from powmint.protocol.crypto.pow import mint_digest
from powmint.protocol.types.common import RejectReason
from conftest import make_config, find_nonce


@pytest.fixture
def engines(make_engine):
    a = make_engine(make_config(engine_id="pow-merge-a"), ledger=InMemoryLedger())
    b = make_engine(make_config(engine_id="pow-merge-b"), ledger=InMemoryLedger())
    return a, b


def find_shared_nonce(addr, a, b):
    nonce = find_nonce(addr, a.challenge_number(), a.mining_target())
    while int.from_bytes(mint_digest(nonce, addr, b.challenge_number()), 'big') > b.mining_target():
        nonce = find_nonce(addr, a.challenge_number(), a.mining_target(), start=nonce + 1)
    return nonce


def test_merge_pays_every_engine_it_solves(engines, miner):
    a, b = engines
    _, addr = miner
    dispatcher = MergedMintDispatcher([a, b])

    nonce = find_shared_nonce(addr, a, b)
    results = dispatcher.merge_mint(nonce, addr, ["pow-merge-a", "pow-merge-b"])

    assert [r.accepted for r in results] == [True, True]
    assert [r.target for r in results] == ["pow-merge-a", "pow-merge-b"]
    assert all(r.epoch == 0 and r.reward == a.mining_reward() for r in results)
    assert a.ledger.balance_of(addr) == results[0].reward
    assert b.ledger.balance_of(addr) == results[1].reward
    assert a.epoch_count() == b.epoch_count() == 1


def test_merge_reports_partial_success(engines, miner):
    a, b = engines
    _, addr = miner
    dispatcher = MergedMintDispatcher([a, b])

    nonce = find_nonce(addr, a.challenge_number(), a.mining_target(),
                       avoid=[(b.challenge_number(), b.mining_target())])
    results = dispatcher.merge_mint(nonce, addr, ["pow-merge-a", "pow-merge-b", "pow-missing"])

    assert results[0].accepted is True
    assert results[1].accepted is False
    assert results[1].reason == RejectReason.INVALID_SOLUTION
    assert results[2].reason == RejectReason.UNKNOWN_TARGET
    assert a.epoch_count() == 1
    assert b.epoch_count() == 0
    assert b.ledger.balance_of(addr) == 0


def test_merge_flags(engines, miner):
    a, b = engines
    _, addr = miner
    dispatcher = MergedMintDispatcher([a, b])
    nonce = find_nonce(addr, a.challenge_number(), a.mining_target(),
                       avoid=[(b.challenge_number(), b.mining_target())])
    assert dispatcher.merge(nonce, addr, ["pow-merge-b", "pow-merge-a"]) == [False, True]


def test_register_rejects_duplicates(engines):
    a, _ = engines
    dispatcher = MergedMintDispatcher([a])
    with pytest.raises(ValueError):
        dispatcher.register(a)


def test_failing_target_keeps_other_results(make_engine, miner):
    a = make_engine(make_config(engine_id="pow-merge-a"), ledger=InMemoryLedger())
    broken = Mock()
    broken.credit.side_effect = RuntimeError("ledger offline")
    b = make_engine(make_config(engine_id="pow-merge-b"), ledger=broken)
    _, addr = miner
    dispatcher = MergedMintDispatcher([a, b])

    nonce = find_shared_nonce(addr, a, b)
    b_before = b.snapshot()
    results = dispatcher.merge_mint(nonce, addr, ["pow-merge-a", "pow-merge-b"])

    # a paid and says so; b reports the failure and did not move
    assert results[0].accepted is True
    assert a.ledger.balance_of(addr) == results[0].reward
    assert results[1].accepted is False
    assert results[1].reason == RejectReason.ENGINE_ERROR
    assert b.snapshot() == b_before
