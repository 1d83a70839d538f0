import pytest
from powmint.engine.core.ledger import InMemoryLedger
from powmint.engine.extensions.delegated import (
    DelegatedMintAuthorizer, binding_digest, sign_mint_packet,
)
from powmint.protocol.crypto.addresses import NULL_ADDRESS
from powmint.protocol.crypto.keys import sign_recoverable, recover_public_key, public_key_from_private
from powmint.protocol.types.common import SignatureMismatch, InvalidOrigin, ValidationError
from powmint.protocol.types.mint import MintPacket
from conftest import make_config, find_nonce, find_failing_nonce, new_identity


@pytest.fixture
def authorizer(engine):
    return DelegatedMintAuthorizer(engine)


def test_recoverable_signature_round_trip():
    priv, _ = new_identity()
    digest = b'\x42' * 32
    sig = sign_recoverable(digest, priv)
    assert len(sig) == 65
    assert recover_public_key(digest, sig) == public_key_from_private(priv)
    assert recover_public_key(digest, sig[:64]) is None


def test_relayed_mint_credits_origin(engine, authorizer, ledger, miner):
    priv, origin = miner
    _, relayer = new_identity()

    nonce = find_nonce(origin, engine.challenge_number(), engine.mining_target())
    packet = sign_mint_packet(nonce, priv, engine.engine_id)
    assert packet.origin == origin

    assert authorizer.delegated_mint(packet.nonce, packet.origin, packet.signature, relayer=relayer) is True
    assert ledger.balance_of(origin) == engine.tokens_minted()
    assert ledger.balance_of(relayer) == 0


def test_signature_replayed_for_other_origin(engine, authorizer, ledger, miner):
    priv, origin = miner
    _, other = new_identity()
    nonce = find_nonce(other, engine.challenge_number(), engine.mining_target())
    packet = sign_mint_packet(nonce, priv, engine.engine_id)

    with pytest.raises(SignatureMismatch):
        authorizer.delegated_mint(nonce, other, packet.signature)
    assert engine.epoch_count() == 0
    assert ledger.balance_of(other) == 0


def test_relayer_cannot_claim_for_itself(engine, authorizer, ledger, miner):
    priv, origin = miner
    relayer_priv, relayer = new_identity()
    nonce = find_nonce(origin, engine.challenge_number(), engine.mining_target())
    packet = sign_mint_packet(nonce, priv, engine.engine_id)

    # Origin's signature, relayer's identity
    with pytest.raises(SignatureMismatch):
        authorizer.delegated_mint(nonce, relayer, packet.signature, relayer=relayer)

    # Relayer's signature, origin's identity
    forged = sign_recoverable(binding_digest(nonce, origin, engine.engine_id), relayer_priv)
    with pytest.raises(SignatureMismatch):
        authorizer.delegated_mint(nonce, origin, forged.hex(), relayer=relayer)

    assert engine.epoch_count() == 0
    assert ledger.balance_of(relayer) == 0


def test_packet_bound_to_engine(make_engine, miner):
    priv, origin = miner
    other_engine = make_engine(make_config(engine_id="pow-test-2"), ledger=InMemoryLedger())
    nonce = find_nonce(origin, other_engine.challenge_number(), other_engine.mining_target())

    packet = sign_mint_packet(nonce, priv, "pow-test-1")
    with pytest.raises(SignatureMismatch):
        DelegatedMintAuthorizer(other_engine).delegated_mint(nonce, origin, packet.signature)
    assert other_engine.epoch_count() == 0


def test_invalid_origins(authorizer, miner):
    priv, origin = miner
    packet = sign_mint_packet(1, priv, "pow-test-1")

    with pytest.raises(InvalidOrigin):
        authorizer.authorize(MintPacket(nonce=1, origin=NULL_ADDRESS, signature=packet.signature))
    with pytest.raises(InvalidOrigin):
        authorizer.authorize(MintPacket(nonce=1, origin=origin, signature=packet.signature[:128]))
    with pytest.raises(InvalidOrigin):
        authorizer.authorize(MintPacket(nonce=1, origin=origin, signature="xyz"))
    with pytest.raises(ValidationError):
        authorizer.authorize(MintPacket(nonce=1, origin="garbage", signature=packet.signature))
    with pytest.raises(ValidationError):
        authorizer.authorize(MintPacket(nonce=-5, origin=origin, signature=packet.signature))


def test_authorized_but_wrong_nonce_fails_softly(engine, authorizer, miner):
    priv, origin = miner
    nonce = find_failing_nonce(origin, engine.challenge_number(), engine.mining_target())
    packet = sign_mint_packet(nonce, priv, engine.engine_id)

    assert authorizer.authorize(packet) == origin
    assert authorizer.delegated_mint(nonce, origin, packet.signature) is False
    assert engine.epoch_count() == 0


def test_uppercase_origin_is_accepted(engine, authorizer, ledger, miner):
    priv, origin = miner
    nonce = find_nonce(origin, engine.challenge_number(), engine.mining_target())
    packet = sign_mint_packet(nonce, priv, engine.engine_id)

    assert authorizer.authorize(packet.model_copy(update={"origin": origin.upper()})) == origin
    assert authorizer.delegated_mint(nonce, origin.upper(), packet.signature) is True
    assert ledger.balance_of(origin) == engine.tokens_minted()
