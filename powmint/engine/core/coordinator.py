# MIT License
# Copyright (c) 2025 Hashborn

from typing import Callable, Optional, Union
import logging
import threading
import time
from ...protocol.config.params import EngineConfig, CURRENT_NETWORK
from ...protocol.crypto.addresses import address_from_payload, decode_address, is_null_address
from ...protocol.crypto.pow import mint_digest, MAX_NONCE
from ...protocol.types.common import (
    MintPhase, MintError, InvalidSolution, StaleChallenge, DigestMismatch,
    ValidationError, RejectReason,
)
from ...protocol.types.mint import MintEvent, MintOutcome
from ..observability.metrics import update_metrics, record_mint, record_rejection
from .challenge import ChallengeRotator, ChallengeSource
from .difficulty import DifficultyController
from .events import EventBus, event_bus
from .ledger import Ledger, InMemoryLedger
from .rewards import RewardSchedule, build_reward_schedule
from .state import EngineState, EpochLedger
from .verifier import SolutionVerifier

logger = logging.getLogger(__name__)


class MintCoordinator:
    """
    Proof-of-work mint engine.

    Runs each submission through verify -> reward -> rotate -> adjust as one
    serialized unit. The committed EngineState is replaced wholesale at the
    end of a successful submission, so readers never need the lock and never
    see a half-applied mint.
    """

    def __init__(self,
                 config: Optional[EngineConfig] = None,
                 ledger: Optional[Ledger] = None,
                 source: Optional[ChallengeSource] = None,
                 reward_schedule: Optional[RewardSchedule] = None,
                 events: Optional[EventBus] = None,
                 clock: Callable[[], float] = time.time,
                 genesis_challenge: Optional[str] = None):
        self.config = config or CURRENT_NETWORK
        self.ledger = ledger if ledger is not None else InMemoryLedger()
        self.events = events if events is not None else event_bus
        self.clock = clock

        self.verifier = SolutionVerifier()
        self.rewards = reward_schedule or build_reward_schedule(self.config.economics)
        self.rotator = ChallengeRotator(source)
        self.difficulty_controller = DifficultyController(self.config)
        self.epochs = EpochLedger(self.config.retired_history)

        self._lock = threading.RLock()
        self.phase = MintPhase.IDLE

        now = self.clock()
        challenge = genesis_challenge or self.rotator.genesis_challenge()
        self._state = EngineState.genesis(self.config, challenge, now)
        self._last_mint_time = now

        logger.info(
            f"Engine {self.engine_id} initialized: target {self._state.target:#x}, "
            f"reward {self.mining_reward()}, max supply {self.max_supply()}"
        )
        update_metrics(self)

    @property
    def engine_id(self) -> str:
        return self.config.engine_id

    # --- Read accessors (lock-free, last committed state) ---
    def snapshot(self) -> EngineState:
        return self._state.clone()

    def challenge_number(self) -> str:
        return self._state.challenge

    def mining_target(self) -> int:
        return self._state.target

    def difficulty(self) -> int:
        """Easiest target divided by the current one (1 = easiest)."""
        return self.config.max_target // self._state.target

    def epoch_count(self) -> int:
        return self._state.epoch

    def adjustment_interval(self) -> int:
        """Epochs between difficulty readjustments."""
        return self.config.adjustment_interval

    def mining_reward(self) -> int:
        return self.rewards.current_reward(self._state)

    def tokens_minted(self) -> int:
        return self._state.tokens_minted

    def min_target(self) -> int:
        return self.config.min_target

    def max_target(self) -> int:
        return self.config.max_target

    def max_supply(self) -> int:
        return self.rewards.max_supply

    def is_exhausted(self) -> bool:
        """True once no further mint can ever be paid."""
        return self.rewards.is_exhausted(self._state)

    # Older client names
    get_challenge_number = challenge_number
    get_mining_target = mining_target
    get_mining_difficulty = difficulty
    get_mining_reward = mining_reward
    get_adjustment_interval = adjustment_interval

    @staticmethod
    def hash(nonce: int, claimant: str, challenge: str) -> bytes:
        """Same digest the engine checks; exposed for off-line mining."""
        return mint_digest(nonce, claimant, challenge)

    # --- Mutating entry points ---
    def submit(self, nonce: int, sender: str) -> MintEvent:
        """
        Fails loudly: returns the MintEvent or raises the MintError that
        rejected the submission.
        """
        with self._lock:
            try:
                return self._mint_impl(nonce, sender)
            except MintError as e:
                self._on_rejected(sender, e)
                raise

    def mint(self, nonce: int, sender: str) -> bool:
        """
        Fails softly for wrong or late answers (False). Every other
        rejection is raised.
        """
        try:
            self.submit(nonce, sender)
            return True
        except InvalidSolution:
            return False

    def try_mint(self, nonce: int, sender: str) -> MintOutcome:
        """Never raises for a refused submission; the reason is in the outcome."""
        try:
            event = self.submit(nonce, sender)
        except MintError as e:
            return MintOutcome(accepted=False, reason=e.reason)
        except ValidationError as e:
            logger.debug(f"Malformed submission from {sender}: {e}")
            return MintOutcome(accepted=False, reason=RejectReason.INVALID_INPUT)
        return MintOutcome(accepted=True, event=event)

    def mint_with_digest(self, nonce: int, challenge_digest: Union[str, bytes], sender: str) -> bool:
        """
        Two-argument mint used by older miners: the caller also sends the
        digest it computed, which must match before the nonce is tried.

        A digest computed against a retired challenge is a late answer and
        returns False like any other stale solution; a digest matching no
        known challenge raises DigestMismatch.
        """
        if isinstance(challenge_digest, str):
            try:
                challenge_digest = bytes.fromhex(challenge_digest)
            except ValueError:
                raise ValidationError("challenge_digest is not hex")

        with self._lock:
            sender = self._validate_submission(nonce, sender)
            state = self._state
            if mint_digest(nonce, sender, state.challenge) != challenge_digest:
                for retired in state.retired_challenges:
                    if mint_digest(nonce, sender, retired.challenge) == challenge_digest:
                        self._on_rejected(sender, StaleChallenge(
                            f"Digest was computed against retired challenge {retired.challenge[:16]}"
                        ))
                        return False
                err = DigestMismatch("Supplied digest does not match the current challenge")
                self._on_rejected(sender, err)
                raise err
            return self.mint(nonce, sender)

    # --- Internals ---
    def _validate_submission(self, nonce: int, claimant: str) -> str:
        """Checks nonce and claimant; returns the claimant in canonical (lowercase) form."""
        if isinstance(nonce, bool) or not isinstance(nonce, int):
            raise ValidationError(f"nonce must be an integer, got {type(nonce).__name__}")
        if not 0 <= nonce <= MAX_NONCE:
            raise ValidationError("nonce must be a uint256")
        try:
            prefix, payload = decode_address(claimant)
        except ValueError as e:
            raise ValidationError(f"Invalid claimant address: {e}")
        if prefix != self.config.address_prefix:
            raise ValidationError(f"Claimant prefix {prefix} != {self.config.address_prefix}")
        if is_null_address(claimant):
            raise ValidationError("Claimant is the null address")
        return address_from_payload(payload, prefix)

    def _mint_impl(self, nonce: int, claimant: str) -> MintEvent:
        claimant = self._validate_submission(nonce, claimant)
        snapshot = self._state

        try:
            # 1. Verify against the committed challenge/target
            self.phase = MintPhase.VERIFYING
            if not self.verifier.verify(nonce, claimant, snapshot):
                retired = self.verifier.solved_retired(nonce, claimant, snapshot)
                if retired is not None:
                    raise StaleChallenge(
                        f"Nonce solves challenge of epoch {retired.epoch}, already closed"
                    )
                raise InvalidSolution("Digest above mining target")

            # 2. Reward
            self.phase = MintPhase.REWARDING
            reward = self.rewards.current_reward(snapshot)
            draft = self.rewards.consume(snapshot, reward)

            # 3. Rotate challenge and close the epoch
            self.phase = MintPhase.ROTATING
            beacon = self.rotator.observe()
            next_challenge = self.rotator.next_challenge(draft, beacon)
            draft = self.epochs.retire(draft, next_challenge)
            draft = self.epochs.advance(draft, reward)

            # 4. Difficulty
            self.phase = MintPhase.ADJUSTING
            now = self.clock()
            final = self.difficulty_controller.maybe_adjust(draft, now)
            adjusted = final is not draft

            # Commit: credit first, state only if the ledger accepted it
            self.ledger.credit(claimant, reward)
            self._state = final
        finally:
            self.phase = MintPhase.IDLE

        event = MintEvent(
            to=claimant,
            reward=reward,
            epoch=snapshot.epoch,
            challenge=snapshot.challenge,
            engine_id=self.engine_id,
            timestamp=now,
        )
        logger.info(f"Epoch {snapshot.epoch} mined by {claimant}: reward {reward}, next challenge {final.challenge[:16]}")

        record_mint(self.engine_id, now - self._last_mint_time, adjusted)
        self._last_mint_time = now
        update_metrics(self)

        self.events.publish_mint(event)
        return event

    def _on_rejected(self, sender: str, err: MintError):
        record_rejection(self.engine_id, err.reason.value)
        if isinstance(err, InvalidSolution):
            logger.debug(f"Rejected submission from {sender}: {err.reason.value}: {err}")
        else:
            logger.warning(f"Rejected submission from {sender}: {err.reason.value}: {err}")
