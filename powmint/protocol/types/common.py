from enum import Enum


class MintPhase(str, Enum):
    IDLE = "IDLE"
    VERIFYING = "VERIFYING"
    REWARDING = "REWARDING"
    ROTATING = "ROTATING"
    ADJUSTING = "ADJUSTING"

class RejectReason(str, Enum):
    INVALID_SOLUTION = "invalid_solution"
    STALE_CHALLENGE = "stale_challenge"
    SUPPLY_EXHAUSTED = "supply_exhausted"
    CHALLENGE_UNAVAILABLE = "challenge_unavailable"
    SIGNATURE_MISMATCH = "signature_mismatch"
    INVALID_ORIGIN = "invalid_origin"
    DIGEST_MISMATCH = "digest_mismatch"
    INVALID_INPUT = "invalid_input"
    UNKNOWN_TARGET = "unknown_target"
    ENGINE_ERROR = "engine_error"

class ProtocolError(Exception):
    pass

class ValidationError(ProtocolError):
    pass

class MintError(ProtocolError):
    """A submission the engine refused. Nothing was committed."""
    reason = RejectReason.INVALID_SOLUTION

class InvalidSolution(MintError):
    reason = RejectReason.INVALID_SOLUTION

class StaleChallenge(InvalidSolution):
    """The nonce solves a challenge that has already been rotated away."""
    reason = RejectReason.STALE_CHALLENGE

class SupplyExhausted(MintError):
    reason = RejectReason.SUPPLY_EXHAUSTED

class ChallengeUnavailable(MintError):
    reason = RejectReason.CHALLENGE_UNAVAILABLE

class SignatureMismatch(MintError):
    reason = RejectReason.SIGNATURE_MISMATCH

class InvalidOrigin(MintError):
    reason = RejectReason.INVALID_ORIGIN

class DigestMismatch(MintError):
    reason = RejectReason.DIGEST_MISMATCH
