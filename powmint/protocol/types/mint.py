from pydantic import BaseModel, Field
from typing import Optional
import time
from .common import RejectReason


class SolutionAttempt(BaseModel):
    """One nonce checked against one challenge snapshot. Never stored."""
    nonce: int
    claimant: str
    challenge: str

class MintEvent(BaseModel):
    to: str                     # credited address
    reward: int                 # minimal units
    epoch: int                  # epoch the solution closed (pre-advance)
    challenge: str              # challenge the solution solved (pre-rotation)
    engine_id: str = ""
    timestamp: float = Field(default_factory=time.time)

class MintPacket(BaseModel):
    """Delegated mint request. Untrusted until the signature checks out."""
    nonce: int
    origin: str                 # solver address, receives the reward
    signature: str              # hex, 65 bytes r || s || v

class MintOutcome(BaseModel):
    accepted: bool
    reason: Optional[RejectReason] = None
    event: Optional[MintEvent] = None

class MergeResult(BaseModel):
    target: str                 # engine_id of the target engine
    accepted: bool
    reason: Optional[RejectReason] = None
    reward: int = 0
    epoch: Optional[int] = None
