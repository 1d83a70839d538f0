from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel
from typing import Optional, List
from ...protocol.types.common import MintError, ValidationError
from ...protocol.crypto.addresses import address_from_payload, decode_address
from ...protocol.types.mint import MergeResult
from ..core.coordinator import MintCoordinator
from ..extensions.delegated import DelegatedMintAuthorizer
from ..extensions.merged import MergedMintDispatcher
import logging

logger = logging.getLogger(__name__)

app = FastAPI(title="PowMint Node RPC")

engine: Optional[MintCoordinator] = None
authorizer: Optional[DelegatedMintAuthorizer] = None
dispatcher: Optional[MergedMintDispatcher] = None


def init_app(mint_engine: MintCoordinator, merge_dispatcher: Optional[MergedMintDispatcher] = None):
    """Wires the module-level engine used by the route handlers."""
    global engine, authorizer, dispatcher
    engine = mint_engine
    authorizer = DelegatedMintAuthorizer(mint_engine)
    if merge_dispatcher is None:
        merge_dispatcher = MergedMintDispatcher([mint_engine])
    dispatcher = merge_dispatcher
    logger.info(f"RPC serving engine {mint_engine.engine_id} (merge targets: {sorted(dispatcher.engines)})")
    return app


class MintRequest(BaseModel):
    nonce: int
    sender: str

class DigestMintRequest(BaseModel):
    nonce: int
    sender: str
    challenge_digest: str

class DelegatedMintRequest(BaseModel):
    nonce: int
    origin: str
    signature: str
    relayer: Optional[str] = None

class MergeRequest(BaseModel):
    nonce: int
    sender: str
    targets: List[str]

class MintResponse(BaseModel):
    accepted: bool
    epoch: int
    challenge: str


def _require_engine() -> MintCoordinator:
    if not engine:
        raise HTTPException(status_code=503, detail="Node not initialized")
    return engine

def _mint_response(accepted: bool) -> MintResponse:
    return MintResponse(accepted=accepted, epoch=engine.epoch_count(), challenge=engine.challenge_number())

def _raise_http(e: Exception):
    if isinstance(e, ValidationError):
        raise HTTPException(status_code=400, detail=str(e))
    raise HTTPException(status_code=409, detail={"reason": e.reason.value, "message": str(e)})


@app.get("/status")
async def get_status():
    eng = _require_engine()
    state = eng.snapshot()
    return {
        "engine_id": eng.engine_id,
        "network": eng.config.network_id,
        "challenge_number": state.challenge,
        "mining_target": str(state.target),
        "difficulty": str(eng.config.max_target // state.target),
        "epoch_count": state.epoch,
        "adjustment_interval": eng.adjustment_interval(),
        "mining_reward": str(eng.rewards.current_reward(state)),
        "tokens_minted": str(state.tokens_minted),
        "max_supply": str(eng.max_supply()),
        "min_target": str(eng.min_target()),
        "max_target": str(eng.max_target()),
        "exhausted": eng.is_exhausted(),
    }

@app.get("/challenge")
async def get_challenge():
    eng = _require_engine()
    state = eng.snapshot()
    return {
        "challenge_number": state.challenge,
        "mining_target": str(state.target),
        "epoch_count": state.epoch,
    }

@app.get("/hash")
async def get_hash(nonce: int, address: str, challenge: Optional[str] = None):
    """Verification helper for mining software."""
    eng = _require_engine()
    challenge = challenge or eng.challenge_number()
    try:
        digest = eng.hash(nonce, address, challenge)
    except (ValueError, OverflowError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"digest": digest.hex(), "challenge_number": challenge}

@app.get("/balance/{address}")
async def get_balance(address: str):
    eng = _require_engine()
    try:
        prefix, payload = decode_address(address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    address = address_from_payload(payload, prefix)
    get_account = getattr(eng.ledger, "get_account", None)
    if get_account is None:
        raise HTTPException(status_code=501, detail="Ledger does not expose balances")
    acc = get_account(address)
    return {"address": address, "balance": str(acc.balance)}

@app.post("/mint", response_model=MintResponse)
def post_mint(req: MintRequest):
    eng = _require_engine()
    try:
        accepted = eng.mint(req.nonce, req.sender)
    except (MintError, ValidationError) as e:
        _raise_http(e)
    return _mint_response(accepted)

@app.post("/mint/digest", response_model=MintResponse)
def post_mint_digest(req: DigestMintRequest):
    eng = _require_engine()
    try:
        accepted = eng.mint_with_digest(req.nonce, req.challenge_digest, req.sender)
    except (MintError, ValidationError) as e:
        _raise_http(e)
    return _mint_response(accepted)

@app.post("/mint/delegated", response_model=MintResponse)
def post_delegated_mint(req: DelegatedMintRequest):
    _require_engine()
    try:
        accepted = authorizer.delegated_mint(req.nonce, req.origin, req.signature, relayer=req.relayer)
    except (MintError, ValidationError) as e:
        _raise_http(e)
    return _mint_response(accepted)

@app.post("/merge", response_model=List[MergeResult])
def post_merge(req: MergeRequest):
    _require_engine()
    return dispatcher.merge_mint(req.nonce, req.sender, req.targets)

@app.get("/metrics")
async def get_metrics():
    """Prometheus metrics endpoint."""
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
    from ..observability.metrics import metrics_registry, update_metrics

    if engine:
        update_metrics(engine)
    return Response(content=generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)
