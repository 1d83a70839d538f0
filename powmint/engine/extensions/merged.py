"""
Merged mining.

One nonce, several independent engines. Each target checks the nonce against
its own challenge and target; there is no cross-engine transaction, so a
merge can pay on some targets and be refused on others. Results are reported
per target.
"""

import logging
from typing import Dict, Iterable, List
from ...protocol.types.common import RejectReason
from ...protocol.types.mint import MergeResult
from ..core.coordinator import MintCoordinator

logger = logging.getLogger(__name__)


class MergedMintDispatcher:
    def __init__(self, engines: Iterable[MintCoordinator] = ()):
        self.engines: Dict[str, MintCoordinator] = {}
        for engine in engines:
            self.register(engine)

    def register(self, engine: MintCoordinator) -> None:
        if engine.engine_id in self.engines:
            raise ValueError(f"Engine {engine.engine_id} already registered")
        self.engines[engine.engine_id] = engine

    def merge_mint(self, nonce: int, sender: str, target_ids: List[str]) -> List[MergeResult]:
        """
        Forwards `nonce` to every target engine, in order.

        Args:
            nonce: Solution nonce
            sender: Claimant credited on every engine that accepts
            target_ids: engine_id of each target

        Returns:
            One MergeResult per entry of target_ids
        """
        results = []
        for target_id in target_ids:
            engine = self.engines.get(target_id)
            if engine is None:
                results.append(MergeResult(target=target_id, accepted=False, reason=RejectReason.UNKNOWN_TARGET))
                continue

            try:
                outcome = engine.try_mint(nonce, sender)
            except Exception as e:
                # Target state is unchanged; earlier targets stay committed
                logger.error(f"Merge target {target_id} failed for {sender}: {e}", exc_info=True)
                results.append(MergeResult(target=target_id, accepted=False, reason=RejectReason.ENGINE_ERROR))
                continue

            if outcome.accepted:
                results.append(MergeResult(
                    target=target_id,
                    accepted=True,
                    reward=outcome.event.reward,
                    epoch=outcome.event.epoch,
                ))
            else:
                results.append(MergeResult(target=target_id, accepted=False, reason=outcome.reason))

        accepted = sum(1 for r in results if r.accepted)
        logger.info(f"Merge mint by {sender}: {accepted}/{len(results)} targets accepted")
        return results

    def merge(self, nonce: int, sender: str, target_ids: List[str]) -> List[bool]:
        """Per-target acceptance flags."""
        return [r.accepted for r in self.merge_mint(nonce, sender, target_ids)]
