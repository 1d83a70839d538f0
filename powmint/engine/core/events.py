"""
Mint notifications.

The engine publishes one MintEvent per accepted solution, after the state
swap and before the submitter gets its answer. Listeners run synchronously
in the minting thread.
"""
from typing import Callable, Dict, List
import logging
from ...protocol.types.mint import MintEvent

logger = logging.getLogger(__name__)

MINT_EVENT = "mint"

MintListener = Callable[..., None]


class EventBus:
    """
    Listeners keyed by event name, called as listener(event=<MintEvent>).

    A listener that raises is logged and skipped; the mint it reports is
    already committed.
    """

    def __init__(self):
        self.listeners: Dict[str, List[MintListener]] = {}

    def subscribe(self, event_type: str, callback: MintListener) -> None:
        self.listeners.setdefault(event_type, []).append(callback)
        logger.debug(f"Subscribed to event: {event_type}")

    def publish_mint(self, event: MintEvent) -> None:
        """Delivers an accepted mint to every MINT_EVENT listener."""
        for callback in list(self.listeners.get(MINT_EVENT, [])):
            try:
                callback(event=event)
            except Exception as e:
                logger.error(f"Mint listener failed for epoch {event.epoch} of {event.engine_id}: {e}", exc_info=True)

    def clear(self) -> None:
        self.listeners.clear()


# Global event bus instance
event_bus = EventBus()
