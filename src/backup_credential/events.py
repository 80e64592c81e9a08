"""
Listener plumbing shared by the resolver, caching tiers and singleflight.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Set

from .types import CredentialEvent, CredentialEventListener, CredentialEventType

logger = logging.getLogger(__name__)


class EventSource:
    """Mixin holding a set of CredentialEvent listeners."""

    def __init__(self) -> None:
        self._listeners: Set[CredentialEventListener] = set()

    def on(self, listener: CredentialEventListener) -> Callable[[], None]:
        """Add event listener. Returns a function that removes it."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: CredentialEventListener) -> None:
        """Remove event listener."""
        self._listeners.discard(listener)

    def _emit(
        self,
        type: CredentialEventType,
        key: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Emit an event to all listeners."""
        if not self._listeners:
            return
        event = CredentialEvent(type=type, key=key, timestamp=time.time(), metadata=metadata)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.debug(f"EventSource._emit: listener failed for {type.value}: {e}")
