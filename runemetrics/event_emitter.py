import asyncio
import logging

logger = logging.getLogger(__name__)


class EventEmitter:
    """Minimal async pub/sub used to fan out process lifecycle events."""

    def __init__(self):
        self.listeners = {}

    def on(self, event_name, callback, priority=0):
        """Subscribe to an event; lower priority callbacks are started first."""
        self.listeners.setdefault(event_name, []).append((callback, priority))

    async def emit(self, event_name, *args, **kwargs):
        """Run every listener of ``event_name``; failures are logged, not raised."""
        listeners = sorted(self.listeners.get(event_name, []), key=lambda x: x[1])
        if not listeners:
            return

        results = await asyncio.gather(
            *(callback(*args, **kwargs) for callback, _ in listeners),
            return_exceptions=True,
        )

        for (callback, _), result in zip(listeners, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Listener {getattr(callback, '__name__', callback)} "
                    f"for '{event_name}' failed: {result}"
                )


event_emitter = EventEmitter()
