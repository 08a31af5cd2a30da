"""Link notifications.

Replaces window-level DOM events: listeners subscribe per event and are
called after the Link Record has been persisted.
"""

from collections import defaultdict
from collections.abc import Awaitable, Callable

import logfire

from faragent.domain.model.link_record import LinkRecord
from faragent.domain.value import LinkEvent

Listener = Callable[[LinkEvent, LinkRecord], Awaitable[None]]


class LinkNotifier:
    """Fan-out of wallet-connected / farcaster-connected events."""

    def __init__(self) -> None:
        self._listeners: dict[LinkEvent, list[Listener]] = defaultdict(list)

    def subscribe(self, event: LinkEvent, listener: Listener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            Function that removes the listener again
        """
        self._listeners[event].append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return _unsubscribe

    async def emit(self, event: LinkEvent, record: LinkRecord) -> None:
        """Call every listener of an event.

        A failing listener is logged and does not undo the link.
        """
        logfire.info(
            "Link event", event=event.value, account_id=str(record.account_id)
        )
        for listener in list(self._listeners[event]):
            try:
                await listener(event, record)
            except Exception as e:
                logfire.error(
                    "Link listener failed",
                    event=event.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
