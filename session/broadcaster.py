"""Fan-out of outbound messages to every viewer attached to a session."""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Viewer(Protocol):
    """Anything that can receive a JSON message (e.g. a Starlette WebSocket)."""

    async def send_json(self, data: Any) -> None:
        ...


class Broadcaster:
    """The set of viewers currently attached to one session.

    Delivery is best-effort per viewer: a failed send detaches that viewer
    and never interrupts delivery to the others.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._viewers: list[Viewer] = []

    def __len__(self) -> int:
        return len(self._viewers)

    def attach(self, viewer: Viewer):
        if viewer not in self._viewers:
            self._viewers.append(viewer)
            logger.debug("Viewer attached to %s (%d total)", self.name, len(self._viewers))

    def detach(self, viewer: Viewer):
        if viewer in self._viewers:
            self._viewers.remove(viewer)
            logger.debug("Viewer detached from %s (%d left)", self.name, len(self._viewers))

    async def send(self, viewer: Viewer, message: dict) -> bool:
        try:
            await viewer.send_json(message)
            return True
        except Exception as e:
            logger.debug("Send to viewer of %s failed, detaching: %s", self.name, e)
            self.detach(viewer)
            return False

    async def broadcast(self, message: dict) -> int:
        """Send ``message`` to all viewers attached right now. Returns deliveries."""
        delivered = 0
        for viewer in list(self._viewers):
            if await self.send(viewer, message):
                delivered += 1
        return delivered
