"""
Broadcast delivery.

Delivery is best-effort and independent per recipient: each write runs in its
own coroutine with its own timeout, and a failed recipient is logged and
reported back rather than raised.
"""

import asyncio
from typing import Iterable, List, Optional

from linechat.common.constants import DELIVERY_TIMEOUT
from linechat.common.errors import DeliveryError
from linechat.server.chat.registry import Session
from linechat.server.utils.logger import logger


class Broadcaster:
    """Sends one message to many sessions."""

    def __init__(self, delivery_timeout: float = DELIVERY_TIMEOUT):
        self.delivery_timeout = delivery_timeout

    async def send(self, message: str, recipients: Iterable[Session]) -> List[Session]:
        """
        Deliver a message to every recipient concurrently.
        Returns the sessions that could not be reached.
        """
        recipients = list(recipients)
        if not recipients:
            return []

        results = await asyncio.gather(*(self._deliver(message, session) for session in recipients))
        return [session for session, delivered in zip(recipients, results) if not delivered]

    async def send_excluding(self, message: str, sessions: Iterable[Session],
                             excluded: Optional[Session] = None) -> List[Session]:
        """Deliver to every session except ``excluded``."""
        return await self.send(message, [s for s in sessions if s is not excluded])

    async def _deliver(self, message: str, session: Session) -> bool:
        try:
            await asyncio.wait_for(session.channel.send(message), self.delivery_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Broadcast to '{session.name}' timed out after {self.delivery_timeout}s")
        except (DeliveryError, ConnectionError, OSError) as e:
            logger.warning(f"Failed to broadcast to '{session.name}': {e}")
        return False
