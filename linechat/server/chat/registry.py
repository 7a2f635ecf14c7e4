"""
User registry.

The registry is the only state shared between session handlers. Every
operation goes through one asyncio.Lock so a name check and the insertion it
guards can never interleave with another login.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from linechat.common.constants import Roles
from linechat.common.errors import NameTakenError


@dataclass(frozen=True, eq=False)
class Session:
    """One logged-in participant.

    Sessions compare by identity. Name and role never change after login;
    only registry membership does.
    """
    name: str
    role: str
    channel: object = field(repr=False)
    address: Optional[tuple] = None
    console: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Roles.ADMIN


class UserRegistry:
    """Concurrency-safe set of active sessions keyed by display name."""

    def __init__(self):
        self.sessions: Dict[str, Session] = {}  # name -> session, in login order
        self.lock = asyncio.Lock()

    async def insert(self, name: str, role: str, channel, address: Optional[tuple] = None,
                     console: bool = False) -> Session:
        """Create and register a session, or raise NameTakenError."""
        async with self.lock:
            if name in self.sessions:
                raise NameTakenError(name)
            session = Session(name, role, channel, address, console)
            self.sessions[name] = session
            return session

    async def remove(self, session: Session) -> bool:
        """Remove a session. Returns False if it was not registered."""
        async with self.lock:
            if self.sessions.get(session.name) is not session:
                return False
            del self.sessions[session.name]
            return True

    async def snapshot(self) -> List[Session]:
        """Point-in-time copy of the active sessions, safe to iterate unlocked."""
        async with self.lock:
            return list(self.sessions.values())

    async def count(self) -> int:
        return len(await self.snapshot())

    async def find(self, session: Session) -> Optional[Session]:
        for candidate in await self.snapshot():
            if candidate is session:
                return candidate
        return None

    async def find_by_name(self, name: str) -> Optional[Session]:
        async with self.lock:
            return self.sessions.get(name)

    async def names(self) -> List[str]:
        return [session.name for session in await self.snapshot()]
