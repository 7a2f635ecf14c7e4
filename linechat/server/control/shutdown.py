"""
Shutdown coordinator module.

Graceful termination runs in its own task so the operator's handler that asked
for it is driven like every other session instead of tearing itself down.
"""

import asyncio
from typing import Optional

from linechat.common.protocol_definitions import create_shutdown_notice
from linechat.server.chat.registry import Session
from linechat.server.utils.logger import logger


class ShutdownCoordinator:
    """Notify, cancel, stop accepting, wait, exit."""

    def __init__(self, server):
        self.server = server
        self.started = False
        self.finished = asyncio.Event()
        self.exit_status = 0
        self.task: Optional[asyncio.Task] = None

    async def initiate(self, initiator: Session):
        """Start the shutdown sequence. Later calls are ignored."""
        if self.started:
            return
        self.started = True
        logger.info(f"Shutdown requested by '{initiator.name}'")
        self.task = asyncio.create_task(self._run())

    async def wait(self) -> int:
        """Block until shutdown has finished and return the exit status."""
        await self.finished.wait()
        return self.exit_status

    async def _run(self):
        server = self.server
        timeout = server.config.shutdown_timeout
        try:
            # 1. Tell everyone
            sessions = await server.registry.snapshot()
            await server.broadcaster.send(create_shutdown_notice(server.config.color), sessions)

            # 2. Cancel every network session; each tears itself down
            handlers = list(server.handlers.items())
            for task, _ in handlers:
                task.cancel()
            logger.info(f"Cancelled {len(handlers)} session(s)")

            # 3. No new connections
            server.acceptor.stop()

            # 4. Wait for teardown, then force the stragglers
            if handlers:
                _, pending = await asyncio.wait([task for task, _ in handlers], timeout=timeout)
                if pending:
                    logger.warning(f"{len(pending)} session(s) did not close within {timeout}s, aborting")
                    for task, handler in handlers:
                        if task in pending:
                            handler.abort()
                    await asyncio.wait(pending, timeout=timeout)

            await server.acceptor.wait_closed(timeout)

            # 5. The console goes last
            await server.stop_console()
            logger.info("Shutdown complete")
        except Exception as e:
            logger.log_error("shutdown", e)
            self.exit_status = 1
        finally:
            self.finished.set()
