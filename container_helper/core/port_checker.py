"""Debounced host port availability checks."""

import asyncio
import logging
from typing import Optional

from ..services.exceptions import ServiceError
from .constants import PORT_CHECK_DEBOUNCE

logger = logging.getLogger(__name__)


class PortAvailabilityChecker:
    """Asks the engine whether a host port is already published.

    Rapid calls to :meth:`check_port` coalesce into one engine query for the
    last port after ``quiet_period`` seconds without a new call. A result is
    applied only if its port is still the latest requested one. Engine
    failures of any kind are reported as available so a flaky daemon never
    blocks the user.
    """

    def __init__(self, engine, quiet_period: float = PORT_CHECK_DEBOUNCE):
        self.engine = engine
        self.quiet_period = quiet_period
        self.requested_port: Optional[int] = None
        self.port: Optional[int] = None
        self.in_use: Optional[bool] = None
        self._timer: Optional[asyncio.Task] = None
        self._checks: set = set()

    @property
    def checking(self) -> bool:
        return self._timer is not None or bool(self._checks)

    @property
    def available(self) -> Optional[bool]:
        return None if self.in_use is None else not self.in_use

    def check_port(self, port: int) -> None:
        """Request a check for a port. Requires a running event loop."""
        self.requested_port = port
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._debounce(port))

    async def _debounce(self, port: int) -> None:
        await asyncio.sleep(self.quiet_period)
        self._timer = None
        # Separate task so a later request never cancels an in-flight query
        task = asyncio.create_task(self._query(port))
        self._checks.add(task)
        task.add_done_callback(self._checks.discard)

    async def _query(self, port: int) -> None:
        try:
            in_use = await self.engine.check_port(port)
        except ServiceError as e:
            logger.warning(f"Port check for {port} failed, assuming available: {e}")
            in_use = False
        except Exception as e:
            logger.error(f"Unexpected error checking port {port}, assuming available: {e!r}", exc_info=e)
            in_use = False

        if port != self.requested_port:
            logger.debug(f"Discarding port check for {port}, latest is {self.requested_port}")
            return
        self.port = port
        self.in_use = in_use

    async def wait(self) -> None:
        """Wait for the pending timer and all in-flight checks."""
        while self._timer is not None or self._checks:
            pending = list(self._checks)
            if self._timer is not None:
                pending.append(self._timer)
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Cancel the pending timer. In-flight checks are left to finish."""
        if self._timer is not None:
            self._timer.cancel()
            await asyncio.gather(self._timer, return_exceptions=True)
            self._timer = None
