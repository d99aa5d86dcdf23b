"""Background task that removes expired entries from the revocation store."""

import asyncio
import math
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import DEFAULT_TOKEN_CLEANUP_INTERVAL_MINUTES
from app.core.logging import get_logger
from app.services.auth import Clock, utc_clock
from app.services.revocation import RevocationStore

logger = get_logger("token_reaper")


def _coerce_interval(interval_minutes: object) -> float:
    try:
        minutes = float(interval_minutes)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_TOKEN_CLEANUP_INTERVAL_MINUTES
    if not math.isfinite(minutes) or minutes <= 0:
        return DEFAULT_TOKEN_CLEANUP_INTERVAL_MINUTES
    return minutes


class TokenReaper:
    """Periodically deletes revoked-token records whose tokens have expired.

    Runs on a fixed schedule: the first reap happens one interval after
    start(), and each later deadline is the next multiple of the interval.
    Ticks missed while a reap was still running are skipped.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        interval_minutes: float = DEFAULT_TOKEN_CLEANUP_INTERVAL_MINUTES,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self.interval = timedelta(minutes=_coerce_interval(interval_minutes))
        self._clock = clock or utc_clock
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background reaping task."""
        if self.running:
            logger.warning("Token reaper is already running")
            return

        self._task = asyncio.create_task(self._reap_loop(), name="token-reaper")
        logger.info(f"Token reaper started (interval: {self.interval.total_seconds():.0f}s)")

    async def stop(self) -> None:
        """Cancel the background task and wait for it to exit."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Token reaper stopped")

    async def _reap_loop(self) -> None:
        loop = asyncio.get_running_loop()
        period = self.interval.total_seconds()
        deadline = loop.time() + period

        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error reaping revoked tokens: {e}")

            # Drop ticks that elapsed while the reap was running
            now = loop.time()
            deadline += period
            if deadline <= now:
                missed = math.floor((now - deadline) / period) + 1
                deadline += missed * period

    async def run_once(self) -> int:
        """Perform a single reap and return the number of records removed."""
        async with self._session_factory() as session:
            try:
                removed = await RevocationStore(session, clock=self._clock).reap()
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        if removed > 0:
            logger.info(f"Removed {removed} expired revoked tokens")
        return removed
