import asyncio
import logging
import time

from remindercall.booking_sync import BookingSyncClient
from remindercall.pending_calls import PendingCall
from remindercall.post_call import persist_call
from remindercall.session import CallSession
from remindercall.states import Outcome

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns every live CallSession, keyed by call id.

    The store is injected so tests (or a shared backend) can supply their own
    mapping.  All access happens on the event loop, and end() marks a
    session finalized before its first await, so a hangup signal, the TTL
    sweep and an in-flight turn can race on the same call and still persist
    it exactly once.
    """

    def __init__(
        self,
        sink: BookingSyncClient | None,
        ttl_seconds: float,
        store: dict | None = None,
    ):
        self.sink = sink
        self.ttl_seconds = ttl_seconds
        self._store: dict[str, CallSession] = store if store is not None else {}
        self._sweeper: asyncio.Task | None = None

    def create(self, pending: PendingCall) -> CallSession:
        session = CallSession(
            call_id=pending.call_id,
            customer_name=pending.customer_name,
            customer_phone=pending.customer_phone,
            asset_model=pending.asset_model,
            asset_id=pending.asset_id,
            service_type=pending.service_type,
            due_date=pending.due_date,
            started_at=time.time(),
        )
        self._store[pending.call_id] = session
        logger.info("Session created for call %s (%s)", pending.call_id, pending.customer_name or "unnamed")
        return session

    def get(self, call_id: str) -> CallSession | None:
        return self._store.get(call_id)

    def __contains__(self, call_id: str) -> bool:
        return call_id in self._store

    def __len__(self) -> int:
        return len(self._store)

    async def end(self, call_id: str, reason: str, outcome: Outcome = Outcome.NO_RESPONSE) -> bool:
        """Finalize a session: record the outcome, persist once, then drop it.

        Returns False if the session is unknown or was already finalized.
        """
        session = self._store.get(call_id)
        if session is None or session.finalized:
            return False

        session.finalized = True
        session.outcome = outcome
        session.ended_at = time.time()
        logger.info("Session ended for call %s: reason=%s outcome=%s turns=%d",
                    call_id, reason, outcome.value, session.total_turns)

        try:
            await persist_call(session, outcome, self.sink)
        except Exception as e:
            logger.error("Persisting call %s failed: %s", call_id, e)
        finally:
            self._store.pop(call_id, None)
        return True

    async def sweep_expired(self, now: float | None = None) -> int:
        """Force-end every session older than the TTL. Returns how many ended."""
        if now is None:
            now = time.time()
        expired = [
            call_id for call_id, session in list(self._store.items())
            if not session.finalized and now - session.started_at > self.ttl_seconds
        ]
        ended = 0
        for call_id in expired:
            logger.warning("Session for call %s exceeded TTL of %.0fs, force-ending", call_id, self.ttl_seconds)
            if await self.end(call_id, "ttl_expired", Outcome.NO_RESPONSE):
                ended += 1
        return ended

    async def run_sweeper(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep_expired()
            except Exception as e:
                logger.error("Session sweep failed: %s", e)

    def start_sweeper(self, interval: float) -> None:
        if self._sweeper and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self.run_sweeper(interval))
        logger.info("Session sweeper started (interval=%.0fs, ttl=%.0fs)", interval, self.ttl_seconds)

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
        logger.info("Session sweeper stopped")
