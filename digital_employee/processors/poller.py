"""
Mailbox poller.

Keeps one IMAP session open, sweeps unseen messages on connect and on every
new-mail push, and hands qualifying requests to the dispatch coordinator.
Lost connections are retried forever after a fixed delay.
"""

import asyncio
import imaplib
from collections import deque
from datetime import date
from typing import Callable

from digital_employee.core.dedup import ProcessedIdentities
from digital_employee.core.exceptions import MailboxError, MessageParseError
from digital_employee.core.logging import get_logger
from digital_employee.core.models import IncomingMessage, PollerState
from digital_employee.processors.dispatcher import DispatchCoordinator
from digital_employee.services.imap import IMAPClient

log = get_logger(__name__)

CONNECTION_ERRORS = (MailboxError, imaplib.IMAP4.error, OSError)


class MailboxPoller:
    """Watches a folder and dispatches each new request exactly once per process."""

    def __init__(
        self,
        client: IMAPClient,
        dispatcher: DispatchCoordinator,
        subject_prefix: str,
        folder: str = "INBOX",
        since: date | None = None,
        reconnect_delay: float = 30.0,
        idle_timeout: float = 29 * 60,
        flush_interval: float = 5.0,
        processed: ProcessedIdentities | None = None,
        on_state_change: Callable[[PollerState], None] | None = None,
    ):
        self.client = client
        self.dispatcher = dispatcher
        self.subject_prefix = subject_prefix
        self.folder = folder
        self.since = since
        self.reconnect_delay = reconnect_delay
        self.idle_timeout = idle_timeout
        self.flush_interval = flush_interval
        self.processed = processed if processed is not None else ProcessedIdentities()
        self.on_state_change = on_state_change

        self._state = PollerState.DISCONNECTED
        self._stop_event = asyncio.Event()
        self._pending: set[asyncio.Task] = set()
        self._read_queue: deque[str] = deque()
        self._closing = False
        self._run_finished = asyncio.Event()
        self._running = False
        self.stats = {
            "swept": 0,
            "fetched": 0,
            "duplicates": 0,
            "ignored": 0,
            "dispatched": 0,
            "replied": 0,
            "reply_failed": 0,
            "parse_errors": 0,
        }

    @property
    def state(self) -> PollerState:
        return self._state

    def _set_state(self, state: PollerState) -> None:
        if state == self._state:
            return
        log.info("poller_state_changed", previous=self._state.value, state=state.value)
        self._state = state
        if self.on_state_change:
            self.on_state_change(state)

    def snapshot(self) -> dict:
        """Counters plus current sizes, for reporting."""
        return {
            **self.stats,
            "processed_identities": len(self.processed),
            "pending_dispatches": len(self._pending),
        }

    async def start(self) -> None:
        """Connect, open the folder and run an initial sweep."""
        self._set_state(PollerState.CONNECTING)
        await asyncio.to_thread(self.client.connect)
        self._set_state(PollerState.CONNECTED)
        await asyncio.to_thread(self.client.select_folder, self.folder)
        await self.sweep()

    async def run(self) -> None:
        """Run until stop(), reconnecting after every lost session."""
        self._stop_event.clear()
        self._run_finished.clear()
        self._closing = False
        self._running = True
        try:
            await self._run_sessions()
        finally:
            self._running = False
            self._set_state(PollerState.STOPPED)
            self._run_finished.set()

    async def _run_sessions(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.start()
                await self._listen()
            except CONNECTION_ERRORS as e:
                if not self._stop_event.is_set():
                    log.error("mailbox_connection_lost", error=str(e))
            except Exception as e:
                if not self._stop_event.is_set():
                    log.exception("poller_error", error=str(e))
            finally:
                await self._close_session()

            if self._stop_event.is_set():
                break

            log.info("mailbox_reconnect_scheduled", delay_seconds=self.reconnect_delay)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.reconnect_delay)
            except asyncio.TimeoutError:
                pass

    async def stop(self, timeout: float = 30.0) -> None:
        """
        Stop the run loop and close the session.

        In-flight dispatches get up to ``timeout`` seconds to finish, then
        their delivered replies are flagged read before the session is
        logged out. Safe to call when the poller never connected.
        """
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        def remaining() -> float:
            return max(0.0, deadline - loop.time())

        if not self._running:
            await self.drain(timeout)
            await self._close_session()
            self._set_state(PollerState.STOPPED)
            return

        # Dispatches may still be spawned by a sweep that is finishing
        while self._pending and remaining():
            log.info("poller_waiting_for_dispatches", pending=len(self._pending))
            await asyncio.wait(list(self._pending), timeout=remaining())
        if self._pending:
            log.warning("poller_dispatches_abandoned", pending=len(self._pending))

        # With read marks queued the run loop's wait is at most flush_interval,
        # so an IDLE in progress is left to expire and the session survives
        # long enough to flush them before logging out
        log.info("poller_stopping", queued_read_marks=len(self._read_queue))
        self._closing = True
        self.client.wake(drop_idle=not self._read_queue)
        try:
            await asyncio.wait_for(self._run_finished.wait(), timeout=remaining())
        except asyncio.TimeoutError:
            log.warning("poller_stop_timed_out")
            self.client.interrupt()

    async def sweep(self) -> int:
        """
        Process every unseen message currently in the folder.

        Returns:
            Number of messages handed to the dispatcher
        """
        self._set_state(PollerState.FETCHING)
        self.stats["swept"] += 1
        await self._flush_read_marks()

        uids = await asyncio.to_thread(self.client.search_unseen, self.since)
        dispatched = 0

        for uid in uids:
            if self._stop_event.is_set():
                break
            try:
                message = await asyncio.to_thread(self.client.fetch_message, uid)
            except MessageParseError as e:
                log.error("message_parse_failed", uid=uid, error=str(e))
                self.stats["parse_errors"] += 1
                continue

            if message is None:
                continue
            self.stats["fetched"] += 1

            if await self._accept(uid, message):
                self._spawn_dispatch(uid, message)
                dispatched += 1

        log.info("sweep_complete", unseen=len(uids), dispatched=dispatched)
        self._set_state(PollerState.IDLE)
        return dispatched

    async def drain(self, timeout: float | None = None) -> None:
        """
        Wait for in-flight dispatches, then flag their messages read.

        For callers driving sweep() directly, without a run loop.
        """
        if self._pending:
            await asyncio.wait(list(self._pending), timeout=timeout)
        await self._flush_read_marks()

    async def _accept(self, uid: str, message: IncomingMessage) -> bool:
        """Deduplicate and apply the subject prefix gate."""
        identity = message.identity
        if not self.processed.add(identity):
            log.info("message_already_processed", uid=uid, identity=identity)
            self.stats["duplicates"] += 1
            return False

        log.info(
            "message_received",
            uid=uid,
            sender=message.sender,
            subject=message.subject,
            received_at=message.received_at.isoformat() if message.received_at else None,
            attachments=len(message.attachments),
        )

        if not message.subject.startswith(self.subject_prefix):
            log.info("message_ignored", uid=uid, reason="subject_prefix", prefix=self.subject_prefix)
            self.stats["ignored"] += 1
            await asyncio.to_thread(self.client.mark_seen, uid)
            return False

        return True

    def _spawn_dispatch(self, uid: str, message: IncomingMessage) -> None:
        task = asyncio.create_task(self._dispatch(uid, message), name=f"dispatch-{uid}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _dispatch(self, uid: str, message: IncomingMessage) -> None:
        self.stats["dispatched"] += 1
        try:
            replied = await self.dispatcher.handle(message)
        except Exception as e:
            log.exception("dispatch_failed", uid=uid, error=str(e))
            replied = False

        if replied:
            self.stats["replied"] += 1
            self._read_queue.append(uid)
        else:
            self.stats["reply_failed"] += 1
            log.warning("message_left_unseen", uid=uid, identity=message.identity)

    async def _flush_read_marks(self) -> None:
        """Flag messages whose replies were delivered. Runs on the session owner."""
        while self._read_queue and self.client.connected:
            uid = self._read_queue[0]
            await asyncio.to_thread(self.client.mark_seen, uid)
            self._read_queue.popleft()

    async def _listen(self) -> None:
        """Wait for new-mail pushes and sweep on each one, until stop() closes the session."""
        while not self._closing:
            await self._flush_read_marks()
            self._set_state(PollerState.IDLE)

            busy = bool(self._pending or self._read_queue)
            timeout = self.flush_interval if busy else self.idle_timeout
            has_mail = await asyncio.to_thread(self.client.wait_for_push, timeout)

            if has_mail and not self._stop_event.is_set():
                log.info("new_mail_notification")
                await self.sweep()

    async def _close_session(self) -> None:
        """Flush queued read marks and log out, if the session is still alive."""
        if self.client.connected:
            try:
                await self._flush_read_marks()
            except CONNECTION_ERRORS as e:
                log.warning("read_marks_not_flushed", pending=len(self._read_queue), error=str(e))
            await asyncio.to_thread(self.client.disconnect)
        if not self._stop_event.is_set():
            self._set_state(PollerState.DISCONNECTED)
