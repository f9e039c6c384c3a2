"""Notification Service - best-effort outbound inbox records.

Two pieces:
    - NotificationService: writes one Notification row (create_notification).
    - NotificationDispatcher: an asyncio queue drained by a background worker.
      Lifecycle services enqueue messages after their transaction commits;
      each delivery runs in its own session and a failure is logged and
      dropped. Nothing is retried and callers are never blocked.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

from internhub.infrastructure.database.orm_models import Notification
from internhub.infrastructure.database.repositories import NotificationRepository
from internhub.logging_config import get_logger

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from internhub.domain.notification_protocol import NotificationMessage

logger = get_logger(__name__)


class NotificationService:
    """Creates notification records."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = NotificationRepository(session)

    async def create_notification(
        self,
        user_id: uuid.UUID,
        type: str,  # noqa: A002 - mirrors the record field
        title: str,
        message: str,
        metadata: dict | None = None,
    ) -> Notification:
        """Insert a notification for a user."""
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            metadata_json=metadata,
        )
        try:
            return await self._repo.create(notification)
        except Exception as exc:
            logger.error(
                "notification.create_failed",
                error=str(exc),
                user_id=str(user_id),
                type=type,
            )
            raise


class NotificationDispatcher:
    """Queue + background worker for fire-and-forget notifications.

    Usage:
        dispatcher = NotificationDispatcher(database.session_factory)
        await dispatcher.start()
        dispatcher.enqueue(message)   # never raises, never blocks
        await dispatcher.stop()       # drains (bounded), then cancels the worker
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_queue_size: int = 1000,
        drain_timeout: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self._queue: asyncio.Queue[NotificationMessage] = asyncio.Queue(
            maxsize=max_queue_size
        )
        self._drain_timeout = drain_timeout
        self._worker: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the background worker."""
        if self.is_running:
            return
        self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")
        logger.info("notification.dispatcher_started")

    async def stop(self) -> None:
        """Drain what is queued (up to drain_timeout), then stop the worker."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=self._drain_timeout)
        except TimeoutError:
            logger.warning("notification.drain_timeout", dropped=self._queue.qsize())
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        logger.info("notification.dispatcher_stopped")

    def enqueue(self, message: NotificationMessage) -> None:
        """Schedule a message for delivery. Drops it if the queue is full."""
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("notification.queue_full", **message.to_dict())

    async def join(self) -> None:
        """Wait until every queued message has been attempted."""
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self._deliver(message)
            except Exception as exc:
                logger.error(
                    "notification.delivery_failed",
                    error=str(exc),
                    **message.to_dict(),
                )
            finally:
                self._queue.task_done()

    async def _deliver(self, message: NotificationMessage) -> None:
        async with self._session_factory() as session:
            svc = NotificationService(session)
            await svc.create_notification(
                user_id=message.user_id,
                type=message.type,
                title=message.title,
                message=message.message,
                metadata=message.metadata or None,
            )
            await session.commit()
        logger.debug("notification.delivered", user_id=str(message.user_id), type=message.type)
