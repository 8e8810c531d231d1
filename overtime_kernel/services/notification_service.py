"""
Notification delivery -- fire-and-forget sinks behind one dispatcher.

Responsibility:
    ``NotificationDispatcher`` fans a ``Notification`` out to every
    configured sink.  A sink failure is logged and swallowed: delivery
    problems must never fail the workflow or session operation that
    produced the notification.

    Two sinks ship:
      * ``InAppNotificationSink`` writes a ``notifications`` row inside a
        SAVEPOINT, so a failed insert cannot poison the caller's
        transaction.
      * ``PushNotificationSink`` looks up the user's active device tokens
        and hands a multicast payload to a ``PushGateway``.

Ordering contract:
    Services flush their own state before dispatching.  Opening a
    SAVEPOINT autoflushes the session, and a version conflict must surface
    from the service flush, not from inside a sink.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.orm import Session

from overtime_kernel.domain.clock import Clock, SystemClock
from overtime_kernel.domain.notification import Notification
from overtime_kernel.logging_config import get_logger
from overtime_kernel.models.device_token import DeviceTokenModel
from overtime_kernel.models.notification import NotificationModel

logger = get_logger("services.notifications")


@runtime_checkable
class NotificationSink(Protocol):
    def send(self, notification: Notification) -> None: ...


@runtime_checkable
class PushGateway(Protocol):
    """Transport for push messages (FCM, APNs, ...)."""

    def send_multicast(
        self, tokens: Sequence[str], title: str, body: str, data: dict[str, str],
    ) -> None: ...


class LoggingPushGateway:
    """Push gateway that records the multicast instead of sending it."""

    def send_multicast(
        self, tokens: Sequence[str], title: str, body: str, data: dict[str, str],
    ) -> None:
        logger.info(
            "push_multicast_dispatched",
            extra={
                "token_count": len(tokens),
                "push_title": title,
                "notification_type": data.get("type"),
            },
        )


class InAppNotificationSink:
    """Persists notifications to the in-app inbox."""

    def __init__(self, session: Session, clock: Clock | None = None) -> None:
        self._session = session
        self._clock = clock or SystemClock()

    def send(self, notification: Notification) -> None:
        now = self._clock.now()
        with self._session.begin_nested():
            self._session.add(
                NotificationModel(
                    user_id=notification.user_id,
                    organization_id=notification.organization_id,
                    category=notification.category.value,
                    type=notification.type,
                    title=notification.title,
                    message=notification.message,
                    data=dict(notification.data),
                    priority=notification.priority.value,
                    read=False,
                    created_at=now,
                    updated_at=now,
                )
            )


class PushNotificationSink:
    """Sends the push variant of a notification to the user's active devices."""

    def __init__(self, session: Session, gateway: PushGateway) -> None:
        self._session = session
        self._gateway = gateway

    def active_tokens(self, user_id: str) -> list[str]:
        stmt = select(DeviceTokenModel.token).where(
            DeviceTokenModel.user_id == user_id,
            DeviceTokenModel.is_active.is_(True),
        )
        return list(self._session.scalars(stmt))

    def send(self, notification: Notification) -> None:
        if not notification.wants_push:
            return
        tokens = self.active_tokens(notification.user_id)
        if not tokens:
            logger.debug(
                "push_skipped_no_tokens",
                extra={"user_id": notification.user_id, "notification_type": notification.type},
            )
            return
        # Push data payloads are string-valued
        data = {key: str(value) for key, value in notification.data.items()}
        data["type"] = notification.category.value
        self._gateway.send_multicast(
            tokens,
            notification.push_title or notification.title,
            notification.push_body or notification.message,
            data,
        )


class NotificationDispatcher:
    """Delivers notifications to every sink; never raises."""

    def __init__(self, sinks: Iterable[NotificationSink] = ()) -> None:
        self._sinks = tuple(sinks)

    @property
    def sinks(self) -> tuple[NotificationSink, ...]:
        return self._sinks

    def dispatch(self, notification: Notification) -> None:
        for sink in self._sinks:
            try:
                sink.send(notification)
            except Exception:
                logger.warning(
                    "notification_delivery_failed",
                    extra={
                        "sink": type(sink).__name__,
                        "user_id": notification.user_id,
                        "notification_type": notification.type,
                    },
                    exc_info=True,
                )

    def dispatch_all(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            self.dispatch(notification)
