"""
Service wiring -- builds the kernel services for one unit of work.

Everything that needs configuration (policy defaults, thresholds, the
executive role set) is resolved here through ``overtime_config.bridges``,
so the kernel services stay free of configuration imports.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from overtime_batch.services.auto_clock_out import AutoClockOutJob
from overtime_config.bridges import (
    executive_roles_from_config,
    policy_from_config,
    thresholds_from_config,
)
from overtime_config.schema import OvertimeConfig
from overtime_kernel.domain.authority import Authorizer
from overtime_kernel.domain.clock import Clock
from overtime_kernel.services.notification_service import (
    InAppNotificationSink,
    NotificationDispatcher,
    PushGateway,
    PushNotificationSink,
)
from overtime_kernel.services.overtime_request_service import OvertimeRequestService
from overtime_kernel.services.overtime_session_service import OvertimeSessionService
from overtime_kernel.services.policy_resolver import PolicyResolver
from overtime_kernel.services.session_monitor import SessionMonitor
from overtime_kernel.services.time_entry_ledger import TimeEntryLedger
from overtime_kernel.services.user_directory import DirectoryAuthorizer, UserDirectory

AuthorizerFactory = Callable[[UserDirectory], Authorizer]


@dataclass(frozen=True)
class OvertimeServices:
    """The kernel services bound to one SQLAlchemy session."""

    requests: OvertimeRequestService
    sessions: OvertimeSessionService
    dispatcher: NotificationDispatcher


def build_dispatcher(
    session: Session,
    clock: Clock,
    push_gateway: PushGateway | None = None,
) -> NotificationDispatcher:
    sinks = [InAppNotificationSink(session, clock)]
    if push_gateway is not None:
        sinks.append(PushNotificationSink(session, push_gateway))
    return NotificationDispatcher(sinks)


def build_services(
    session: Session,
    clock: Clock,
    config: OvertimeConfig,
    push_gateway: PushGateway | None = None,
    authorizer_factory: AuthorizerFactory | None = None,
) -> OvertimeServices:
    dispatcher = build_dispatcher(session, clock, push_gateway)
    directory = UserDirectory(session)
    if authorizer_factory is not None:
        authorizer = authorizer_factory(directory)
    else:
        authorizer = DirectoryAuthorizer(directory, executive_roles_from_config(config))

    requests = OvertimeRequestService(
        session,
        clock=clock,
        dispatcher=dispatcher,
        directory=directory,
        authorizer=authorizer,
    )
    sessions = OvertimeSessionService(
        session,
        clock=clock,
        dispatcher=dispatcher,
        policy_resolver=PolicyResolver(session, policy_from_config(config)),
        directory=directory,
        ledger=TimeEntryLedger(session, clock),
        thresholds=thresholds_from_config(config),
    )
    return OvertimeServices(requests=requests, sessions=sessions, dispatcher=dispatcher)


def build_auto_clock_out_job(
    session: Session,
    should_stop: Callable[[], bool],
    clock: Clock,
    config: OvertimeConfig,
    push_gateway: PushGateway | None = None,
) -> AutoClockOutJob:
    monitor = SessionMonitor(
        session,
        clock=clock,
        dispatcher=build_dispatcher(session, clock, push_gateway),
        ledger=TimeEntryLedger(session, clock),
        thresholds=thresholds_from_config(config),
    )
    return AutoClockOutJob(session, monitor, clock=clock, should_stop=should_stop)


def auto_clock_out_job_factory(
    clock: Clock,
    config: OvertimeConfig,
    push_gateway: PushGateway | None = None,
) -> Callable[[Session, Callable[[], bool]], AutoClockOutJob]:
    """Job factory for ``PeriodicScheduler``."""

    def factory(session: Session, should_stop: Callable[[], bool]) -> AutoClockOutJob:
        return build_auto_clock_out_job(session, should_stop, clock, config, push_gateway)

    return factory
