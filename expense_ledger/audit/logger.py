"""
Audit Logger

DESIGN DECISION: Every ledger command, accepted or refused, is logged.
This provides:
1. Traceability of what changed the ledger and when
2. Diagnostics for refused commands (the store only returns a bool)
3. A single place where post-commit side effects are dispatched

The audit logger:
- Writes structured events through structlog
- Notifies subscribers after a command has committed
- Never lets a failing subscriber affect the command that triggered it
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

import structlog

from expense_ledger.config import LoggingSettings, get_settings
from expense_ledger.models.audit import AuditEvent, AuditSeverity


CommitListener = Callable[[AuditEvent], Union[None, Awaitable[None]]]


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog for the process.

    Call once at startup. JSON lines by default; the console renderer is
    easier to read while developing.
    """
    settings = settings or get_settings().logging
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events locally and fans committed events out to subscribers.
    """

    def __init__(self):
        self._logger = structlog.get_logger("expense_ledger.audit")
        self._listeners: list[CommitListener] = []

    def log(self, event: AuditEvent) -> None:
        """Write an event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def subscribe(self, listener: CommitListener) -> Callable[[], None]:
        """
        Register a post-commit listener.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def publish(self, event: AuditEvent) -> None:
        """
        Log a committed event and notify every listener.

        Listener failures are logged and otherwise ignored: the command
        has already succeeded by the time listeners run.
        """
        self.log(event)
        for listener in list(self._listeners):
            try:
                outcome = listener(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                self._logger.error(
                    "commit_listener_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                    event_type=event.event_type.value,
                )
