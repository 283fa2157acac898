"""Structured audit logging for realm status changes."""

from typing import Any

import logging
import structlog

from realm_operator.models import RealmResource


def configure_audit_logging(
    *,
    log_level: str | int,
    json_format: bool,
) -> None:
    # Resolve log level via stdlib logging (NOT structlog)
    if isinstance(log_level, str):
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        level = int(log_level)

    processors = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class StatusAuditLogger:
    """Audit logger for status writes on realm resources."""

    def __init__(self, enabled: bool = True, logger: Any = None):
        self._enabled = enabled
        self._logger = logger or structlog.get_logger("audit")

    def log_status_change(
        self,
        resource: RealmResource,
        previous_error: str | None,
    ) -> None:
        """Log a status write.

        Args:
            resource: Resource carrying the status that was just written
            previous_error: Error stored before the write
        """
        if not self._enabled:
            return

        log_data: dict[str, Any] = {
            "event": "realm_status_changed",
            "resource": resource.name,
            "keycloak": resource.spec.keycloak,
            "realm": resource.spec.realm,
            "error": resource.status.error,
            "previous_error": previous_error,
            "timestamp": resource.status.timestamp,
        }

        if resource.namespace:
            log_data["namespace"] = resource.namespace

        # Log at appropriate level
        if resource.status.error is None:
            self._logger.info(**log_data)
        else:
            self._logger.warning(**log_data)
