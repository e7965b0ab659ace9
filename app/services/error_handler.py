"""
Error Handling Service

Central place where failures get a severity, an id and a log entry. The
HTTP layer calls into this for both deliberate registry errors and
unexpected exceptions.
"""

import logging
import traceback
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from app.core.errors import PROGRAMMING_ERROR_KINDS, ErrorKind, RegistryError

logger = logging.getLogger(__name__)


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Caller mistakes and expected refusals are routine. Bad tokens and
# permission failures are worth a warning. Programming errors mean
# data in the registry or the calling code is wrong.
KIND_SEVERITY = {
    ErrorKind.NOT_FOUND: ErrorSeverity.LOW,
    ErrorKind.INVALID_PARAM: ErrorSeverity.LOW,
    ErrorKind.PENDING_WORK: ErrorSeverity.LOW,
    ErrorKind.ALREADY_APPROVED: ErrorSeverity.LOW,
    ErrorKind.ALREADY_CANCELLED: ErrorSeverity.LOW,
    ErrorKind.ALREADY_DELETED: ErrorSeverity.LOW,
    ErrorKind.WRONG_INSTITUTION: ErrorSeverity.MEDIUM,
    ErrorKind.NOT_SUPPORTED: ErrorSeverity.MEDIUM,
    ErrorKind.INVALID_TOKEN: ErrorSeverity.MEDIUM,
    ErrorKind.PERMISSION_DENIED: ErrorSeverity.MEDIUM,
}

_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def severity_for(error: Exception) -> ErrorSeverity:
    if isinstance(error, RegistryError):
        if error.kind in PROGRAMMING_ERROR_KINDS:
            return ErrorSeverity.HIGH
        return KIND_SEVERITY.get(error.kind, ErrorSeverity.MEDIUM)
    return ErrorSeverity.HIGH


class ErrorRecord:
    """Represents an error occurrence with context."""

    def __init__(
        self,
        error: Exception,
        severity: ErrorSeverity,
        context: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
        operation: Optional[str] = None,
    ):
        self.error = error
        self.severity = severity
        self.context = context or {}
        self.user_id = user_id
        self.operation = operation
        self.timestamp = datetime.utcnow()
        self.kind = error.kind.value if isinstance(error, RegistryError) else "internal"
        self.error_id = f"{self.kind}_{int(self.timestamp.timestamp() * 1000)}_{uuid.uuid4().hex[:8]}"
        self.error_type = type(error).__name__
        self.error_message = str(error)
        self.stack_trace = traceback.format_exc() if severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL) else None


class ErrorHandlerService:
    """Service for classifying and logging errors."""

    def __init__(self, history_size: int = 100):
        self.history_size = history_size
        self.error_history: List[ErrorRecord] = []

    def handle_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
        operation: Optional[str] = None,
    ) -> ErrorRecord:
        """
        Record and log an error.

        Args:
            error: The exception that occurred
            context: Request details worth logging
            user_id: ID of the user when the error occurred
            operation: Name of the operation that failed

        Returns:
            The error record, whose error_id is returned to the client
        """
        record = ErrorRecord(
            error=error,
            severity=severity_for(error),
            context=context,
            user_id=user_id,
            operation=operation,
        )
        self.error_history.append(record)
        overflow = len(self.error_history) - max(self.history_size, 0)
        if overflow > 0:
            del self.error_history[:overflow]

        message = f"Error {record.error_id} in {record.operation}: {record.error_type}: {record.error_message}"
        if isinstance(error, RegistryError) and error.kind in PROGRAMMING_ERROR_KINDS:
            message = f"Programming or data error. {message}"
        logger.log(
            _LOG_LEVELS[record.severity],
            message,
            extra={
                "error_id": record.error_id,
                "kind": record.kind,
                "severity": record.severity.value,
                "user_id": record.user_id,
                "context": record.context,
            },
        )
        if record.stack_trace and record.severity == ErrorSeverity.HIGH:
            logger.debug(record.stack_trace)
        return record

    def get_error_statistics(self) -> Dict[str, Any]:
        """Error counts by kind and severity, for monitoring."""
        by_kind: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for record in self.error_history:
            by_kind[record.kind] = by_kind.get(record.kind, 0) + 1
            by_severity[record.severity.value] = by_severity.get(record.severity.value, 0) + 1
        return {
            "total_errors": len(self.error_history),
            "by_kind": by_kind,
            "by_severity": by_severity,
        }

    def clear_error_history(self) -> None:
        self.error_history.clear()


# Global error handler instance
error_handler = ErrorHandlerService()
