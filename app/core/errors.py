"""
Registry error kinds.

Every failure this service reports on purpose carries one ErrorKind. The
HTTP boundary maps kinds to status codes in one place
(app.middleware.error_middleware); nothing else compares error messages.
"""

import enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, enum.Enum):
    PENDING_WORK = "pending_work"
    INVALID_TOKEN = "invalid_token"
    ALREADY_APPROVED = "already_approved"
    ALREADY_CANCELLED = "already_cancelled"
    ALREADY_DELETED = "already_deleted"
    UNSUPPORTED_ACTION = "unsupported_action"
    UNSUPPORTED_COMBINATION = "unsupported_combination"
    INVALID_STAGE = "invalid_stage"
    NOT_SUPPORTED = "not_supported"
    PERMISSION_DENIED = "permission_denied"
    WRONG_INSTITUTION = "wrong_institution"
    NOT_FOUND = "not_found"
    INVALID_PARAM = "invalid_param"


# Kinds that mean the data model has been violated or a caller has a bug.
PROGRAMMING_ERROR_KINDS = frozenset({
    ErrorKind.UNSUPPORTED_ACTION,
    ErrorKind.UNSUPPORTED_COMBINATION,
    ErrorKind.INVALID_STAGE,
})


class RegistryError(Exception):
    """Base class for errors this service raises deliberately."""
    kind: ErrorKind = ErrorKind.INVALID_PARAM
    default_message = "invalid parameter"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.details = details or []
        super().__init__(self.message)


class PendingWorkError(RegistryError):
    kind = ErrorKind.PENDING_WORK
    default_message = "task cannot be completed because this object has pending work items"


class InvalidTokenError(RegistryError):
    kind = ErrorKind.INVALID_TOKEN
    default_message = "invalid token"


class AlreadyApprovedError(RegistryError):
    kind = ErrorKind.ALREADY_APPROVED
    default_message = "deletion request has already been approved"


class AlreadyCancelledError(RegistryError):
    kind = ErrorKind.ALREADY_CANCELLED
    default_message = "deletion request has already been cancelled"


class AlreadyDeletedError(RegistryError):
    kind = ErrorKind.ALREADY_DELETED
    default_message = "item has already been deleted"


class UnsupportedActionError(RegistryError):
    kind = ErrorKind.UNSUPPORTED_ACTION
    default_message = "action has no stage sequence"


class UnsupportedCombinationError(RegistryError):
    kind = ErrorKind.UNSUPPORTED_COMBINATION
    default_message = "no queue topic for this action and stage"


class InvalidStageError(RegistryError):
    kind = ErrorKind.INVALID_STAGE
    default_message = "stage is missing or invalid"


class NotSupportedError(RegistryError):
    kind = ErrorKind.NOT_SUPPORTED
    default_message = "operation not supported"


class PermissionDeniedError(RegistryError):
    kind = ErrorKind.PERMISSION_DENIED
    default_message = "permission denied"


class WrongInstitutionError(RegistryError):
    kind = ErrorKind.WRONG_INSTITUTION
    default_message = "resource or institution id mismatch"


class NotFoundError(RegistryError):
    kind = ErrorKind.NOT_FOUND
    default_message = "record not found"


class InvalidParamError(RegistryError):
    kind = ErrorKind.INVALID_PARAM
    default_message = "invalid parameter"


_ERRORS_BY_KIND = {cls.kind: cls for cls in RegistryError.__subclasses__()}


def error_for_kind(kind: ErrorKind, message: Optional[str] = None,
                   details: Optional[List[Dict[str, Any]]] = None) -> RegistryError:
    """Build the exception class registered for a kind."""
    return _ERRORS_BY_KIND[kind](message, details)
