"""
Batch Deletion Guard

Preconditions for deleting many objects in one request. Batch deletion can
wipe out a large part of a depositor's holdings, so it requires a server
held secret on top of the usual permission checks, and it reports every
problem in the batch at once instead of stopping at the first.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from app.core.context import RegistryContext
from app.core.errors import (
    ErrorKind,
    InvalidTokenError,
    NotFoundError,
    NotSupportedError,
    PermissionDeniedError,
    error_for_kind,
)
from app.models.intellectual_object import IntellectualObject
from app.models.user import User
from app.services.work_item_service import WorkItemService

logger = logging.getLogger(__name__)


def _is_uuid(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class BatchDeletionGuard:
    """Validates batch deletion requests before any request is created."""

    def __init__(self, db: Session, context: RegistryContext, work_item_service: Optional[WorkItemService] = None):
        self.db = db
        self.context = context
        self.work_item_service = work_item_service or WorkItemService(db, context)

    def check_secret(self, supplied_secret: Optional[str]) -> None:
        server_key = self.context.settings.batch_deletion_key
        if not _is_uuid(server_key):
            logger.error("Batch deletion key is missing or is not a UUID. Batch deletion is disabled.")
            raise NotSupportedError("Batch deletion is not configured on this server")
        if supplied_secret != server_key:
            logger.warning("Batch deletion attempted with a bad secret key")
            raise InvalidTokenError("Invalid batch deletion key")

    def check_requestor(self, institution_id: int, requestor_id: int) -> User:
        requestor = self.db.get(User, requestor_id)
        if requestor is None:
            raise NotFoundError(f"Requestor {requestor_id} not found")
        if not requestor.is_active:
            raise PermissionDeniedError(f"Requestor {requestor.email} is deactivated")
        if not (requestor.is_admin or requestor.is_inst_admin_of(institution_id)):
            raise PermissionDeniedError(
                f"Requestor {requestor.email} must be an admin of institution {institution_id}"
            )
        return requestor

    def find_violations(self, institution_id: int, object_ids: List[int]) -> List[Dict[str, Any]]:
        """Every reason any object in the batch can't be deleted, in object id order."""
        objects = {
            obj.id: obj
            for obj in self.db.exec(select(IntellectualObject).where(IntellectualObject.id.in_(object_ids))).all()
        }
        violations: List[Dict[str, Any]] = []

        def add(kind: ErrorKind, object_id: int, message: str) -> None:
            violations.append({"kind": kind.value, "object_id": object_id, "message": message})

        for object_id in object_ids:
            obj = objects.get(object_id)
            if obj is None:
                add(ErrorKind.NOT_FOUND, object_id, f"Object {object_id} does not exist")
                continue
            if obj.institution_id != institution_id:
                add(ErrorKind.WRONG_INSTITUTION, object_id,
                    f"Object {obj.identifier} does not belong to institution {institution_id}")
            if obj.is_deleted:
                add(ErrorKind.ALREADY_DELETED, object_id, f"Object {obj.identifier} has already been deleted")
            pending = self.work_item_service.pending_for_object(obj.institution_id, obj.bag_name)
            if pending:
                add(ErrorKind.PENDING_WORK, object_id,
                    f"Object {obj.identifier} has pending work items: {[item.id for item in pending]}")
        return violations

    def validate_batch(
        self,
        institution_id: int,
        requestor_id: int,
        object_ids: List[int],
        supplied_secret: Optional[str],
    ) -> User:
        """
        Check a batch deletion request.

        Returns:
            The requestor, who will be recorded as having asked for the deletion

        Raises:
            RegistryError: of the first violation's kind, with all violations in details
        """
        self.check_secret(supplied_secret)
        requestor = self.check_requestor(institution_id, requestor_id)
        if not object_ids:
            raise error_for_kind(ErrorKind.INVALID_PARAM, "Batch deletion needs at least one object id")

        violations = self.find_violations(institution_id, object_ids)
        if violations:
            logger.warning(
                f"Rejected batch deletion of {len(object_ids)} objects at institution {institution_id}: "
                f"{len(violations)} problem(s)"
            )
            first = ErrorKind(violations[0]["kind"])
            raise error_for_kind(first, violations[0]["message"], violations)

        logger.warning(
            f"Batch deletion of {len(object_ids)} objects at institution {institution_id} "
            f"passed validation for requestor {requestor.email}"
        )
        return requestor
