"""
Restoration Service

Creates and queues work items that restore objects or files from
preservation storage back to the depositor.
"""

import logging

from sqlmodel import Session

from app.core.context import RegistryContext
from app.core.errors import AlreadyDeletedError, NotFoundError, PendingWorkError, PermissionDeniedError
from app.models.intellectual_object import GenericFile, IntellectualObject
from app.models.user import Permission, User
from app.models.work_item import WorkItem
from app.services.work_item_service import WorkItemService

logger = logging.getLogger(__name__)


class RestorationService:
    """Service for restoration requests."""

    def __init__(self, db: Session, context: RegistryContext):
        self.db = db
        self.context = context
        self.work_item_service = WorkItemService(db, context)

    async def restore_object(self, object_id: int, user: User) -> WorkItem:
        obj = self.db.get(IntellectualObject, object_id)
        if obj is None:
            raise NotFoundError(f"Intellectual object {object_id} not found")
        if not user.has_permission(Permission.OBJECT_RESTORE, obj.institution_id):
            raise PermissionDeniedError(f"User {user.email} may not restore object {obj.identifier}")
        if obj.is_deleted:
            raise AlreadyDeletedError(f"Object {obj.identifier} has been deleted and cannot be restored")
        pending = self.work_item_service.pending_for_object(obj.institution_id, obj.bag_name)
        if pending:
            raise PendingWorkError(f"Object {obj.identifier} has pending work items: {[item.id for item in pending]}")

        item = self.work_item_service.create_restoration_item(obj, None, user)
        await self.work_item_service.dispatch(item)
        logger.info(f"User {user.email} requested restoration of object {obj.identifier} (work item {item.id})")
        return item

    async def restore_file(self, file_id: int, user: User) -> WorkItem:
        gf = self.db.get(GenericFile, file_id)
        if gf is None:
            raise NotFoundError(f"Generic file {file_id} not found")
        if not user.has_permission(Permission.FILE_RESTORE, gf.institution_id):
            raise PermissionDeniedError(f"User {user.email} may not restore file {gf.identifier}")
        if gf.is_deleted:
            raise AlreadyDeletedError(f"File {gf.identifier} has been deleted and cannot be restored")
        obj = self.db.get(IntellectualObject, gf.intellectual_object_id)
        pending = self.work_item_service.pending_for_file(gf.id)
        pending += self.work_item_service.pending_for_object(obj.institution_id, obj.bag_name)
        if pending:
            raise PendingWorkError(f"File {gf.identifier} has pending work items: {sorted({item.id for item in pending})}")

        item = self.work_item_service.create_restoration_item(obj, gf, user)
        await self.work_item_service.dispatch(item)
        logger.info(f"User {user.email} requested restoration of file {gf.identifier} (work item {item.id})")
        return item
