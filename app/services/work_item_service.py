"""
Work Item Service

Creates, queries, dispatches and requeues work items.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, not_, or_
from sqlmodel import Session, desc, select

from app.core.context import RegistryContext
from app.core.errors import NotFoundError, NotSupportedError, PermissionDeniedError
from app.models.deletion_request import DeletionRequest
from app.models.intellectual_object import GenericFile, IntellectualObject
from app.models.user import Permission, User
from app.models.work_item import FINAL_STATUSES, Stage, Status, WorkItem, WorkItemAction
from app.services.dispatch_router import first_stage, topic_for
from app.services.requeue_planner import has_completed, requeue_options, set_for_requeue

logger = logging.getLogger(__name__)


def _is_outstanding():
    """SQL condition matching work items that have not reached a final outcome."""
    return not_(or_(
        WorkItem.status.in_(FINAL_STATUSES),
        and_(WorkItem.status == Status.FAILED.value, WorkItem.retry == False),  # noqa: E712
    ))


class WorkItemService:
    """Service for the lifecycle of work items handed to the worker fleet."""

    def __init__(self, db: Session, context: RegistryContext):
        self.db = db
        self.context = context

    def get(self, item_id: int) -> WorkItem:
        item = self.db.get(WorkItem, item_id)
        if item is None:
            raise NotFoundError(f"Work item {item_id} not found")
        return item

    def pending_for_file(self, file_id: int) -> List[WorkItem]:
        """In-progress work items for a generic file."""
        statement = (
            select(WorkItem)
            .where(WorkItem.generic_file_id == file_id, _is_outstanding())
            .order_by(desc(WorkItem.date_processed))
        )
        return list(self.db.exec(statement).all())

    def pending_for_object(self, institution_id: int, bag_name: str) -> List[WorkItem]:
        """
        In-progress work items for an object, matched on institution and bag
        name rather than object id. An ingest or reingest doesn't get an
        object id until it finishes, and we must not delete or restore a bag
        while a new version of it is on its way in.
        """
        statement = (
            select(WorkItem)
            .where(
                WorkItem.institution_id == institution_id,
                WorkItem.name == bag_name,
                _is_outstanding(),
            )
            .order_by(desc(WorkItem.date_processed))
        )
        return list(self.db.exec(statement).all())

    def pending_for_objects(self, objects: List[IntellectualObject]) -> List[WorkItem]:
        """In-progress work items for any of the given objects."""
        pending: List[WorkItem] = []
        for obj in objects:
            pending.extend(self.pending_for_object(obj.institution_id, obj.bag_name))
        return pending

    def last_successful_ingest(self, object_id: int) -> Optional[WorkItem]:
        statement = (
            select(WorkItem)
            .where(
                WorkItem.intellectual_object_id == object_id,
                WorkItem.action == WorkItemAction.INGEST.value,
                WorkItem.status == Status.SUCCESS.value,
                WorkItem.stage.in_([Stage.RECORD.value, Stage.CLEANUP.value]),
            )
            .order_by(desc(WorkItem.date_processed))
            .limit(1)
        )
        return self.db.exec(statement).first()

    def build_item_for_object(self, obj: IntellectualObject, action: WorkItemAction) -> WorkItem:
        """
        Build an unsaved work item carrying the object's deposit identity
        (bag name, bucket, etag) from its last successful ingest.
        """
        now = datetime.utcnow()
        item = WorkItem(
            name=obj.bag_name,
            etag=obj.etag,
            institution_id=obj.institution_id,
            intellectual_object_id=obj.id,
            action=action.value,
            stage=first_stage(action).value,
            status=Status.PENDING.value,
            retry=False,
            note="Not started",
            outcome="Not started",
            date_processed=now,
            size=obj.size,
        )
        ingest = self.last_successful_ingest(obj.id)
        if ingest is not None:
            item.name = ingest.name
            item.etag = ingest.etag
            item.bucket = ingest.bucket
            item.bag_date = ingest.bag_date
        else:
            logger.warning(f"No successful ingest on record for object {obj.id}; using object's own bag name and etag")
        return item

    def save(self, item: WorkItem) -> WorkItem:
        item.updated_at = datetime.utcnow()
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def create_deletion_item(
        self,
        obj: IntellectualObject,
        gf: Optional[GenericFile],
        requested_by: User,
        approved_by: User,
        deletion_request_id: int,
    ) -> WorkItem:
        """
        Create and save a Delete work item. A file deletion still needs the
        parent object, since workers route and record by object.
        """
        item = self.build_item_for_object(obj, WorkItemAction.DELETE)
        if gf is not None:
            item.generic_file_id = gf.id
            item.size = gf.size
        item.user = requested_by.email
        item.inst_approver = approved_by.email
        item.deletion_request_id = deletion_request_id
        return self.save(item)

    def create_restoration_item(
        self,
        obj: IntellectualObject,
        gf: Optional[GenericFile],
        user: User,
    ) -> WorkItem:
        """
        Create and save a restoration work item. The action decides which
        worker picks it up: Glacier-only objects need a Glacier restore.
        """
        if obj.is_glacier_only():
            action = WorkItemAction.GLACIER_RESTORE
        elif gf is not None:
            action = WorkItemAction.RESTORE_FILE
        else:
            action = WorkItemAction.RESTORE_OBJECT
        item = self.build_item_for_object(obj, action)
        if gf is not None:
            item.generic_file_id = gf.id
            item.size = gf.size
        item.user = user.email
        return self.save(item)

    async def dispatch(self, item: WorkItem) -> str:
        """
        Push the item's id into the topic for its action and stage.
        Transport errors go straight back to the caller.
        """
        topic = topic_for(item.action, item.stage)
        logger.info(f"Queueing work item {item.id} to topic {topic}")
        await self.context.queue_client.enqueue(topic, item.id)
        item.queued_at = datetime.utcnow()
        self.save(item)
        return topic

    def requeue_options(self, item_id: int, user: User) -> List[Stage]:
        item = self.get(item_id)
        self._check_requeue_permission(item, user)
        return requeue_options(item)

    async def requeue(self, item_id: int, stage: str, user: User) -> str:
        """Reset a work item to an earlier (or its current) stage and queue it again."""
        item = self.get(item_id)
        self._check_requeue_permission(item, user)
        if has_completed(item):
            logger.error(f"Refusing to requeue work item {item.id}: it has completed with status {item.status}")
            raise NotSupportedError(f"Work item {item.id} has completed and cannot be requeued")
        logger.info(f"Requeueing work item {item.id} to {stage} at the request of {user.email}")
        set_for_requeue(item, stage)
        self.save(item)
        topic = await self.dispatch(item)
        if item.action == WorkItemAction.DELETE.value:
            self._mark_deletion_dispatched(item)
        return topic

    def _mark_deletion_dispatched(self, item: WorkItem) -> None:
        """
        A Delete item requeued by hand is how an operator recovers a
        confirmed request whose items never reached the queue. Record it
        on the request so it drops out of the undispatched report.
        """
        if item.deletion_request_id is None:
            return
        request = self.db.get(DeletionRequest, item.deletion_request_id)
        if request is None or request.work_item_id is not None:
            return
        request.work_item_id = item.id
        self.db.add(request)
        self.db.commit()
        logger.info(f"Deletion request {request.id} recovered by requeue of work item {item.id}")

    def _check_requeue_permission(self, item: WorkItem, user: User) -> None:
        if not user.has_permission(Permission.WORK_ITEM_REQUEUE, item.institution_id):
            raise PermissionDeniedError(f"User {user.email} may not requeue work item {item.id}")
