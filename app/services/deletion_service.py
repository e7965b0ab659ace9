"""
Deletion Request Service

Drives a deletion request from creation through review to confirmation or
cancellation. Confirmation is the only path that creates and queues Delete
work items.

A request is created with a random confirmation token. The plaintext token
is put into the review link emailed to the institution's admins and is
never stored; the database only keeps its hash. A request loaded from the
database therefore can never produce a review link again.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import or_, update
from sqlmodel import Session, select

from app.core.context import RegistryContext
from app.core.errors import (
    AlreadyApprovedError,
    AlreadyCancelledError,
    AlreadyDeletedError,
    InvalidTokenError,
    NotFoundError,
    NotSupportedError,
    PendingWorkError,
    PermissionDeniedError,
)
from app.models.alert import Alert, AlertType
from app.models.deletion_request import (
    DeletionRequest,
    DeletionRequestGenericFile,
    DeletionRequestIntellectualObject,
)
from app.models.intellectual_object import GenericFile, IntellectualObject
from app.models.user import Permission, Role, User
from app.models.work_item import WorkItem
from app.services.alert_service import AlertService
from app.services.work_item_service import WorkItemService

logger = logging.getLogger(__name__)


class Deletion:
    """
    A deletion request plus what it takes to notify people about it: the
    institution's active admins, the API root URL for links and, only
    right after creation, the plaintext confirmation token.
    """

    def __init__(
        self,
        request: DeletionRequest,
        base_url: str,
        inst_admins: List[User],
        confirmation_token: Optional[str] = None,
        work_items: Optional[List[WorkItem]] = None,
    ):
        self.request = request
        self.base_url = base_url.rstrip("/")
        self.inst_admins = inst_admins
        self.confirmation_token = confirmation_token
        self.work_items = work_items or []

    @property
    def item_type(self) -> str:
        return "object" if self.request.intellectual_objects else "file"

    @property
    def identifiers(self) -> List[str]:
        return [gf.identifier for gf in self.request.generic_files] + [
            obj.identifier for obj in self.request.intellectual_objects
        ]

    def review_url(self) -> str:
        """
        Link for an institutional admin to review this request. Only works
        on a request created in this call, while the plaintext token is
        still in memory.
        """
        if not self.confirmation_token:
            raise NotSupportedError("Review URL is only available when the deletion request is created")
        return f"{self.base_url}/deletions/review/{self.request.id}?token={self.confirmation_token}"

    def read_only_url(self) -> str:
        return f"{self.base_url}/deletions/show/{self.request.id}"

    def work_item_urls(self) -> List[str]:
        if not self.work_items:
            raise NotSupportedError("Deletion request has no work items")
        return [f"{self.base_url}/work_items/{item.id}" for item in self.work_items]


class DeletionService:
    """Service for creating, reviewing, confirming and cancelling deletion requests."""

    def __init__(
        self,
        db: Session,
        context: RegistryContext,
        work_item_service: Optional[WorkItemService] = None,
        alert_service: Optional[AlertService] = None,
    ):
        self.db = db
        self.context = context
        self.work_item_service = work_item_service or WorkItemService(db, context)
        self.alert_service = alert_service or AlertService(db, context)

    @property
    def link_root(self) -> str:
        settings = self.context.settings
        return f"{settings.base_url.rstrip('/')}{settings.api_v1_prefix}"

    # Loading

    def get_request(self, request_id: int) -> DeletionRequest:
        request = self.db.get(DeletionRequest, request_id)
        if request is None:
            raise NotFoundError(f"Deletion request {request_id} not found")
        return request

    def load_inst_admins(self, institution_id: int) -> List[User]:
        """Active institutional admins who review deletions for an institution."""
        statement = select(User).where(
            User.institution_id == institution_id,
            User.role == Role.INST_ADMIN.value,
            User.deactivated_at == None,  # noqa: E711
        )
        return list(self.db.exec(statement).all())

    def load_work_items(self, request_id: int) -> List[WorkItem]:
        statement = select(WorkItem).where(WorkItem.deletion_request_id == request_id).order_by(WorkItem.id)
        return list(self.db.exec(statement).all())

    def _lock_file(self, file_id: int) -> GenericFile:
        gf = self.db.exec(select(GenericFile).where(GenericFile.id == file_id).with_for_update()).first()
        if gf is None:
            raise NotFoundError(f"Generic file {file_id} not found")
        return gf

    def _lock_objects(self, object_ids: Iterable[int]) -> List[IntellectualObject]:
        ids = list(object_ids)
        statement = (
            select(IntellectualObject)
            .where(IntellectualObject.id.in_(ids))
            .order_by(IntellectualObject.id)
            .with_for_update()
        )
        objects = list(self.db.exec(statement).all())
        if len(objects) != len(set(ids)):
            found = {obj.id for obj in objects}
            missing = sorted(set(ids) - found)
            raise NotFoundError(f"Intellectual objects not found: {missing}")
        return objects

    def open_requests_for_file(self, gf: GenericFile) -> List[DeletionRequest]:
        """Deletion requests awaiting review that cover a file, directly or through its object."""
        by_file = select(DeletionRequestGenericFile.deletion_request_id).where(
            DeletionRequestGenericFile.generic_file_id == gf.id
        )
        by_object = select(DeletionRequestIntellectualObject.deletion_request_id).where(
            DeletionRequestIntellectualObject.intellectual_object_id == gf.intellectual_object_id
        )
        return self._open_requests(or_(DeletionRequest.id.in_(by_file), DeletionRequest.id.in_(by_object)))

    def open_requests_for_object(self, obj: IntellectualObject) -> List[DeletionRequest]:
        """Deletion requests awaiting review that cover an object or any of its files."""
        by_object = select(DeletionRequestIntellectualObject.deletion_request_id).where(
            DeletionRequestIntellectualObject.intellectual_object_id == obj.id
        )
        by_file = (
            select(DeletionRequestGenericFile.deletion_request_id)
            .join(GenericFile, GenericFile.id == DeletionRequestGenericFile.generic_file_id)
            .where(GenericFile.intellectual_object_id == obj.id)
        )
        return self._open_requests(or_(DeletionRequest.id.in_(by_object), DeletionRequest.id.in_(by_file)))

    def _open_requests(self, condition) -> List[DeletionRequest]:
        statement = (
            select(DeletionRequest)
            .where(
                condition,
                DeletionRequest.confirmed_at == None,  # noqa: E711
                DeletionRequest.cancelled_at == None,  # noqa: E711
            )
            .order_by(DeletionRequest.id)
        )
        return list(self.db.exec(statement).all())

    def _pending_work(self, files: List[GenericFile], objects: List[IntellectualObject]) -> List[WorkItem]:
        """Outstanding work items on any target. A file's parent bag counts too."""
        pending: List[WorkItem] = []
        for gf in files:
            obj = self.db.get(IntellectualObject, gf.intellectual_object_id)
            pending += self.work_item_service.pending_for_file(gf.id)
            pending += self.work_item_service.pending_for_object(obj.institution_id, obj.bag_name)
        pending += self.work_item_service.pending_for_objects(objects)
        return pending

    def _check_idle(self, files: List[GenericFile], objects: List[IntellectualObject]) -> None:
        """
        Refuse to open a new request on targets with outstanding work or
        on targets another request is already waiting to delete. Must run
        while the target rows are locked.
        """
        identifiers = [gf.identifier for gf in files] + [obj.identifier for obj in objects]
        pending = self._pending_work(files, objects)
        if pending:
            raise PendingWorkError(
                f"{', '.join(identifiers)} has pending work items: {sorted({item.id for item in pending})}"
            )
        open_requests = []
        for gf in files:
            open_requests += self.open_requests_for_file(gf)
        for obj in objects:
            open_requests += self.open_requests_for_object(obj)
        if open_requests:
            request_ids = sorted({request.id for request in open_requests})
            logger.warning(f"Deletion of {identifiers} refused: already awaiting review in requests {request_ids}")
            raise PendingWorkError(
                f"{', '.join(identifiers)} is already awaiting review in deletion request(s) {request_ids}"
            )

    # Creation

    def request_file_deletion(self, file_id: int, user: User) -> Deletion:
        """
        Create a pending deletion request for one file and alert the
        institution's admins.

        The file row is locked for the rest of the transaction so two
        concurrent requests can't both pass the pending-work check.
        """
        try:
            gf = self._lock_file(file_id)
            if not user.has_permission(Permission.FILE_REQUEST_DELETE, gf.institution_id):
                raise PermissionDeniedError(f"User {user.email} may not delete file {gf.identifier}")
            if gf.is_deleted:
                raise AlreadyDeletedError(f"File {gf.identifier} has already been deleted")
            self._check_idle([gf], [])
        except Exception:
            self.db.rollback()
            raise
        deletion = self._create(gf.institution_id, user, files=[gf], objects=[])
        self.create_request_alert(deletion)
        return deletion

    def request_object_deletion(self, object_id: int, user: User) -> Deletion:
        """Create a pending deletion request for one object and alert the institution's admins."""
        try:
            obj = self._lock_objects([object_id])[0]
            if not user.has_permission(Permission.OBJECT_REQUEST_DELETE, obj.institution_id):
                raise PermissionDeniedError(f"User {user.email} may not delete object {obj.identifier}")
            if obj.is_deleted:
                raise AlreadyDeletedError(f"Object {obj.identifier} has already been deleted")
            self._check_idle([], [obj])
        except Exception:
            self.db.rollback()
            raise
        deletion = self._create(obj.institution_id, user, files=[], objects=[obj])
        self.create_request_alert(deletion)
        return deletion

    def request_object_batch_deletion(self, requestor: User, institution_id: int, object_ids: List[int]) -> Deletion:
        """
        Create one deletion request covering many objects. Call this only
        after BatchDeletionGuard.validate_batch has passed; the pending-work
        check is repeated here under row locks.
        """
        try:
            objects = self._lock_objects(object_ids)
            self._check_idle([], objects)
        except Exception:
            self.db.rollback()
            raise
        deletion = self._create(institution_id, requestor, files=[], objects=objects)
        self.create_request_alert(deletion)
        return deletion

    def _create(
        self,
        institution_id: int,
        user: User,
        files: List[GenericFile],
        objects: List[IntellectualObject],
    ) -> Deletion:
        plaintext, hashed = self.context.token_authority.issue()
        request = DeletionRequest(
            institution_id=institution_id,
            requested_by_id=user.id,
            requested_at=datetime.utcnow(),
            encrypted_confirmation_token=hashed,
        )
        request.generic_files = files
        request.intellectual_objects = objects
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        logger.info(
            f"User {user.email} requested deletion {request.id} of {len(files)} file(s) "
            f"and {len(objects)} object(s) at institution {institution_id}"
        )
        return Deletion(
            request,
            self.link_root,
            self.load_inst_admins(institution_id),
            confirmation_token=plaintext,
        )

    # Review

    def load(self, request_id: int) -> Deletion:
        """Load a request without its token, for read-only display."""
        request = self.get_request(request_id)
        return self._wrap(request)

    def load_for_review(self, request_id: int, token: Optional[str]) -> Deletion:
        """Load a request for an admin who followed a review link. The token must match."""
        request = self.get_request(request_id)
        if not self.context.token_authority.verify(request.encrypted_confirmation_token, token):
            logger.warning(f"Invalid confirmation token presented for deletion request {request_id}")
            raise InvalidTokenError()
        return self._wrap(request)

    def _wrap(self, request: DeletionRequest) -> Deletion:
        return Deletion(
            request,
            self.link_root,
            self.load_inst_admins(request.institution_id),
            work_items=self.load_work_items(request.id),
        )

    @staticmethod
    def _guard_pending(request: DeletionRequest) -> None:
        if request.confirmed_at is not None:
            raise AlreadyApprovedError(f"Deletion request {request.id} was already approved")
        if request.cancelled_at is not None:
            raise AlreadyCancelledError(f"Deletion request {request.id} was already cancelled")

    def _check_reviewer(self, request: DeletionRequest, admin: User) -> None:
        if not admin.is_inst_admin_of(request.institution_id):
            raise PermissionDeniedError(
                f"Deletion confirmer/canceller must be an active institutional admin at institution {request.institution_id}"
            )

    def _close(self, request: DeletionRequest, **values) -> None:
        """
        Move a pending request to a terminal state with one conditional
        update. If another admin got there first, no row matches and the
        request's current state decides the error.
        """
        result = self.db.exec(
            update(DeletionRequest)
            .where(
                DeletionRequest.id == request.id,
                DeletionRequest.confirmed_at == None,  # noqa: E711
                DeletionRequest.cancelled_at == None,  # noqa: E711
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            self.db.refresh(request)
            self._guard_pending(request)
            raise AlreadyApprovedError(f"Deletion request {request.id} is no longer pending")
        self.db.commit()
        self.db.refresh(request)

    async def confirm(self, deletion: Deletion, admin: User) -> Deletion:
        """
        Approve the request, then create and queue one Delete work item per
        targeted file or object, then alert the admins.

        The approval is committed before anything is queued. If queueing
        fails, the request stays confirmed with no work_item_id and must be
        recovered by an operator (see find_undispatched).
        """
        request = deletion.request
        self._check_reviewer(request, admin)
        self._guard_pending(request)
        files = list(request.generic_files)
        objects = list(request.intellectual_objects)
        try:
            # Work may have been started on a target since the request was made.
            self._lock_objects({obj.id for obj in objects} | {gf.intellectual_object_id for gf in files})
            pending = self._pending_work(files, objects)
            if pending:
                raise PendingWorkError(
                    f"Deletion request {request.id} cannot be approved while work items "
                    f"{sorted({item.id for item in pending})} are outstanding"
                )
        except Exception:
            self.db.rollback()
            raise
        self._close(request, confirmed_at=datetime.utcnow(), confirmed_by_id=admin.id)
        logger.warning(f"Deletion request {request.id} approved by {admin.email}")

        requested_by = self.db.get(User, request.requested_by_id)
        try:
            items = []
            for gf in files:
                obj = self.db.get(IntellectualObject, gf.intellectual_object_id)
                items.append(self.work_item_service.create_deletion_item(obj, gf, requested_by, admin, request.id))
            for obj in objects:
                logger.warning(f"Creating deletion work item for object {obj.id} - {obj.identifier}")
                items.append(self.work_item_service.create_deletion_item(obj, None, requested_by, admin, request.id))
            for item in items:
                await self.work_item_service.dispatch(item)
        except Exception as e:
            logger.critical(
                f"Deletion request {request.id} is confirmed but its work items were not all queued. "
                f"Manual recovery required: {e}"
            )
            raise

        request.work_item_id = items[0].id
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        deletion.work_items = items
        logger.warning(f"Deletion request {request.id} queued work items {[item.id for item in items]}")

        self.create_approval_alert(deletion, admin)
        return deletion

    def cancel(self, deletion: Deletion, admin: User) -> Deletion:
        """Reject the request. No work item is created."""
        request = deletion.request
        self._check_reviewer(request, admin)
        self._guard_pending(request)
        self._close(request, cancelled_at=datetime.utcnow(), cancelled_by_id=admin.id)
        logger.info(f"Deletion request {request.id} cancelled by {admin.email}")
        self.create_cancellation_alert(deletion, admin)
        return deletion

    def find_undispatched(self) -> List[DeletionRequest]:
        """Confirmed requests whose work items never made it onto the queue."""
        statement = (
            select(DeletionRequest)
            .where(DeletionRequest.confirmed_at != None, DeletionRequest.work_item_id == None)  # noqa: E711
            .order_by(DeletionRequest.confirmed_at)
        )
        return list(self.db.exec(statement).all())

    # Alerts

    def _requester_name(self, deletion: Deletion) -> str:
        requester = self.db.get(User, deletion.request.requested_by_id)
        return requester.name if requester else "Unknown user"

    def _create_alert(self, deletion: Deletion, alert_type: AlertType, template_name: str, data: dict) -> Alert:
        alert = Alert(
            institution_id=deletion.request.institution_id,
            type=alert_type.value,
            subject=alert_type.value,
            deletion_request_id=deletion.request.id,
        )
        alert.users = list(deletion.inst_admins)
        alert.work_items = list(deletion.work_items)
        data.update({
            "requester_name": self._requester_name(deletion),
            "item_type": deletion.item_type,
            "identifiers": deletion.identifiers,
            "deletion_read_only_url": deletion.read_only_url(),
        })
        return self.alert_service.create_alert(alert, template_name, data)

    def create_request_alert(self, deletion: Deletion) -> Alert:
        """Alert admins that a deletion awaits their review. New requests only."""
        return self._create_alert(
            deletion,
            AlertType.DELETION_REQUESTED,
            "alerts/deletion_requested.txt",
            {"deletion_review_url": deletion.review_url()},
        )

    def create_approval_alert(self, deletion: Deletion, admin: User) -> Alert:
        return self._create_alert(
            deletion,
            AlertType.DELETION_CONFIRMED,
            "alerts/deletion_confirmed.txt",
            {"confirmer_name": admin.name, "work_item_urls": deletion.work_item_urls()},
        )

    def create_cancellation_alert(self, deletion: Deletion, admin: User) -> Alert:
        return self._create_alert(
            deletion,
            AlertType.DELETION_CANCELLED,
            "alerts/deletion_cancelled.txt",
            {"canceller_name": admin.name},
        )
