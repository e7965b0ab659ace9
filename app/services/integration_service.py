"""
Integration Test Support

Seeds the database with an already approved deletion and a started Delete
work item so that the worker fleet's integration tests can exercise file
and object deletion. This skips the whole approval workflow and so refuses
to run outside test and development environments.
"""

import logging
from datetime import datetime

from sqlmodel import Session, select

from app.core.context import RegistryContext
from app.core.errors import NotFoundError, NotSupportedError
from app.models.deletion_request import DeletionRequest
from app.models.intellectual_object import GenericFile, IntellectualObject
from app.models.user import Role, User
from app.models.work_item import Status, WorkItem, WorkItemAction
from app.services.work_item_service import WorkItemService

logger = logging.getLogger(__name__)


class IntegrationService:
    """Test-environment shortcuts for setting up deletion preconditions."""

    def __init__(self, db: Session, context: RegistryContext):
        self.db = db
        self.context = context
        self.work_item_service = WorkItemService(db, context)

    def _check_environment(self) -> None:
        if not self.context.settings.is_test_or_dev_env():
            logger.error(
                f"Refusing to prepare deletion preconditions in environment {self.context.settings.environment}"
            )
            raise NotSupportedError("Only available in test and development environments")

    def _inst_admin(self, institution_id: int) -> User:
        statement = (
            select(User)
            .where(
                User.institution_id == institution_id,
                User.role == Role.INST_ADMIN.value,
                User.deactivated_at == None,  # noqa: E711
            )
            .limit(1)
        )
        admin = self.db.exec(statement).first()
        if admin is None:
            raise NotFoundError(f"Institution {institution_id} has no active institutional admin")
        return admin

    def _seed(self, obj: IntellectualObject, gf=None) -> DeletionRequest:
        admin = self._inst_admin(obj.institution_id)
        now = datetime.utcnow()

        item = self.work_item_service.build_item_for_object(obj, WorkItemAction.DELETE)
        if gf is not None:
            item.generic_file_id = gf.id
            item.size = gf.size
        item.user = admin.email
        item.inst_approver = admin.email
        item.status = Status.STARTED.value
        item = self.work_item_service.save(item)

        _, hashed = self.context.token_authority.issue()
        request = DeletionRequest(
            institution_id=obj.institution_id,
            requested_by_id=admin.id,
            requested_at=now,
            confirmed_by_id=admin.id,
            confirmed_at=now,
            encrypted_confirmation_token=hashed,
            work_item_id=item.id,
        )
        request.generic_files = [gf] if gf is not None else []
        request.intellectual_objects = [obj] if gf is None else []
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)

        item.deletion_request_id = request.id
        self.work_item_service.save(item)
        logger.info(f"Prepared deletion request {request.id} and work item {item.id} for integration tests")
        return request

    def prepare_object_deletion(self, object_id: int) -> DeletionRequest:
        self._check_environment()
        obj = self.db.get(IntellectualObject, object_id)
        if obj is None:
            raise NotFoundError(f"Intellectual object {object_id} not found")
        return self._seed(obj)

    def prepare_file_deletion(self, file_id: int) -> DeletionRequest:
        self._check_environment()
        gf = self.db.get(GenericFile, file_id)
        if gf is None:
            raise NotFoundError(f"Generic file {file_id} not found")
        obj = self.db.get(IntellectualObject, gf.intellectual_object_id)
        return self._seed(obj, gf)
