"""
Admin-only endpoints: batch deletion, recovery of deletions that were
approved but never queued, and integration test setup.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.api.v1.endpoints.users import get_current_admin_user
from app.core.context import RegistryContext, get_context
from app.core.errors import PermissionDeniedError
from app.db.session import get_session
from app.models.user import Permission, User
from app.schemas.deletion_request import (
    BatchDeleteSchema,
    DeletionRequestResponseSchema,
    RegistryErrorSchema,
    UndispatchedDeletionSchema,
)
from app.services.batch_deletion_guard import BatchDeletionGuard
from app.services.deletion_service import DeletionService
from app.services.integration_service import IntegrationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/objects/init_batch_delete",
    response_model=DeletionRequestResponseSchema,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": RegistryErrorSchema}, 403: {"model": RegistryErrorSchema},
               405: {"model": RegistryErrorSchema}, 409: {"model": RegistryErrorSchema}},
)
async def init_batch_delete(
    batch: BatchDeleteSchema,
    admin_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """
    Start deletion of many objects at once.

    Every object is checked before anything is created, and all problems
    are returned together. The requestor named in the body is recorded as
    having asked for the deletion; an institutional admin still has to
    approve it.
    """
    if not admin_user.has_permission(Permission.OBJECT_BATCH_DELETE, batch.institution_id):
        raise PermissionDeniedError("Batch deletion requires a sys admin")
    logger.warning(
        f"Admin {admin_user.email} started batch deletion of {len(batch.object_ids)} objects "
        f"at institution {batch.institution_id}"
    )
    guard = BatchDeletionGuard(db, context)
    requestor = guard.validate_batch(batch.institution_id, batch.requestor_id, batch.object_ids, batch.secret_key)
    deletion = DeletionService(db, context).request_object_batch_deletion(
        requestor, batch.institution_id, batch.object_ids
    )
    return DeletionRequestResponseSchema.from_deletion(deletion)


@router.get("/deletions/undispatched", response_model=List[UndispatchedDeletionSchema])
async def list_undispatched_deletions(
    admin_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Approved deletion requests whose work items were never queued. These need manual recovery."""
    requests = DeletionService(db, context).find_undispatched()
    return [UndispatchedDeletionSchema.model_validate(request) for request in requests]


@router.post("/prepare_object_delete/{object_id}", response_model=DeletionRequestResponseSchema)
async def prepare_object_delete(
    object_id: int,
    admin_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Test environments only: seed an approved object deletion for worker integration tests."""
    request = IntegrationService(db, context).prepare_object_deletion(object_id)
    deletion = DeletionService(db, context).load(request.id)
    return DeletionRequestResponseSchema.from_deletion(deletion)


@router.post("/prepare_file_delete/{file_id}", response_model=DeletionRequestResponseSchema)
async def prepare_file_delete(
    file_id: int,
    admin_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Test environments only: seed an approved file deletion for worker integration tests."""
    request = IntegrationService(db, context).prepare_file_deletion(file_id)
    deletion = DeletionService(db, context).load(request.id)
    return DeletionRequestResponseSchema.from_deletion(deletion)
