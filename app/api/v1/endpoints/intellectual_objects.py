from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from app.api.v1.endpoints.users import get_current_user
from app.core.context import RegistryContext, get_context
from app.core.rate_limit import deletion_rate, limiter
from app.db.session import get_session
from app.models.user import User
from app.schemas.deletion_request import DeletionRequestResponseSchema
from app.schemas.work_item import WorkItemResponseSchema
from app.services.deletion_service import DeletionService
from app.services.restoration_service import RestorationService

router = APIRouter()


@router.post("/{object_id}/request_delete", response_model=DeletionRequestResponseSchema,
             status_code=status.HTTP_201_CREATED)
@limiter.limit(deletion_rate)
async def request_object_deletion(
    request: Request,
    object_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """
    Ask for an object and all of its files to be deleted. The
    institution's admins get an email with a link to approve or cancel.
    """
    deletion = DeletionService(db, context).request_object_deletion(object_id, current_user)
    return DeletionRequestResponseSchema.from_deletion(deletion)


@router.post("/{object_id}/restore", response_model=WorkItemResponseSchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(deletion_rate)
async def restore_object(
    request: Request,
    object_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Queue an object for restoration."""
    item = await RestorationService(db, context).restore_object(object_id, current_user)
    return WorkItemResponseSchema.model_validate(item)
