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


@router.post("/{file_id}/request_delete", response_model=DeletionRequestResponseSchema,
             status_code=status.HTTP_201_CREATED)
@limiter.limit(deletion_rate)
async def request_file_deletion(
    request: Request,
    file_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """
    Ask for a file to be deleted. The institution's admins get an email
    with a link to approve or cancel.
    """
    deletion = DeletionService(db, context).request_file_deletion(file_id, current_user)
    return DeletionRequestResponseSchema.from_deletion(deletion)


@router.post("/{file_id}/restore", response_model=WorkItemResponseSchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(deletion_rate)
async def restore_file(
    request: Request,
    file_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Queue a file for restoration."""
    item = await RestorationService(db, context).restore_file(file_id, current_user)
    return WorkItemResponseSchema.model_validate(item)
