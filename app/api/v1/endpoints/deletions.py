"""
Deletion review endpoints.

Admins reach these from the link in a "Deletion Requested" alert. The
token from that link has to come back with the approve or cancel form.
"""

from fastapi import APIRouter, Depends, Form, Query

from sqlmodel import Session

from app.api.v1.endpoints.users import get_current_user
from app.core.context import RegistryContext, get_context
from app.core.errors import PermissionDeniedError
from app.db.session import get_session
from app.models.user import Permission, User
from app.schemas.deletion_request import DeletionRequestResponseSchema, RegistryErrorSchema
from app.services.deletion_service import DeletionService

router = APIRouter()

error_responses = {
    403: {"model": RegistryErrorSchema},
    404: {"model": RegistryErrorSchema},
    409: {"model": RegistryErrorSchema},
}


@router.get("/review/{request_id}", response_model=DeletionRequestResponseSchema, responses=error_responses)
async def review_deletion(
    request_id: int,
    token: str = Query(""),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """
    Show a deletion request to the admin who will approve or cancel it.

    Nothing changes here. The token is checked so that a bad link fails
    before the admin fills in the form.
    """
    service = DeletionService(db, context)
    deletion = service.load_for_review(request_id, token)
    if not current_user.has_permission(Permission.DELETION_REQUEST_APPROVE, deletion.request.institution_id):
        raise PermissionDeniedError("Only institutional admins can review deletion requests")
    return DeletionRequestResponseSchema.from_deletion(deletion)


@router.post("/approve/{request_id}", response_model=DeletionRequestResponseSchema, responses=error_responses)
async def approve_deletion(
    request_id: int,
    token: str = Form(""),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Approve a deletion request and queue its Delete work items."""
    service = DeletionService(db, context)
    deletion = service.load_for_review(request_id, token)
    deletion = await service.confirm(deletion, current_user)
    return DeletionRequestResponseSchema.from_deletion(deletion)


@router.post("/cancel/{request_id}", response_model=DeletionRequestResponseSchema, responses=error_responses)
async def cancel_deletion(
    request_id: int,
    token: str = Form(""),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Cancel a deletion request. Nothing is deleted."""
    service = DeletionService(db, context)
    deletion = service.load_for_review(request_id, token)
    deletion = service.cancel(deletion, current_user)
    return DeletionRequestResponseSchema.from_deletion(deletion)


@router.get("/show/{request_id}", response_model=DeletionRequestResponseSchema, responses=error_responses)
async def show_deletion(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Read-only view of a deletion request, linked from every deletion alert."""
    deletion = DeletionService(db, context).load(request_id)
    if not current_user.has_permission(Permission.DELETION_REQUEST_SHOW, deletion.request.institution_id):
        raise PermissionDeniedError(f"User {current_user.email} may not view deletion request {request_id}")
    return DeletionRequestResponseSchema.from_deletion(deletion)
