"""
Work item endpoints.
"""

from fastapi import APIRouter, Depends, Form
from sqlmodel import Session

from app.api.v1.endpoints.users import get_current_user
from app.core.context import RegistryContext, get_context
from app.core.errors import PermissionDeniedError
from app.db.session import get_session
from app.models.user import Permission, User
from app.schemas.work_item import RequeueOptionsSchema, RequeueResponseSchema, WorkItemResponseSchema
from app.services.work_item_service import WorkItemService

router = APIRouter()


@router.get("/{item_id}", response_model=WorkItemResponseSchema)
async def get_work_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """Get a work item by ID."""
    item = WorkItemService(db, context).get(item_id)
    if not current_user.has_permission(Permission.WORK_ITEM_READ, item.institution_id):
        raise PermissionDeniedError(f"User {current_user.email} may not view work item {item_id}")
    return WorkItemResponseSchema.model_validate(item)


@router.get("/{item_id}/requeue_options", response_model=RequeueOptionsSchema)
async def get_requeue_options(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """List the stages this work item can be requeued to."""
    service = WorkItemService(db, context)
    stages = service.requeue_options(item_id, current_user)
    item = service.get(item_id)
    return RequeueOptionsSchema(
        work_item_id=item.id,
        action=item.action,
        current_stage=item.stage,
        stages=[stage.value for stage in stages],
    )


@router.api_route("/{item_id}/requeue", methods=["PUT", "POST"], response_model=RequeueResponseSchema)
async def requeue_work_item(
    item_id: int,
    stage: str = Form(""),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    context: RegistryContext = Depends(get_context)
):
    """
    Send a work item back to a stage and queue it again.

    Only sys admins can requeue. The item's node, pid and review flag are
    cleared so any worker can pick it up.
    """
    service = WorkItemService(db, context)
    topic = await service.requeue(item_id, stage, current_user)
    item = service.get(item_id)
    return RequeueResponseSchema(work_item=WorkItemResponseSchema.model_validate(item), topic=topic)
