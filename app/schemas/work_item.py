"""
Work item related Pydantic schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class WorkItemResponseSchema(BaseModel):
    """Schema for work item response data."""
    id: int
    name: str
    etag: str
    bucket: str
    institution_id: int
    intellectual_object_id: Optional[int] = None
    generic_file_id: Optional[int] = None
    deletion_request_id: Optional[int] = None
    user: str
    inst_approver: Optional[str] = None
    action: str
    stage: str
    status: str
    note: str
    outcome: str
    retry: bool
    node: str
    pid: int
    needs_admin_review: bool
    size: int
    date_processed: datetime
    queued_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RequeueOptionsSchema(BaseModel):
    """Stages a work item may be sent back to."""
    work_item_id: int
    action: str
    current_stage: str
    stages: List[str]


class RequeueResponseSchema(BaseModel):
    """Schema for requeue response."""
    work_item: WorkItemResponseSchema
    topic: str
