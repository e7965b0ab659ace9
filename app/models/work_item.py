"""
Work Item Model

A WorkItem is one unit of work handed to the external worker fleet. The
action, stage, status, node and pid columns are shared with those workers.
"""

import enum
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime


class WorkItemAction(str, enum.Enum):
    """What the worker is asked to do."""
    INGEST = "Ingest"
    DELETE = "Delete"
    RESTORE_OBJECT = "Restore Object"
    RESTORE_FILE = "Restore File"
    GLACIER_RESTORE = "Glacier Restore"
    FIXITY_CHECK = "Fixity Check"


class Stage(str, enum.Enum):
    """Processing stages. The legal order depends on the action."""
    REQUESTED = "Requested"
    RECEIVE = "Receive"
    VALIDATE = "Validate"
    REINGEST_CHECK = "Reingest Check"
    COPY_TO_STAGING = "Copy To Staging"
    FORMAT_IDENTIFICATION = "Format Identification"
    STORE = "Store"
    STORAGE_VALIDATION = "Storage Validation"
    RECORD = "Record"
    CLEANUP = "Cleanup"


class Status(str, enum.Enum):
    """Execution status as reported by the workers."""
    PENDING = "Pending"
    STARTED = "Started"
    SUCCESS = "Success"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    SUSPENDED = "Suspended"


# Statuses that are final no matter what the retry flag says.
# Failed is final only when retry is off.
FINAL_STATUSES = (Status.SUCCESS.value, Status.CANCELLED.value)


class WorkItem(SQLModel, table=True):
    """Work item table model."""
    __tablename__ = "work_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=1000)
    etag: str = Field(default="", max_length=40)
    bucket: str = Field(default="", max_length=1000)
    institution_id: int = Field(foreign_key="institution.id", index=True)
    intellectual_object_id: Optional[int] = Field(default=None, foreign_key="intellectual_objects.id", index=True)
    generic_file_id: Optional[int] = Field(default=None, foreign_key="generic_files.id", index=True)
    deletion_request_id: Optional[int] = Field(default=None, index=True)
    user: str = Field(default="", max_length=255, description="Email of the user who initiated the work")
    inst_approver: Optional[str] = Field(default=None, max_length=255)
    note: str = Field(default="Not started")
    action: str = Field(index=True, max_length=40)
    stage: str = Field(max_length=40)
    status: str = Field(default=Status.PENDING.value, index=True, max_length=40)
    outcome: str = Field(default="Not started")
    bag_date: Optional[datetime] = Field(default=None)
    date_processed: datetime = Field(default_factory=datetime.utcnow)
    retry: bool = Field(default=False)
    node: str = Field(default="", max_length=255)
    pid: int = Field(default=0)
    needs_admin_review: bool = Field(default=False)
    queued_at: Optional[datetime] = Field(default=None)
    size: int = Field(default=0)
    stage_started_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
