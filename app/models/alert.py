"""
Alert Model

Alerts are notifications recorded in the registry and emailed to a
list of recipients, e.g. the admins who must review a deletion.
"""

import enum
from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

from app.models.user import User
from app.models.work_item import WorkItem


class AlertType(str, enum.Enum):
    """Kinds of alerts this service sends."""
    DELETION_REQUESTED = "Deletion Requested"
    DELETION_CONFIRMED = "Deletion Confirmed"
    DELETION_CANCELLED = "Deletion Cancelled"


class AlertUser(SQLModel, table=True):
    __tablename__ = "alerts_users"

    alert_id: int = Field(foreign_key="alerts.id", primary_key=True)
    user_id: int = Field(foreign_key="user.id", primary_key=True)
    sent_at: Optional[datetime] = Field(default=None)
    read_at: Optional[datetime] = Field(default=None)


class AlertWorkItem(SQLModel, table=True):
    __tablename__ = "alerts_work_items"

    alert_id: int = Field(foreign_key="alerts.id", primary_key=True)
    work_item_id: int = Field(foreign_key="work_items.id", primary_key=True)


class Alert(SQLModel, table=True):
    """Alert table model."""
    __tablename__ = "alerts"

    id: Optional[int] = Field(default=None, primary_key=True)
    institution_id: int = Field(foreign_key="institution.id", index=True)
    type: str = Field(max_length=40)
    subject: str = Field(max_length=255)
    content: str = Field(default="")
    deletion_request_id: Optional[int] = Field(default=None, foreign_key="deletion_requests.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    users: List[User] = Relationship(link_model=AlertUser)
    work_items: List[WorkItem] = Relationship(link_model=AlertWorkItem)
