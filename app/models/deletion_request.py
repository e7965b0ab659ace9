"""
Deletion Request Model

A deletion request records a user's intent to delete files or objects.
Nothing is deleted until an institutional admin confirms the request.
"""

from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

from app.models.intellectual_object import GenericFile, IntellectualObject


class DeletionRequestGenericFile(SQLModel, table=True):
    __tablename__ = "deletion_requests_generic_files"

    deletion_request_id: int = Field(foreign_key="deletion_requests.id", primary_key=True)
    generic_file_id: int = Field(foreign_key="generic_files.id", primary_key=True)


class DeletionRequestIntellectualObject(SQLModel, table=True):
    __tablename__ = "deletion_requests_intellectual_objects"

    deletion_request_id: int = Field(foreign_key="deletion_requests.id", primary_key=True)
    intellectual_object_id: int = Field(foreign_key="intellectual_objects.id", primary_key=True)


class DeletionRequest(SQLModel, table=True):
    """Deletion request table model. Only the hashed confirmation token is stored."""
    __tablename__ = "deletion_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    institution_id: int = Field(foreign_key="institution.id", index=True)
    requested_by_id: int = Field(foreign_key="user.id")
    requested_at: datetime = Field(default_factory=datetime.utcnow)
    encrypted_confirmation_token: str = Field(max_length=255)
    confirmed_by_id: Optional[int] = Field(default=None, foreign_key="user.id")
    confirmed_at: Optional[datetime] = Field(default=None)
    cancelled_by_id: Optional[int] = Field(default=None, foreign_key="user.id")
    cancelled_at: Optional[datetime] = Field(default=None)
    work_item_id: Optional[int] = Field(default=None, foreign_key="work_items.id")

    generic_files: List[GenericFile] = Relationship(link_model=DeletionRequestGenericFile)
    intellectual_objects: List[IntellectualObject] = Relationship(link_model=DeletionRequestIntellectualObject)

    @property
    def is_pending(self) -> bool:
        return self.confirmed_at is None and self.cancelled_at is None

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled_at is not None
