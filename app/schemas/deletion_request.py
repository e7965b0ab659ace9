"""
Deletion request related Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional


class DeletionRequestResponseSchema(BaseModel):
    """
    Schema for deletion request response data. The confirmation token and
    its hash are never part of a response.
    """
    id: int
    institution_id: int
    status: str
    requested_by_id: int
    requested_at: datetime
    confirmed_by_id: Optional[int] = None
    confirmed_at: Optional[datetime] = None
    cancelled_by_id: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    work_item_id: Optional[int] = None
    file_identifiers: List[str] = []
    object_identifiers: List[str] = []
    work_item_ids: List[int] = []

    @classmethod
    def from_deletion(cls, deletion) -> "DeletionRequestResponseSchema":
        request = deletion.request
        if request.is_confirmed:
            status = "confirmed"
        elif request.is_cancelled:
            status = "cancelled"
        else:
            status = "pending"
        return cls(
            id=request.id,
            institution_id=request.institution_id,
            status=status,
            requested_by_id=request.requested_by_id,
            requested_at=request.requested_at,
            confirmed_by_id=request.confirmed_by_id,
            confirmed_at=request.confirmed_at,
            cancelled_by_id=request.cancelled_by_id,
            cancelled_at=request.cancelled_at,
            work_item_id=request.work_item_id,
            file_identifiers=[gf.identifier for gf in request.generic_files],
            object_identifiers=[obj.identifier for obj in request.intellectual_objects],
            work_item_ids=[item.id for item in deletion.work_items],
        )


class UndispatchedDeletionSchema(BaseModel):
    """A confirmed deletion request that has no queued work item."""
    id: int
    institution_id: int
    confirmed_by_id: Optional[int] = None
    confirmed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BatchDeleteSchema(BaseModel):
    """Schema for batch deletion requests. Field names match the JSON clients send."""
    institution_id: int = Field(alias="institutionId")
    requestor_id: int = Field(alias="requestorId")
    object_ids: List[int] = Field(alias="objectIds")
    secret_key: str = Field(default="", alias="secretKey")

    class Config:
        populate_by_name = True


class RegistryErrorSchema(BaseModel):
    """Body of every error response raised by a registry operation."""
    error: bool = True
    error_id: str
    kind: str
    message: str
    details: Optional[List[Dict[str, Any]]] = None
