from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime


class Institution(SQLModel, table=True):
    """A depositing institution. Every object, file, user and work item belongs to one."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    identifier: str = Field(unique=True, index=True, max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow)
