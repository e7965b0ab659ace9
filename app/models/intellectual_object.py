import enum
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime


class State(str, enum.Enum):
    """Preservation state of an object or file."""
    ACTIVE = "A"
    DELETED = "D"


GLACIER_ONLY_STORAGE_OPTIONS = {
    "Glacier-OH",
    "Glacier-OR",
    "Glacier-VA",
    "Glacier-Deep-OH",
    "Glacier-Deep-OR",
    "Glacier-Deep-VA",
}


class IntellectualObject(SQLModel, table=True):
    """A deposited bag."""
    __tablename__ = "intellectual_objects"

    id: Optional[int] = Field(default=None, primary_key=True)
    institution_id: int = Field(foreign_key="institution.id", index=True)
    identifier: str = Field(unique=True, index=True, max_length=1000)
    bag_name: str = Field(index=True, max_length=1000)
    etag: str = Field(default="", max_length=40)
    storage_option: str = Field(default="Standard", max_length=40)
    size: int = Field(default=0)
    state: str = Field(default=State.ACTIVE.value, max_length=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_deleted(self) -> bool:
        return self.state == State.DELETED.value

    def is_glacier_only(self) -> bool:
        return self.storage_option in GLACIER_ONLY_STORAGE_OPTIONS


class GenericFile(SQLModel, table=True):
    """A single file inside an intellectual object."""
    __tablename__ = "generic_files"

    id: Optional[int] = Field(default=None, primary_key=True)
    institution_id: int = Field(foreign_key="institution.id", index=True)
    intellectual_object_id: int = Field(foreign_key="intellectual_objects.id", index=True)
    identifier: str = Field(unique=True, index=True, max_length=1000)
    size: int = Field(default=0)
    storage_option: str = Field(default="Standard", max_length=40)
    state: str = Field(default=State.ACTIVE.value, max_length=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_deleted(self) -> bool:
        return self.state == State.DELETED.value
