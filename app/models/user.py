import enum
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime


class Role(str, enum.Enum):
    """User roles. Sys admins act across institutions, everyone else within their own."""
    SYS_ADMIN = "admin"
    INST_ADMIN = "institutional_admin"
    INST_USER = "institutional_user"
    NONE = "none"


class Permission(str, enum.Enum):
    """Actions guarded by role and institution."""
    FILE_REQUEST_DELETE = "FileRequestDelete"
    FILE_RESTORE = "FileRestore"
    OBJECT_REQUEST_DELETE = "IntellectualObjectRequestDelete"
    OBJECT_RESTORE = "IntellectualObjectRestore"
    OBJECT_BATCH_DELETE = "IntellectualObjectBatchDelete"
    DELETION_REQUEST_APPROVE = "DeletionRequestApprove"
    DELETION_REQUEST_SHOW = "DeletionRequestShow"
    WORK_ITEM_READ = "WorkItemRead"
    WORK_ITEM_REQUEUE = "WorkItemRequeue"


_INST_USER_PERMISSIONS = {
    Permission.FILE_REQUEST_DELETE,
    Permission.FILE_RESTORE,
    Permission.OBJECT_REQUEST_DELETE,
    Permission.OBJECT_RESTORE,
    Permission.DELETION_REQUEST_SHOW,
    Permission.WORK_ITEM_READ,
}

ROLE_PERMISSIONS = {
    Role.INST_USER.value: _INST_USER_PERMISSIONS,
    # Only institutional admins can approve deletions. Sys admins can't.
    Role.INST_ADMIN.value: _INST_USER_PERMISSIONS | {Permission.DELETION_REQUEST_APPROVE},
    Role.SYS_ADMIN.value: _INST_USER_PERMISSIONS | {
        Permission.OBJECT_BATCH_DELETE,
        Permission.WORK_ITEM_REQUEUE,
    },
    Role.NONE.value: set(),
}


class User(SQLModel, table=True):
    """User table model. Authentication lives outside this service."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    email: str = Field(unique=True, index=True, max_length=255)
    institution_id: int = Field(foreign_key="institution.id", index=True)
    role: str = Field(default=Role.INST_USER.value, max_length=40)
    deactivated_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.deactivated_at is None

    @property
    def is_admin(self) -> bool:
        """True for sys admins only. Institutional admins are not super users."""
        return self.role == Role.SYS_ADMIN.value

    def is_inst_admin_of(self, institution_id: int) -> bool:
        return (
            self.is_active
            and self.role == Role.INST_ADMIN.value
            and self.institution_id == institution_id
        )

    def has_permission(self, permission: Permission, institution_id: int) -> bool:
        """
        Sys admin permissions apply across all institutions. Institutional
        users and admins are limited to their own institution.
        """
        if not self.is_active:
            return False
        allowed = permission in ROLE_PERMISSIONS.get(self.role, set())
        if self.is_admin:
            return allowed
        return allowed and self.institution_id == institution_id
