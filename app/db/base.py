from sqlmodel import SQLModel

# Import all models here to ensure they are registered with SQLModel
from app.models.institution import Institution  # noqa
from app.models.user import User  # noqa
from app.models.intellectual_object import IntellectualObject, GenericFile  # noqa
from app.models.work_item import WorkItem  # noqa
from app.models.deletion_request import (  # noqa
    DeletionRequest,
    DeletionRequestGenericFile,
    DeletionRequestIntellectualObject,
)
from app.models.alert import Alert, AlertUser, AlertWorkItem  # noqa

__all__ = ["SQLModel"]
