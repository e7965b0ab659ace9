import os

# Settings are read at import time.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TESTING", "true")

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from app.main import app
from app.core.config import settings
from app.core.context import RegistryContext, get_context
from app.core.rate_limit import limiter
from app.core.security import create_access_token
from app.core.tokens import ConfirmationTokenAuthority
from app.db.session import get_session
from app.models.institution import Institution
from app.models.intellectual_object import GenericFile, IntellectualObject
from app.models.user import Role, User
from app.models.work_item import Stage, Status, WorkItem, WorkItemAction

BATCH_KEY = "5c8fa3b4-9b9a-4c3c-a6a2-0f1f5e3f8d41"


@pytest.fixture(name="session")
def session_fixture():
    """Create a test database session."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="context")
def context_fixture():
    """Registry context with a mocked queue and email transport."""
    queue_client = MagicMock()
    queue_client.enqueue = AsyncMock(return_value=None)
    test_settings = settings.model_copy(update={
        "base_url": "https://registry.example.edu",
        "batch_deletion_key": BATCH_KEY,
        "environment": "test",
        "testing": True,
    })
    return RegistryContext(
        settings=test_settings,
        queue_client=queue_client,
        email_sender=MagicMock(),
        token_authority=ConfirmationTokenAuthority(),
    )


@pytest.fixture(name="client")
def client_fixture(session: Session, context: RegistryContext):
    """Create a test client with database session and context overrides."""
    def get_session_override():
        return session

    def get_context_override():
        return context

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_context] = get_context_override
    limiter.enabled = False
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def _save(session: Session, record):
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


@pytest.fixture(name="institution")
def institution_fixture(session: Session):
    return _save(session, Institution(name="Test University", identifier="test.edu"))


@pytest.fixture(name="other_institution")
def other_institution_fixture(session: Session):
    return _save(session, Institution(name="Other College", identifier="other.edu"))


@pytest.fixture(name="inst_user")
def inst_user_fixture(session: Session, institution: Institution):
    return _save(session, User(
        name="Ursula User",
        email="user@test.edu",
        institution_id=institution.id,
        role=Role.INST_USER.value,
    ))


@pytest.fixture(name="inst_admin")
def inst_admin_fixture(session: Session, institution: Institution):
    return _save(session, User(
        name="Alma Admin",
        email="admin@test.edu",
        institution_id=institution.id,
        role=Role.INST_ADMIN.value,
    ))


@pytest.fixture(name="other_admin")
def other_admin_fixture(session: Session, other_institution: Institution):
    return _save(session, User(
        name="Otto Admin",
        email="admin@other.edu",
        institution_id=other_institution.id,
        role=Role.INST_ADMIN.value,
    ))


@pytest.fixture(name="sys_admin")
def sys_admin_fixture(session: Session, other_institution: Institution):
    return _save(session, User(
        name="Sys Admin",
        email="sysadmin@registry.example.edu",
        institution_id=other_institution.id,
        role=Role.SYS_ADMIN.value,
    ))


@pytest.fixture(name="make_object")
def make_object_fixture(session: Session):
    """Factory for intellectual objects."""
    def make_object(institution: Institution, name: str = "bag1", **kwargs) -> IntellectualObject:
        values = dict(
            institution_id=institution.id,
            identifier=f"{institution.identifier}/{name}",
            bag_name=name,
            etag=f"etag-{name}",
            size=4096,
        )
        values.update(kwargs)
        return _save(session, IntellectualObject(**values))
    return make_object


@pytest.fixture(name="make_work_item")
def make_work_item_fixture(session: Session):
    """Factory for work items. Defaults to a successful, finished ingest."""
    def make_work_item(obj: IntellectualObject, **kwargs) -> WorkItem:
        values = dict(
            name=obj.bag_name,
            etag=obj.etag,
            bucket="receiving.test.edu",
            institution_id=obj.institution_id,
            intellectual_object_id=obj.id,
            action=WorkItemAction.INGEST.value,
            stage=Stage.CLEANUP.value,
            status=Status.SUCCESS.value,
            date_processed=datetime.utcnow() - timedelta(days=1),
        )
        values.update(kwargs)
        return _save(session, WorkItem(**values))
    return make_work_item


@pytest.fixture(name="intellectual_object")
def intellectual_object_fixture(session: Session, institution: Institution, make_object, make_work_item):
    obj = make_object(institution)
    # Deletion and restoration copy bucket and etag from the last ingest.
    make_work_item(obj, etag="ingest-etag", bucket="receiving.test.edu")
    return obj


@pytest.fixture(name="generic_file")
def generic_file_fixture(session: Session, intellectual_object: IntellectualObject):
    return _save(session, GenericFile(
        institution_id=intellectual_object.institution_id,
        intellectual_object_id=intellectual_object.id,
        identifier=f"{intellectual_object.identifier}/data/file.txt",
        size=512,
    ))


@pytest.fixture(name="auth_headers_for")
def auth_headers_for_fixture():
    """Build bearer auth headers for a user."""
    def auth_headers_for(user: User) -> dict:
        token = create_access_token(data={"sub": user.email})
        return {"Authorization": f"Bearer {token}"}
    return auth_headers_for
