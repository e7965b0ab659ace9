#!/usr/bin/env python3
"""
Database initialization script for the Preservation Registry.

Creates the tables and, in development and test environments, a demo
institution with one institutional admin and one sys admin so the
deletion workflow can be tried out locally. Production schemas are
managed with alembic.
"""

import sys
from pathlib import Path

# Add the parent directory to the path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session, SQLModel, select

from app.core.config import settings
from app.db.base import *  # noqa: F401,F403  Import all models to register with SQLModel
from app.db.session import engine
from app.models.institution import Institution
from app.models.user import Role, User

DEV_INSTITUTION = {"name": "Demo University", "identifier": "demo.edu"}
DEV_USERS = [
    {"name": "Demo Inst Admin", "email": "inst_admin@demo.edu", "role": Role.INST_ADMIN.value},
    {"name": "Demo Inst User", "email": "inst_user@demo.edu", "role": Role.INST_USER.value},
    {"name": "Demo Sys Admin", "email": "sys_admin@demo.edu", "role": Role.SYS_ADMIN.value},
]


def create_db_and_tables():
    """Create database tables."""
    print("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    print(f"Database URL: {settings.database_url}")
    print("\nTables created:")
    for table in SQLModel.metadata.tables.keys():
        print(f"  - {table}")


def seed_dev_users():
    """Add the demo institution and its users unless they already exist."""
    with Session(engine) as db:
        institution = db.exec(
            select(Institution).where(Institution.identifier == DEV_INSTITUTION["identifier"])
        ).first()
        if institution is None:
            institution = Institution(**DEV_INSTITUTION)
            db.add(institution)
            db.commit()
            db.refresh(institution)

        for data in DEV_USERS:
            if db.exec(select(User).where(User.email == data["email"])).first():
                print(f"  = {data['email']} already exists")
                continue
            db.add(User(institution_id=institution.id, **data))
            print(f"  + {data['email']} ({data['role']})")
        db.commit()


if __name__ == "__main__":
    create_db_and_tables()
    if settings.is_test_or_dev_env():
        print("\nSeeding development users...")
        seed_dev_users()
