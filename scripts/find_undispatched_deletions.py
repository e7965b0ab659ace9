#!/usr/bin/env python3
"""
Lists deletion requests that were approved but whose Delete work items
were never queued.

Each one needs an operator to check the work items and either requeue them
or finish the deletion by hand. This script only reports; it changes
nothing.
"""

import sys
from pathlib import Path

# Add the parent directory to the path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session

from app.core.config import settings
from app.core.context import build_context
from app.db.session import engine
from app.services.deletion_service import DeletionService


def main() -> int:
    context = build_context(settings)
    with Session(engine) as db:
        service = DeletionService(db, context)
        requests = service.find_undispatched()
        if not requests:
            print("No undispatched deletion requests.")
            return 0
        print(f"{len(requests)} approved deletion request(s) were never queued:\n")
        for request in requests:
            items = service.load_work_items(request.id)
            print(
                f"  request {request.id}  institution {request.institution_id}  "
                f"confirmed {request.confirmed_at:%Y-%m-%d %H:%M:%S} by user {request.confirmed_by_id}  "
                f"work items {[item.id for item in items] or 'none'}"
            )
    return 1


if __name__ == "__main__":
    sys.exit(main())
