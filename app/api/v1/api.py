from fastapi import APIRouter

from app.api.v1.endpoints import users, deletions, generic_files, intellectual_objects, work_items, admin

api_router = APIRouter()

# Include user-related endpoints
api_router.include_router(
    users.router, prefix="/auth", tags=["authentication"])

# Include deletion review endpoints
api_router.include_router(
    deletions.router, prefix="/deletions", tags=["deletions"])

# Include generic file endpoints
api_router.include_router(
    generic_files.router, prefix="/files", tags=["files"])

# Include intellectual object endpoints
api_router.include_router(
    intellectual_objects.router, prefix="/objects", tags=["objects"])

# Include work item endpoints
api_router.include_router(
    work_items.router, prefix="/work_items", tags=["work-items"])

# Include admin endpoints
api_router.include_router(
    admin.router, prefix="/admin", tags=["admin"])
