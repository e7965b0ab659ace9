from pydantic import BaseModel
from datetime import datetime


class UserResponseSchema(BaseModel):
    """Schema for user response data."""
    id: int
    name: str
    email: str
    institution_id: int
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
