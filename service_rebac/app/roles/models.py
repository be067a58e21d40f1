"""
Role data models.
"""

from typing import List

from pydantic import BaseModel, Field


class RoleResponse(BaseModel):
    """Custom role with its assigned users."""
    name: str
    label: str
    users: List[str] = Field(default_factory=list)
    created_at: int = Field(..., description="Microseconds since epoch")
    updated_at: int = Field(..., description="Microseconds since epoch")
