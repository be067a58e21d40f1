"""
Group data models.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class GroupResponse(BaseModel):
    """Group with its member users and assigned roles."""
    id: str
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    users: List[str] = Field(default_factory=list)
    created_at: int = Field(..., description="Microseconds since epoch")
    updated_at: int = Field(..., description="Microseconds since epoch")
