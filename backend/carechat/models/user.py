"""
User identity model.
"""

from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """Signed-in user as supplied by the identity collaborator."""

    id: str = Field(..., description="Stable unique user ID")
    email: Optional[str] = None
    display_name: Optional[str] = None
