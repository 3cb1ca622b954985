"""
Pydantic models for persisted user and book records.
Converts between MongoDB documents and typed records.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """Roles a user may hold. Stored but not enforced."""
    ADMIN = "admin"
    USER = "user"


class UserRecord(BaseModel):
    """
    A registered user as stored in the users collection.

    password_hash is the bcrypt digest and must be stripped before the
    record leaves the API.
    """
    id: str = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Unique login name")
    email: str = Field(..., description="Unique email address")
    password_hash: str = Field(..., description="Salted bcrypt hash of the password")
    role: UserRole = Field(default=UserRole.USER, description="User role")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Registration time")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserRecord":
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            email=doc["email"],
            password_hash=doc["password_hash"],
            role=doc.get("role", UserRole.USER),
            created_at=doc.get("created_at") or datetime.utcnow(),
        )


class BookRecord(BaseModel):
    """A book as stored in the books collection."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    year: Optional[int] = Field(None, description="Publication year")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Creation timestamp")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "BookRecord":
        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            author=doc["author"],
            year=doc.get("year"),
            created_at=doc.get("created_at") or datetime.utcnow(),
        )


class ValidationResult(BaseModel):
    """Outcome of an explicit validation pass over input fields."""
    valid: bool = Field(..., description="Whether every check passed")
    errors: List[str] = Field(default_factory=list, description="Messages for failed checks")
    cleaned: Dict[str, Any] = Field(default_factory=dict, description="Normalised field values")
