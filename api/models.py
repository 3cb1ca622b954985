"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from store.models import BookRecord, UserRecord, UserRole


class SignupRequest(BaseModel):
    """Signup body. Presence is checked by the auth service, not here."""
    username: Optional[str] = Field(None, description="Unique login name")
    email: Optional[str] = Field(None, description="Unique email address")
    password: Optional[str] = Field(None, description="Plain-text password")
    role: Optional[str] = Field(UserRole.USER.value, description="admin or user")


class LoginRequest(BaseModel):
    """Credentials for login."""
    username: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")


class BookPayload(BaseModel):
    """
    Book fields accepted on create and update.
    Unknown keys are ignored; constraints live in store.validators.
    """
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, description="Book title (max 100 characters)")
    author: Optional[str] = Field(None, description="Book author (max 50 characters)")
    year: Optional[int] = Field(None, description="Publication year, 1700 to the current year")


class UserResponse(BaseModel):
    """Public view of a user; never includes the password hash."""
    id: str = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="User role")
    created_at: datetime = Field(..., description="Registration time")

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserResponse":
        return cls(**user.model_dump(exclude={"password_hash"}))


class SignupResponse(BaseModel):
    success: bool = Field(True, description="Whether the call succeeded")
    message: str = Field(..., description="Human-readable result")
    data: UserResponse = Field(..., description="The created user")


class LoginResponse(BaseModel):
    success: bool = Field(True, description="Whether the call succeeded")
    message: str = Field(..., description="Human-readable result")
    token: str = Field(..., description="Bearer token, valid for 15 minutes")


class BookMessageResponse(BaseModel):
    """Response for book writes."""
    message: str = Field(..., description="Human-readable result")
    data: BookRecord = Field(..., description="The affected book")


class HomeResponse(BaseModel):
    message: str = Field(..., description="Greeting")


class ErrorResponse(BaseModel):
    """Error response model."""
    success: bool = Field(False, description="Always false")
    message: str = Field(..., description="Error message")
    errors: Optional[List[str]] = Field(None, description="Individual validation failures")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
