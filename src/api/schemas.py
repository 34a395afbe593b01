from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# PUBLIC_INTERFACE
class Credentials(BaseModel):
    """
    Schema for signup and login requests.

    Both fields are optional at the schema level so that missing values are
    reported as "Please enter valid email and password" rather than a generic
    validation failure.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "a@x.com",
                "password": "p1",
            }
        }
    )

    email: Optional[str] = Field(default=None, description="Account email (case-sensitive)")
    password: Optional[str] = Field(default=None, description="Account password")


# PUBLIC_INTERFACE
class AuthResponse(BaseModel):
    """
    Schema returned by signup and login. The token is also set as the `token` cookie.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "msg": "Logged In successfully",
                "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
            }
        }
    )

    success: bool = Field(..., description="Whether the operation succeeded")
    msg: str = Field(..., description="Human-readable outcome")
    token: str = Field(..., description="Signed session token (JWT)")


# PUBLIC_INTERFACE
class MessageResponse(BaseModel):
    """Generic success envelope without a payload (health, logout)."""

    success: bool = Field(..., description="Whether the operation succeeded")
    msg: str = Field(..., description="Human-readable outcome")
    backend: Optional[str] = Field(default=None, description="Active storage backend (health only)")


# PUBLIC_INTERFACE
class TaskResponse(BaseModel):
    """
    Envelope for task operations.

    `result` depends on the route:
    - add-task: {"inserted_id": "<id>"}
    - tasks: list of task documents
    - task/{id}, update-task: the task document
    - delete, delete-multiple: {"deleted_count": n}
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "msg": "task fetched",
                "result": {"_id": "65f1c0c2a1b2c3d4e5f60718", "title": "Buy groceries"},
            }
        }
    )

    success: bool = Field(..., description="Whether the operation succeeded")
    msg: str = Field(..., description="Human-readable outcome")
    result: Any = Field(default=None, description="Operation result")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """Body returned for every failure."""

    success: bool = Field(False, description="Always false")
    msg: str = Field(..., description="Human-readable error message")
    detail: Optional[List[Any]] = Field(default=None, description="Validation details, if any")
