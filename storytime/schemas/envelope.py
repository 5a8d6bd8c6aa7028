"""Response envelope shared by every endpoint."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiError(BaseModel):
    """Error payload."""

    message: str
    details: Any = None


class ApiResponse(BaseModel, Generic[T]):
    """``{success, data?, error?}`` envelope."""

    success: bool = True
    data: T | None = None
    error: ApiError | None = None


class Message(BaseModel):
    """Plain confirmation message."""

    message: str


def ok(data: Any) -> dict[str, Any]:
    """Wrap a payload in a success envelope."""
    return {"success": True, "data": data}


def error_body(message: str, details: Any = None) -> dict[str, Any]:
    """Build a failure envelope."""
    error: dict[str, Any] = {"message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}
