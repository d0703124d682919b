"""Base schemas and common types for the Boardroom API."""

from pydantic import BaseModel, ConfigDict


class BoardroomBaseModel(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,  # Read domain dataclasses directly
        populate_by_name=True,
        use_enum_values=True,
    )


class ErrorDetail(BoardroomBaseModel):
    """Detailed error information."""

    field: str | None = None
    message: str
    code: str


class ErrorResponse(BoardroomBaseModel):
    """Standard error response format."""

    error: str
    message: str
    details: list[ErrorDetail] = []
    request_id: str | None = None


class MessageResponse(BoardroomBaseModel):
    message: str
