"""
Common Schemas
Shared Pydantic models for API error bodies
"""
from pydantic import BaseModel, Field
from typing import Optional


class ErrorResponse(BaseModel):
    """
    Standard error response model

    code is stable and machine-readable; clients branch on it rather than
    on the message.
    """
    error: str = Field(..., description="Error category")
    code: Optional[str] = Field(None, description="Application-specific error code")
    message: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "validation_error",
                "code": "INVALID_STATUS",
                "message": "INVALID_STATUS",
            }
        }
    }
