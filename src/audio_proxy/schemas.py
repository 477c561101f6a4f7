from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TranscriptionResponse(BaseModel):
    text: str


class ErrorDetail(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail

    @classmethod
    def from_message(cls, message: str) -> "ErrorResponse":
        return cls(error=ErrorDetail(message=message))


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    model: str
    base_url: str = Field(alias="baseUrl")
    has_key: bool = Field(alias="hasKey")
