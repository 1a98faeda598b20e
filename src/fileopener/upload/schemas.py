"""Pydantic model for the agent's JSON verdict."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class AgentResponse(BaseModel):
    """Body returned by ``POST /upload``.

    ``success`` is required and must be a real JSON boolean; anything
    else (non-JSON, array, missing or mistyped ``success``) fails
    validation and is reported as a parse failure.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: StrictBool
    file_path: str | None = Field(default=None, alias="filePath")
    error_message: str | None = Field(default=None, alias="errorMessage")
