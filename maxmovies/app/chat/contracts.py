from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_USER_ID = "default"
FALLBACK_REPLY = "I couldn't generate a response. Please try again."


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = None
    user_id: str | None = Field(default=None, alias="userId")
    project: str | None = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _stringify_numeric_user_id(cls, value: object) -> object:
        # Numeric ids name the same record as their decimal string.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class MemorySummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    last_project: str | None = Field(alias="lastProject")
    conversation_length: int = Field(alias="conversationLength")
    user_id: str = Field(alias="userId")


class GenerateResponse(BaseModel):
    reply: str
    memory: MemorySummary
