from typing import Any

from pydantic import BaseModel


class ToolResult(BaseModel):
    """Envelope returned for every tool call, success or failure."""

    ok: bool
    text: str
    error_code: str | None = None

    @classmethod
    def success(cls, text: str) -> "ToolResult":
        return cls(ok=True, text=text)

    @classmethod
    def failure(cls, error_code: str, message: str) -> "ToolResult":
        return cls(ok=False, text=message, error_code=error_code)


class ToolDescriptor(BaseModel):
    name: str
    description: str
    input_schema: dict[str, Any]


class StatusResponse(BaseModel):
    server: str
    version: str
    configured: bool
    tools: list[str]
    message: str
