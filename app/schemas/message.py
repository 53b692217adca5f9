from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class ToolState(StrEnum):
    INPUT_AVAILABLE = "input-available"
    OUTPUT_AVAILABLE = "output-available"


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ReasoningPart(BaseModel):
    type: Literal["reasoning"] = "reasoning"
    text: str
    started_at: datetime | None = None


class ToolPart(BaseModel):
    type: Literal["tool"] = "tool"
    tool_call_id: str
    tool_name: str
    state: ToolState = ToolState.INPUT_AVAILABLE
    input: dict[str, Any] = {}
    output: Any = None


MessagePart = Annotated[TextPart | ReasoningPart | ToolPart, Field(discriminator="type")]


class Message(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    parts: list[MessagePart] = []


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1)


class ChatRequest(BaseModel):
    messages: list[ChatTurn] = Field(min_length=1)
