import json
import logging
import uuid
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any

import anthropic
from pydantic import ValidationError

from app.config import settings
from app.schemas.message import Message, ReasoningPart, TextPart, ToolPart, ToolState
from app.schemas.web_search import WebSearchInput
from app.services.web_search import (
    WEB_SEARCH_TOOL_DESCRIPTION,
    WEB_SEARCH_TOOL_NAME,
    WebSearchService,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a friendly shopping assistant that helps people discover handbags.

When the user asks about bags (handbags, totes, slings, satchels, backpacks, hobo bags, crossbody bags), call the webSearch tool with a focused query. The results are shown to the user as a product grid, so do not repeat every link; summarise the picks in a sentence or two and mention price ranges when they are known.

For other questions, use webSearch when you need current information and answer concisely. If the search is unavailable, say so briefly and answer from general knowledge."""

FALLBACK_TEXT = "Sorry, I couldn't reach the assistant right now. Please try again in a moment."

WEB_SEARCH_TOOL = {
    "name": WEB_SEARCH_TOOL_NAME,
    "description": WEB_SEARCH_TOOL_DESCRIPTION,
    "input_schema": WebSearchInput.model_json_schema(),
}


def _block_to_param(block: Any) -> dict:
    """Convert a response content block back into a request content block."""
    if block.type == "text":
        return {"type": "text", "text": block.text}
    if block.type == "thinking":
        return {"type": "thinking", "thinking": block.thinking, "signature": block.signature}
    if block.type == "redacted_thinking":
        return {"type": "redacted_thinking", "data": block.data}
    if block.type == "tool_use":
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    raise ValueError(f"Unsupported content block: {block.type}")


class ChatService:
    """Runs an assistant turn against Claude with the webSearch tool attached."""

    def __init__(self, client=None, web_search: WebSearchService | None = None):
        self.client = client or anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.model = settings.chat_model
        self.web_search = web_search or WebSearchService()

    async def reply(self, history: list[dict]) -> Message:
        message = None
        async for message in self.stream_reply(history):
            pass
        return message or Message(id=f"msg_{uuid.uuid4().hex}", role="assistant", parts=[])

    async def stream_reply(self, history: list[dict]) -> AsyncIterator[Message]:
        """Yield the assistant message each time a part is added or completed."""
        message = Message(id=f"msg_{uuid.uuid4().hex}", role="assistant", parts=[])
        messages = list(history)

        for _ in range(settings.max_tool_rounds + 1):
            try:
                response = await self.client.messages.create(**self._request(messages))
            except anthropic.APIError:
                logger.exception("Assistant request failed")
                message.parts.append(TextPart(text=FALLBACK_TEXT))
                yield message
                return

            tool_results = []
            for block in response.content:
                if block.type == "thinking":
                    message.parts.append(ReasoningPart(
                        text=block.thinking, started_at=datetime.now(timezone.utc)
                    ))
                    yield message
                elif block.type == "text":
                    message.parts.append(TextPart(text=block.text))
                    yield message
                elif block.type == "tool_use":
                    part = ToolPart(tool_call_id=block.id, tool_name=block.name, input=dict(block.input))
                    message.parts.append(part)
                    yield message

                    part.output = await self.execute_tool(block.name, block.input)
                    part.state = ToolState.OUTPUT_AVAILABLE
                    yield message

                    tool_results.append({
                        "type": "tool_result",
                        "tool_use_id": block.id,
                        "content": json.dumps(part.output, ensure_ascii=False),
                    })

            if response.stop_reason != "tool_use" or not tool_results:
                return

            messages.append({
                "role": "assistant",
                "content": [_block_to_param(b) for b in response.content],
            })
            messages.append({"role": "user", "content": tool_results})

        logger.warning("Stopped after %d tool rounds", settings.max_tool_rounds)

    async def execute_tool(self, name: str, tool_input: Any) -> dict:
        if name != WEB_SEARCH_TOOL_NAME:
            return {"error": f"Unknown tool: {name}"}
        try:
            params = WebSearchInput.model_validate(tool_input)
        except ValidationError as exc:
            return {"error": f"Invalid input: {exc.errors()[0]['msg']}"}

        result = await self.web_search.run(params.query)
        return result.model_dump(mode="json")

    def _request(self, messages: list[dict]) -> dict:
        request = {
            "model": self.model,
            "max_tokens": settings.chat_max_tokens,
            "system": SYSTEM_PROMPT,
            "tools": [WEB_SEARCH_TOOL],
            "messages": messages,
        }
        if settings.chat_thinking_budget > 0:
            request["thinking"] = {"type": "enabled", "budget_tokens": settings.chat_thinking_budget}
        return request
