import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ValidationError

from app.schemas.message import Message, ReasoningPart, TextPart, ToolPart, ToolState
from app.schemas.web_search import Product
from app.services.web_search import WEB_SEARCH_TOOL_NAME

logger = logging.getLogger(__name__)

MAX_RESULT_VALUE_CHARS = 500


def _coerce_products(raw: list) -> list[Product]:
    products = []
    for p in raw:
        if isinstance(p, BaseModel):
            p = p.model_dump()
        if not isinstance(p, dict):
            continue
        try:
            products.append(Product(
                name=p.get("name") or p.get("productName") or "",
                price=p.get("price") or None,
                image_url=p.get("image_url") or p.get("imageUrl") or None,
                url=p.get("url") or "",
                store=p.get("store") or p.get("domain") or None,
            ))
        except ValidationError:
            continue
    return [p for p in products if p.name and p.url]


def extract_products(output: Any) -> list[Product]:
    """Turn a webSearch tool output into grid-ready products.

    Accepts a bare list, an object with a ``products`` list, or a
    ``handbags`` envelope with ``items``. Anything else gives ``[]``.
    """
    try:
        if isinstance(output, BaseModel):
            output = output.model_dump()

        if isinstance(output, list):
            return _coerce_products(output)

        if isinstance(output, dict):
            if isinstance(output.get("products"), list):
                return _coerce_products(output["products"])
            if output.get("type") == "handbags" and isinstance(output.get("items"), list):
                return _coerce_products(output["items"])

        return []
    except Exception:
        logger.debug("Tool output is not a product list", exc_info=True)
        return []


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        text = value
    else:
        text = json.dumps(value, ensure_ascii=False, default=str)
    if len(text) > MAX_RESULT_VALUE_CHARS:
        text = text[:MAX_RESULT_VALUE_CHARS] + "…"
    return text


def result_rows(output: Any) -> list[tuple[str, str]]:
    if isinstance(output, BaseModel):
        output = output.model_dump(mode="json")
    if isinstance(output, dict):
        return [(str(k), _format_value(v)) for k, v in output.items()]
    if isinstance(output, list):
        return [(str(i), _format_value(v)) for i, v in enumerate(output)]
    return [("result", _format_value(output))]


@dataclass
class TextView:
    key: str
    text: str
    template: str = "chat/parts/text.html"


@dataclass
class ReasoningView:
    key: str
    text: str
    is_streaming: bool = False
    duration: float | None = None
    template: str = "chat/parts/reasoning.html"


@dataclass
class ToolCallView:
    key: str
    tool_name: str
    input: dict = field(default_factory=dict)
    template: str = "chat/parts/tool_call.html"


@dataclass
class ProductGridView:
    key: str
    products: list[Product] = field(default_factory=list)
    template: str = "chat/parts/product_grid.html"


@dataclass
class ToolResultView:
    key: str
    tool_name: str
    rows: list[tuple[str, str]] = field(default_factory=list)
    template: str = "chat/parts/tool_result.html"


PartView = TextView | ReasoningView | ToolCallView | ProductGridView | ToolResultView


@dataclass
class MessageViewModel:
    message_id: str
    role: str
    parts: list[PartView] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        message: Message,
        status: str | None = None,
        is_last_message: bool = False,
        durations: dict[str, float] | None = None,
        on_duration_change: Callable[[str, float], None] | None = None,
        now: datetime | None = None,
    ) -> "MessageViewModel":
        views: list[PartView] = []
        last_index = len(message.parts) - 1

        for i, part in enumerate(message.parts):
            key = f"{message.id}-{i}"

            if isinstance(part, TextPart):
                views.append(TextView(key=key, text=part.text))

            elif isinstance(part, ReasoningPart):
                is_streaming = status == "streaming" and is_last_message and i == last_index
                if is_streaming and on_duration_change and part.started_at:
                    current = now or datetime.now(timezone.utc)
                    on_duration_change(key, (current - part.started_at).total_seconds())
                views.append(ReasoningView(
                    key=key,
                    text=part.text,
                    is_streaming=is_streaming,
                    duration=(durations or {}).get(key),
                ))

            elif isinstance(part, ToolPart):
                views.append(cls._tool_view(key, part))

        return cls(message_id=message.id, role=message.role, parts=views)

    @staticmethod
    def _tool_view(key: str, part: ToolPart) -> PartView:
        if part.state != ToolState.OUTPUT_AVAILABLE:
            return ToolCallView(key=key, tool_name=part.tool_name, input=part.input)

        if part.tool_name == WEB_SEARCH_TOOL_NAME:
            products = extract_products(part.output)
            if products:
                return ProductGridView(key=key, products=products)

        return ToolResultView(key=key, tool_name=part.tool_name, rows=result_rows(part.output))
