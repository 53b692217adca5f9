from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.message import Message, ReasoningPart, TextPart, ToolPart, ToolState
from app.schemas.web_search import GenericItem, GenericResults, HandbagResults, Product
from app.viewmodels.message_vm import (
    MessageViewModel,
    ProductGridView,
    ReasoningView,
    TextView,
    ToolCallView,
    ToolResultView,
    extract_products,
)

RAW_PRODUCTS = [
    {
        "name": "Classic Leather Tote",
        "price": "₹2,499",
        "imageUrl": "https://cdn.example.com/tote.jpg",
        "url": "https://shop.example.com/tote",
        "domain": "shop.example.com",
    },
    {"name": "Canvas Sling", "url": "https://shop.example.com/sling"},
    {"name": "", "url": "https://shop.example.com/nameless"},
    {"name": "No Link", "url": ""},
]

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def web_search_part(output, state=ToolState.OUTPUT_AVAILABLE, tool_name="webSearch"):
    return ToolPart(
        tool_call_id="toolu_1",
        tool_name=tool_name,
        state=state,
        input={"query": "tote bag"},
        output=output,
    )


class TestExtractProducts:
    def test_bare_list_and_products_object_match(self):
        from_list = extract_products(RAW_PRODUCTS)
        from_object = extract_products({"products": RAW_PRODUCTS})

        assert from_list == from_object
        assert [p.name for p in from_list] == ["Classic Leather Tote", "Canvas Sling"]
        assert from_list[0].image_url == "https://cdn.example.com/tote.jpg"
        assert from_list[0].store == "shop.example.com"
        assert from_list[1].price is None

    def test_handbags_envelope(self):
        output = HandbagResults(query="tote", items=[
            Product(name="Tote", url="https://shop.example.com/t", price="$40"),
        ])
        assert [p.name for p in extract_products(output)] == ["Tote"]
        assert [p.name for p in extract_products(output.model_dump(mode="json"))] == ["Tote"]

    @pytest.mark.parametrize("output", [
        None,
        "some text",
        42,
        {"products": "not a list"},
        {"type": "generic", "items": [{"title": "x", "url": "https://x"}]},
        [1, 2, 3],
        [{"name": ["not", "a", "string"], "url": "https://x"}],
    ])
    def test_mismatched_shapes_yield_nothing(self, output):
        assert extract_products(output) == []

    def test_bad_items_are_skipped_individually(self):
        mixed = [
            "not a product",
            {"name": ["not", "a", "string"], "url": "https://shop.example.com/bad"},
            RAW_PRODUCTS[0],
            None,
            RAW_PRODUCTS[1],
        ]
        assert [p.name for p in extract_products(mixed)] == ["Classic Leather Tote", "Canvas Sling"]
        assert len(extract_products({"products": mixed})) == 2


class TestMessageViewModel:
    def test_dispatches_each_part_type(self):
        message = Message(id="m1", role="assistant", parts=[
            TextPart(text="Looking now."),
            web_search_part(None, state=ToolState.INPUT_AVAILABLE),
            web_search_part({"products": RAW_PRODUCTS}),
            web_search_part(GenericResults(query="q", items=[
                GenericItem(title="News", url="https://news.example.com"),
            ]).model_dump(mode="json")),
            web_search_part({"value": 3}, tool_name="calculator"),
        ])

        vm = MessageViewModel.build(message)

        assert [type(p) for p in vm.parts] == [
            TextView, ToolCallView, ProductGridView, ToolResultView, ToolResultView,
        ]
        assert [p.key for p in vm.parts] == ["m1-0", "m1-1", "m1-2", "m1-3", "m1-4"]
        assert vm.parts[1].input == {"query": "tote bag"}
        assert len(vm.parts[2].products) == 2
        assert ("type", "generic") in vm.parts[3].rows
        assert vm.parts[4].rows == [("value", "3")]

    def test_empty_web_search_falls_back_to_tool_result(self):
        message = Message(id="m1", role="assistant", parts=[
            web_search_part({"type": "handbags", "query": "tote", "items": []}),
        ])
        vm = MessageViewModel.build(message)
        assert isinstance(vm.parts[0], ToolResultView)

    def test_streaming_reasoning_reports_duration(self):
        durations = {}
        message = Message(id="m1", role="assistant", parts=[
            TextPart(text="hi"),
            ReasoningPart(text="thinking about totes", started_at=T0),
        ])

        vm = MessageViewModel.build(
            message,
            status="streaming",
            is_last_message=True,
            durations=durations,
            on_duration_change=durations.__setitem__,
            now=T0 + timedelta(seconds=2.5),
        )

        reasoning = vm.parts[1]
        assert isinstance(reasoning, ReasoningView)
        assert reasoning.is_streaming
        assert durations == {"m1-1": 2.5}
        assert reasoning.duration == 2.5

    @pytest.mark.parametrize("status, is_last_message, reasoning_last", [
        ("ready", True, True),
        ("streaming", False, True),
        ("streaming", True, False),
    ])
    def test_reasoning_not_streaming(self, status, is_last_message, reasoning_last):
        calls = []
        parts = [ReasoningPart(text="...", started_at=T0), TextPart(text="done")]
        if reasoning_last:
            parts.reverse()
        message = Message(id="m1", role="assistant", parts=parts)

        vm = MessageViewModel.build(
            message,
            status=status,
            is_last_message=is_last_message,
            durations={"m1-0": 1.0, "m1-1": 1.0},
            on_duration_change=lambda key, d: calls.append((key, d)),
            now=T0 + timedelta(seconds=9),
        )

        reasoning = next(p for p in vm.parts if isinstance(p, ReasoningView))
        assert not reasoning.is_streaming
        assert reasoning.duration == 1.0
        assert calls == []
