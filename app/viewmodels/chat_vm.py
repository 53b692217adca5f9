import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from app.config import settings
from app.schemas.message import ChatTurn, Message, TextPart
from app.services.chat import ChatService
from app.viewmodels.message_vm import MessageViewModel

SUGGESTIONS = [
    "Show me black leather tote bags under ₹5,000",
    "Best crossbody bags for travel",
    "Vegan leather backpack for work",
]


def user_message(text: str) -> Message:
    return Message(id=f"msg_{uuid.uuid4().hex}", role="user", parts=[TextPart(text=text)])


def history_from_turns(turns: list[ChatTurn]) -> list[dict]:
    return [{"role": t.role, "content": t.content} for t in turns]


@dataclass
class ChatViewModel:
    title: str = settings.app_name
    suggestions: list[str] = field(default_factory=lambda: list(SUGGESTIONS))
    messages: list[MessageViewModel] = field(default_factory=list)

    @classmethod
    def load(cls) -> "ChatViewModel":
        return cls()

    @classmethod
    async def respond(cls, chat: ChatService, query: str) -> "ChatViewModel":
        user = user_message(query)
        reply = await chat.reply([{"role": "user", "content": query}])
        return cls(messages=[
            MessageViewModel.build(user),
            MessageViewModel.build(reply, status="ready", is_last_message=True),
        ])

    @classmethod
    async def stream(cls, chat: ChatService, query: str) -> AsyncIterator[MessageViewModel]:
        """Yield render snapshots of the assistant reply while it is produced.

        Every snapshot but the last is built with ``status="streaming"``.
        Reasoning durations are tracked per stream.
        """
        durations: dict[str, float] = {}

        def on_duration_change(key: str, duration: float) -> None:
            durations[key] = duration

        last: Message | None = None
        async for message in chat.stream_reply([{"role": "user", "content": query}]):
            last = message
            yield MessageViewModel.build(
                message,
                status="streaming",
                is_last_message=True,
                durations=durations,
                on_duration_change=on_duration_change,
            )

        if last is not None:
            yield MessageViewModel.build(
                last, status="ready", is_last_message=True, durations=durations
            )
