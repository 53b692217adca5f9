import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sse_starlette.sse import EventSourceResponse

from app.dependencies import get_chat_service
from app.services.chat import ChatService
from app.viewmodels.chat_vm import ChatViewModel

router = APIRouter(prefix="/chat")


@router.get("/")
async def chat_page(request: Request):
    vm = ChatViewModel.load()
    return request.app.state.templates.TemplateResponse(
        "chat/page.html",
        {"request": request, "vm": vm},
    )


@router.post("/messages")
async def send_message(request: Request, chat: ChatService = Depends(get_chat_service)):
    form = await request.form()
    query = (form.get("query") or "").strip()
    if not query:
        return HTMLResponse("Please type a question", status_code=422)

    vm = await ChatViewModel.respond(chat, query)
    return request.app.state.templates.TemplateResponse(
        "chat/messages.html",
        {"request": request, "vm": vm},
    )


@router.get("/stream")
async def stream_reply(request: Request, q: str = "", chat: ChatService = Depends(get_chat_service)):
    """SSE endpoint: re-renders the assistant message after every change."""
    templates = request.app.state.templates
    query = q.strip()

    async def event_generator():
        if not query:
            yield {"event": "error", "data": json.dumps({"message": "Empty query"})}
            return

        async for message_vm in ChatViewModel.stream(chat, query):
            html = templates.get_template("chat/message.html").render(message=message_vm)
            yield {"event": "message", "data": html}
        yield {"event": "done", "data": "{}"}

    return EventSourceResponse(event_generator())
