from fastapi import APIRouter, Depends

from app.dependencies import get_chat_service, get_web_search_service
from app.schemas.message import ChatRequest, Message
from app.schemas.web_search import WebSearchInput, WebSearchOutput
from app.services.chat import ChatService
from app.services.web_search import WebSearchService
from app.viewmodels.chat_vm import history_from_turns

router = APIRouter(prefix="/api")


@router.post("/tools/web-search", response_model=WebSearchOutput)
async def web_search(
    data: WebSearchInput,
    service: WebSearchService = Depends(get_web_search_service),
):
    return await service.run(data.query)


@router.post("/chat", response_model=Message)
async def chat(data: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    return await chat_service.reply(history_from_turns(data.messages))
