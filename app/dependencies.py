from app.services.chat import ChatService
from app.services.web_search import WebSearchService


def get_web_search_service() -> WebSearchService:
    return WebSearchService()


def get_chat_service() -> ChatService:
    return ChatService()
