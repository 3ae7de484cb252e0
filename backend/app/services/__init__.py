from app.services.storage import StorageService
from app.services.extraction import TextExtractor
from app.services.llm import CompletionClient
from app.services.project_service import ProjectService
from app.services.chat_service import ChatService

__all__ = [
    "StorageService",
    "TextExtractor",
    "CompletionClient",
    "ProjectService",
    "ChatService",
]
