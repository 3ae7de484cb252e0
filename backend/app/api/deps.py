from typing import Annotated
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from app.core import get_db
from app.services.chat_service import ChatService
from app.services.extraction import TextExtractor
from app.services.llm import CompletionClient
from app.services.project_service import ProjectService
from app.services.storage import StorageService


def get_completion_client(request: Request) -> CompletionClient:
    return request.app.state.completion_client


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


def get_extractor(request: Request) -> TextExtractor:
    return request.app.state.extractor


def get_project_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    llm: Annotated[CompletionClient, Depends(get_completion_client)],
    extractor: Annotated[TextExtractor, Depends(get_extractor)],
) -> ProjectService:
    return ProjectService(db, llm=llm, extractor=extractor)


def get_chat_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    llm: Annotated[CompletionClient, Depends(get_completion_client)],
    extractor: Annotated[TextExtractor, Depends(get_extractor)],
) -> ChatService:
    return ChatService(db, llm=llm, extractor=extractor)
