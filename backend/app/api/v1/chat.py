import uuid
import logging
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status, Query
from app.core.exceptions import NotFoundError
from app.schemas import (
    ChatSessionCreate, ChatSessionUpdate, ChatSessionResponse,
    ChatMessageCreate, ChatMessageResponse, SendMessageResponse
)
from app.api.deps import get_chat_service
from app.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sessions", response_model=ChatSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    session_data: ChatSessionCreate,
    service: Annotated[ChatService, Depends(get_chat_service)],
):
    try:
        return await service.create_session(session_data.project_id, session_data.title)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/sessions", response_model=list[ChatSessionResponse])
async def list_sessions(
    service: Annotated[ChatService, Depends(get_chat_service)],
    project_id: uuid.UUID = Query(),
):
    return await service.list_sessions(project_id)


@router.get("/sessions/{session_id}", response_model=ChatSessionResponse)
async def get_session(
    session_id: uuid.UUID,
    service: Annotated[ChatService, Depends(get_chat_service)],
):
    try:
        return await service.get_session(session_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/sessions/{session_id}", response_model=ChatSessionResponse)
async def rename_session(
    session_id: uuid.UUID,
    session_data: ChatSessionUpdate,
    service: Annotated[ChatService, Depends(get_chat_service)],
):
    try:
        return await service.rename_session(session_id, session_data.title)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: uuid.UUID,
    service: Annotated[ChatService, Depends(get_chat_service)],
):
    try:
        await service.delete_session(session_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/messages", response_model=SendMessageResponse)
async def send_message(
    message_data: ChatMessageCreate,
    service: Annotated[ChatService, Depends(get_chat_service)],
):
    """Answer a chat message from the session's project documents."""
    try:
        user_msg, assistant_msg = await service.send_message(message_data.session_id, message_data.message)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    logger.debug("Session %s: stored messages %s, %s", message_data.session_id, user_msg.id, assistant_msg.id)
    return SendMessageResponse(
        user_message=ChatMessageResponse.model_validate(user_msg),
        assistant_message=ChatMessageResponse.model_validate(assistant_msg),
    )
