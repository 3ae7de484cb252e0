import uuid
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from app.core.exceptions import NotFoundError
from app.models import AnswerStatus
from app.schemas import AnswerGenerateRequest, AnswerResponse, AnswerStatusUpdate
from app.api.deps import get_project_service
from app.services.project_service import ProjectService

router = APIRouter()


@router.post("/generate", response_model=AnswerResponse)
async def generate_answer(
    request_data: AnswerGenerateRequest,
    service: Annotated[ProjectService, Depends(get_project_service)],
):
    """Generate (or regenerate) the answer to one question."""
    try:
        return await service.generate_answer(request_data.project_id, request_data.question_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{question_id}/status", response_model=AnswerResponse)
async def update_answer_status(
    question_id: uuid.UUID,
    update_data: AnswerStatusUpdate,
    service: Annotated[ProjectService, Depends(get_project_service)],
):
    try:
        return await service.update_answer_status(
            update_data.project_id,
            question_id,
            AnswerStatus(update_data.status),
            update_data.manual_text,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
