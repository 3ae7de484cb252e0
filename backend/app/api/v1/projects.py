import uuid
import logging
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core import get_db
from app.core.exceptions import (
    ExtractionError, NotFoundError, SourceFileNotFoundError, UnsupportedFileTypeError, ValidationError
)
from app.models import Project
from app.schemas import (
    ProjectCreate, ProjectDetailResponse, DocumentResponse, QuestionResponse,
    QuestionnaireImportRequest, QuestionnaireImportResponse, ParsedQuestion,
    RegenerateResponse, RegenerateItem, EvaluationResponse
)
from app.api.deps import get_extractor, get_project_service
from app.services.evaluation import run_project_evaluation
from app.services.extraction import TextExtractor
from app.services.project_service import ProjectService
from app.services.questionnaire import parse_from_file

logger = logging.getLogger(__name__)

router = APIRouter()


def extraction_http_error(e: ExtractionError) -> HTTPException:
    if isinstance(e, SourceFileNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, UnsupportedFileTypeError):
        return HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


def project_detail(project: Project) -> ProjectDetailResponse:
    return ProjectDetailResponse(
        id=project.id,
        name=project.name,
        client_name=project.client_name,
        status=project.status,
        created_at=project.created_at,
        updated_at=project.updated_at,
        document_count=len(project.documents),
        question_count=len(project.questions),
        documents=[DocumentResponse.model_validate(d) for d in project.documents],
        questions=[QuestionResponse.model_validate(q) for q in project.questions],
    )


@router.post("", response_model=ProjectDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    service: Annotated[ProjectService, Depends(get_project_service)],
):
    project = await service.create_project(project_data.name, project_data.client_name)
    return project_detail(project)


@router.get("", response_model=list[ProjectDetailResponse])
async def list_projects(
    service: Annotated[ProjectService, Depends(get_project_service)],
):
    projects = await service.list_projects()
    return [project_detail(project) for project in projects]


@router.get("/{project_id}", response_model=ProjectDetailResponse)
async def get_project(
    project_id: uuid.UUID,
    service: Annotated[ProjectService, Depends(get_project_service)],
):
    try:
        project = await service.get_project(project_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return project_detail(project)


@router.post("/{project_id}/import", response_model=QuestionnaireImportResponse)
async def import_questionnaire(
    project_id: uuid.UUID,
    import_data: QuestionnaireImportRequest,
    service: Annotated[ProjectService, Depends(get_project_service)],
    extractor: Annotated[TextExtractor, Depends(get_extractor)],
):
    """Parse a questionnaire from the data directory into the project's questions."""
    try:
        await service.get_project(project_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    try:
        questions = await parse_from_file(import_data.filename, extractor)
    except ExtractionError as e:
        raise extraction_http_error(e)

    try:
        await service.import_questions(project_id, questions, replace=import_data.mode != "append")
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return QuestionnaireImportResponse(
        count=len(questions),
        questions=[ParsedQuestion(**q) for q in questions],
    )


@router.post("/{project_id}/regenerate", response_model=RegenerateResponse)
async def regenerate_answers(
    project_id: uuid.UUID,
    service: Annotated[ProjectService, Depends(get_project_service)],
):
    """Regenerate every answer in the project, one question at a time."""
    try:
        results = await service.regenerate_all(project_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return RegenerateResponse(
        count=len(results),
        processed=[RegenerateItem(**r) for r in results],
    )


@router.post("/{project_id}/evaluate", response_model=EvaluationResponse)
async def evaluate_project(
    project_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    try:
        result = await run_project_evaluation(db, project_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return EvaluationResponse(count=result.count, average_score=result.average_score)
