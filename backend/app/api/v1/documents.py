from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from app.core.config import get_settings
from app.core.exceptions import ExtractionError, NotFoundError
from app.schemas import DocumentIndexRequest, DocumentResponse, UploadResponse
from app.api.deps import get_project_service, get_storage
from app.api.v1.projects import extraction_http_error
from app.services.project_service import ProjectService
from app.services.storage import StorageService

router = APIRouter()


@router.get("/files", response_model=list[str])
async def list_available_files(
    storage: Annotated[StorageService, Depends(get_storage)],
):
    """Files in the data directory that can be indexed or imported."""
    return await storage.list_files()


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    storage: Annotated[StorageService, Depends(get_storage)],
    file: UploadFile = File(...),
):
    """Store a PDF/DOCX/XLSX/TXT file in the data directory."""
    try:
        filename, size = await storage.save_upload_file(
            file, get_settings().max_upload_size_bytes
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    finally:
        await file.close()

    return UploadResponse(filename=filename, size=size)


@router.post("/index", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def index_document(
    index_data: DocumentIndexRequest,
    service: Annotated[ProjectService, Depends(get_project_service)],
):
    """Attach a data-directory file to a project and extract its text."""
    try:
        return await service.add_document(index_data.project_id, index_data.filename)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ExtractionError as e:
        raise extraction_http_error(e)
