from fastapi import APIRouter
from app.api.v1 import projects, documents, answers, chat

router = APIRouter()

router.include_router(projects.router, prefix="/projects", tags=["projects"])
router.include_router(documents.router, prefix="/documents", tags=["documents"])
router.include_router(answers.router, prefix="/answers", tags=["answers"])
router.include_router(chat.router, prefix="/chat", tags=["chat"])
