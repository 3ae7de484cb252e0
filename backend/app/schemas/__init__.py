from app.schemas.schemas import (
    ReviewStatus,
    CitationResponse, AnswerResponse, AnswerGenerateRequest, AnswerStatusUpdate,
    QuestionResponse, ParsedQuestion, QuestionnaireImportRequest, QuestionnaireImportResponse,
    DocumentIndexRequest, DocumentResponse, UploadResponse,
    ProjectCreate, ProjectResponse, ProjectDetailResponse,
    RegenerateItem, RegenerateResponse, EvaluationResponse,
    ChatSessionCreate, ChatSessionUpdate, ChatMessageCreate,
    ChatMessageResponse, ChatSessionResponse, SendMessageResponse
)

__all__ = [
    "ReviewStatus",
    "CitationResponse", "AnswerResponse", "AnswerGenerateRequest", "AnswerStatusUpdate",
    "QuestionResponse", "ParsedQuestion", "QuestionnaireImportRequest", "QuestionnaireImportResponse",
    "DocumentIndexRequest", "DocumentResponse", "UploadResponse",
    "ProjectCreate", "ProjectResponse", "ProjectDetailResponse",
    "RegenerateItem", "RegenerateResponse", "EvaluationResponse",
    "ChatSessionCreate", "ChatSessionUpdate", "ChatMessageCreate",
    "ChatMessageResponse", "ChatSessionResponse", "SendMessageResponse"
]
