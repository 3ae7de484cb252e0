import uuid
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field, model_validator


ReviewStatus = Literal["CONFIRMED", "REJECTED", "MISSING_DATA", "MANUAL_UPDATED"]


class CitationResponse(BaseModel):
    origin: str
    document_id: str
    document_name: str
    text_snippet: str
    page_number: int | None = None
    relevance_score: int

    class Config:
        from_attributes = True


class AnswerResponse(BaseModel):
    id: uuid.UUID
    question_id: uuid.UUID
    text: str
    manual_text: str | None = None
    confidence: str
    status: str
    eval_score: int | None = None
    eval_explanation: str | None = None
    generated_at: datetime
    citations: list[CitationResponse] = []

    class Config:
        from_attributes = True


class AnswerGenerateRequest(BaseModel):
    project_id: uuid.UUID
    question_id: uuid.UUID


class AnswerStatusUpdate(BaseModel):
    project_id: uuid.UUID
    status: ReviewStatus
    manual_text: str | None = None

    @model_validator(mode="after")
    def require_manual_text(self):
        if self.status == "MANUAL_UPDATED" and not (self.manual_text or "").strip():
            raise ValueError("manual_text is required when status is MANUAL_UPDATED")
        return self


class QuestionResponse(BaseModel):
    id: uuid.UUID
    text: str
    section: str
    answer: AnswerResponse | None = None

    class Config:
        from_attributes = True


class ParsedQuestion(BaseModel):
    text: str
    section: str


class QuestionnaireImportRequest(BaseModel):
    filename: str = Field(min_length=1)
    mode: Literal["replace", "append"] = "replace"


class QuestionnaireImportResponse(BaseModel):
    count: int
    questions: list[ParsedQuestion]


class DocumentIndexRequest(BaseModel):
    project_id: uuid.UUID
    filename: str = Field(min_length=1)


class DocumentResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    name: str
    path: str
    status: str
    uploaded_at: datetime

    class Config:
        from_attributes = True


class UploadResponse(BaseModel):
    filename: str
    size: int


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    client_name: str = Field(min_length=1, max_length=255)


class ProjectResponse(BaseModel):
    id: uuid.UUID
    name: str
    client_name: str
    status: str
    created_at: datetime
    updated_at: datetime
    document_count: int = 0
    question_count: int = 0

    class Config:
        from_attributes = True


class ProjectDetailResponse(ProjectResponse):
    documents: list[DocumentResponse] = []
    questions: list[QuestionResponse] = []


class RegenerateItem(BaseModel):
    question_id: uuid.UUID
    success: bool
    error: str | None = None


class RegenerateResponse(BaseModel):
    count: int
    processed: list[RegenerateItem]


class EvaluationResponse(BaseModel):
    count: int
    average_score: float


class ChatSessionCreate(BaseModel):
    project_id: uuid.UUID
    title: str | None = Field(default=None, max_length=500)


class ChatSessionUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=500)


class ChatMessageCreate(BaseModel):
    session_id: uuid.UUID
    message: str = Field(min_length=1)


class ChatMessageResponse(BaseModel):
    id: uuid.UUID
    session_id: uuid.UUID
    role: str
    content: str
    confidence: str | None = None
    created_at: datetime
    citations: list[CitationResponse] = []

    class Config:
        from_attributes = True


class ChatSessionResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    created_at: datetime
    updated_at: datetime
    messages: list[ChatMessageResponse] = []

    class Config:
        from_attributes = True


class SendMessageResponse(BaseModel):
    user_message: ChatMessageResponse
    assistant_message: ChatMessageResponse
