from app.models.models import (
    Project, Document, Question, Answer, Citation, ChatSession, ChatMessage,
    ProjectStatus, DocumentStatus, AnswerStatus, Confidence, CitationOrigin, MessageRole,
    REVIEW_STATUSES
)

__all__ = [
    "Project", "Document", "Question", "Answer", "Citation", "ChatSession", "ChatMessage",
    "ProjectStatus", "DocumentStatus", "AnswerStatus", "Confidence", "CitationOrigin", "MessageRole",
    "REVIEW_STATUSES"
]
