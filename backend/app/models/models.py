import uuid
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import (
    String, Text, Integer, DateTime, ForeignKey, Uuid,
    Index, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.database import Base


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    OUTDATED = "OUTDATED"


class DocumentStatus(str, Enum):
    UPLOADED = "uploaded"
    INDEXING = "indexing"
    INDEXED = "indexed"
    FAILED = "failed"


class AnswerStatus(str, Enum):
    UNANSWERED = "unanswered"
    PROCESSING = "processing"
    COMPLETED = "completed"
    # Human review outcomes
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    MISSING_DATA = "MISSING_DATA"
    MANUAL_UPDATED = "MANUAL_UPDATED"


REVIEW_STATUSES = (
    AnswerStatus.CONFIRMED,
    AnswerStatus.REJECTED,
    AnswerStatus.MISSING_DATA,
    AnswerStatus.MANUAL_UPDATED,
)


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CitationOrigin(str, Enum):
    ANSWER = "answer"
    CHAT = "chat"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ProjectStatus] = mapped_column(String(20), default=ProjectStatus.ACTIVE)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    documents: Mapped[list["Document"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Document.uploaded_at",
    )
    questions: Mapped[list["Question"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [Question.section, Question.position],
    )
    chat_sessions: Mapped[list["ChatSession"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed', 'archived', 'OUTDATED')",
            name="chk_project_status",
        ),
    )


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    path: Mapped[str] = mapped_column(String(1000), nullable=False)
    status: Mapped[DocumentStatus] = mapped_column(String(20), default=DocumentStatus.UPLOADED)
    content: Mapped[str | None] = mapped_column(Text)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)

    project: Mapped["Project"] = relationship(back_populates="documents")

    __table_args__ = (Index("idx_documents_project", "project_id"),)


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    section: Mapped[str] = mapped_column(String(255), default="General")
    # Line order within the imported questionnaire
    position: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)

    project: Mapped["Project"] = relationship(back_populates="questions")
    answer: Mapped["Answer | None"] = relationship(
        back_populates="question",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_questions_project", "project_id"),)


class Answer(Base):
    __tablename__ = "answers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    manual_text: Mapped[str | None] = mapped_column(Text)
    confidence: Mapped[Confidence] = mapped_column(String(10), nullable=False)
    status: Mapped[AnswerStatus] = mapped_column(String(20), default=AnswerStatus.COMPLETED)
    eval_score: Mapped[int | None] = mapped_column(Integer)
    eval_explanation: Mapped[str | None] = mapped_column(Text)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)

    question: Mapped["Question"] = relationship(back_populates="answer")
    citations: Mapped[list["Citation"]] = relationship(
        back_populates="answer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("confidence IN ('high', 'medium', 'low')", name="chk_answer_confidence"),
    )


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), default="New Chat")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    project: Mapped["Project"] = relationship(back_populates="chat_sessions")
    messages: Mapped[list["ChatMessage"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChatMessage.created_at",
    )

    __table_args__ = (Index("idx_sessions_project", "project_id"),)


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[MessageRole] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[Confidence | None] = mapped_column(String(10))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)

    session: Mapped["ChatSession"] = relationship(back_populates="messages")
    citations: Mapped[list["Citation"]] = relationship(
        back_populates="message",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_msgs_session", "session_id"),
        CheckConstraint("role IN ('user', 'assistant')", name="chk_msg_role"),
    )


class Citation(Base):
    """Evidence attached to exactly one answer or one assistant chat message."""

    __tablename__ = "citations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    origin: Mapped[CitationOrigin] = mapped_column(String(10), nullable=False)
    answer_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("answers.id", ondelete="CASCADE")
    )
    message_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("chat_messages.id", ondelete="CASCADE")
    )
    # Not a foreign key: citations outlive their document and may say "unknown"
    document_id: Mapped[str] = mapped_column(String(64), nullable=False)
    document_name: Mapped[str] = mapped_column(String(500), nullable=False)
    text_snippet: Mapped[str] = mapped_column(Text, nullable=False)
    page_number: Mapped[int | None] = mapped_column(Integer)
    relevance_score: Mapped[int] = mapped_column(Integer, default=1)

    answer: Mapped["Answer | None"] = relationship(back_populates="citations")
    message: Mapped["ChatMessage | None"] = relationship(back_populates="citations")

    __table_args__ = (
        Index("idx_citations_answer", "answer_id"),
        Index("idx_citations_message", "message_id"),
        CheckConstraint(
            "(origin = 'answer' AND answer_id IS NOT NULL AND message_id IS NULL) OR "
            "(origin = 'chat' AND message_id IS NOT NULL AND answer_id IS NULL)",
            name="chk_citation_owner",
        ),
    )
