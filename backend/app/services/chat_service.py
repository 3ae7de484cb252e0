import uuid
import logging
from datetime import datetime, timezone
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from app.core.exceptions import NotFoundError
from app.models import (
    ChatSession, ChatMessage, CitationOrigin, Document, MessageRole, Project
)
from app.services.extraction import TextExtractor
from app.services.llm import CompletionClient
from app.services.qa_service import build_citations, generate_answer

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TITLE = "New Chat"


def _session_query():
    return select(ChatSession).options(
        selectinload(ChatSession.messages).selectinload(ChatMessage.citations)
    )


class ChatService:
    """Chat sessions over a project's documents.

    Every message is answered on its own from the document corpus; earlier
    turns are stored but never sent to the model.
    """

    def __init__(
        self,
        db: AsyncSession,
        llm: CompletionClient | None = None,
        extractor: TextExtractor | None = None,
    ):
        self.db = db
        self.llm = llm
        self.extractor = extractor

    async def create_session(self, project_id: uuid.UUID, title: str | None = None) -> ChatSession:
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFoundError("Project not found")

        session = ChatSession(project_id=project_id, title=title or DEFAULT_SESSION_TITLE)
        self.db.add(session)
        await self.db.commit()
        return await self.get_session(session.id)

    async def list_sessions(self, project_id: uuid.UUID) -> list[ChatSession]:
        result = await self.db.execute(
            _session_query()
            .where(ChatSession.project_id == project_id)
            .order_by(ChatSession.updated_at.desc())
        )
        return list(result.scalars().all())

    async def get_session(self, session_id: uuid.UUID) -> ChatSession:
        result = await self.db.execute(
            _session_query()
            .where(ChatSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        session = result.scalar_one_or_none()
        if not session:
            raise NotFoundError("Session not found")
        return session

    async def rename_session(self, session_id: uuid.UUID, title: str) -> ChatSession:
        session = await self.db.get(ChatSession, session_id)
        if not session:
            raise NotFoundError("Session not found")
        session.title = title
        await self.db.commit()
        return await self.get_session(session_id)

    async def delete_session(self, session_id: uuid.UUID) -> None:
        # Loaded so the ORM cascade reaches messages and their citations
        session = await self.get_session(session_id)
        await self.db.delete(session)
        await self.db.commit()

    async def send_message(self, session_id: uuid.UUID, text: str) -> tuple[ChatMessage, ChatMessage]:
        """Store the user's message, answer it, and store the reply.

        The user message is committed before generation starts so it survives
        any later failure.
        """
        session = await self.db.get(ChatSession, session_id)
        if not session:
            raise NotFoundError("Session not found")
        project_id = session.project_id

        user_msg = ChatMessage(session_id=session_id, role=MessageRole.USER, content=text)
        self.db.add(user_msg)
        await self.db.commit()

        result = await self.db.execute(
            select(Document)
            .where(Document.project_id == project_id)
            .order_by(Document.uploaded_at.asc())
        )
        documents = list(result.scalars().all())

        generated = await generate_answer(text, documents, self.llm, self.extractor)

        assistant_msg = ChatMessage(
            session_id=session_id,
            role=MessageRole.ASSISTANT,
            content=generated.text,
            confidence=generated.confidence,
            citations=build_citations(generated.citations, CitationOrigin.CHAT),
        )
        self.db.add(assistant_msg)
        session.updated_at = datetime.now(timezone.utc)
        await self.db.commit()

        logger.info(
            "Chat session %s answered with confidence=%s documents=%d",
            session_id, generated.confidence.value, len(documents),
        )
        return await self._load_message(user_msg.id), await self._load_message(assistant_msg.id)

    async def _load_message(self, message_id: uuid.UUID) -> ChatMessage:
        result = await self.db.execute(
            select(ChatMessage)
            .options(selectinload(ChatMessage.citations))
            .where(ChatMessage.id == message_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
