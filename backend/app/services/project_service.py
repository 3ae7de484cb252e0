import logging
import uuid
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from app.core.exceptions import ExtractionError, NotFoundError, ValidationError
from app.models import (
    Answer, AnswerStatus, CitationOrigin, Document, DocumentStatus,
    Project, ProjectStatus, Question
)
from app.models.models import _utc_now
from app.services.extraction import TextExtractor
from app.services.llm import CompletionClient
from app.services.qa_service import GeneratedAnswer, build_citations, generate_answer
from app.services.questionnaire import ParsedQuestion

logger = logging.getLogger(__name__)

INITIAL_QUESTIONS: list[ParsedQuestion] = [
    {"text": "Does the fund have a dedicated ESG team?", "section": "ESG"},
    {"text": "What is the fund's strategy for risk management?", "section": "Risk"},
    {"text": "Provide details on the key investment professionals.", "section": "Team"},
]


def _project_detail_query():
    return select(Project).options(
        selectinload(Project.documents),
        selectinload(Project.questions)
        .selectinload(Question.answer)
        .selectinload(Answer.citations),
    )


class ProjectService:
    """Projects with their documents, questions and answers."""

    def __init__(
        self,
        db: AsyncSession,
        llm: CompletionClient | None = None,
        extractor: TextExtractor | None = None,
    ):
        self.db = db
        self.llm = llm
        self.extractor = extractor

    async def create_project(self, name: str, client_name: str) -> Project:
        project = Project(name=name, client_name=client_name, status=ProjectStatus.ACTIVE)
        project.questions = [
            Question(text=q["text"], section=q["section"], position=i)
            for i, q in enumerate(INITIAL_QUESTIONS)
        ]
        self.db.add(project)
        await self.db.commit()
        logger.info("Created project %s (%s)", project.id, name)
        return await self.get_project(project.id)

    async def list_projects(self) -> list[Project]:
        """Projects newest first, with documents, questions and answers loaded."""
        result = await self.db.execute(
            _project_detail_query()
            .order_by(Project.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_project(self, project_id: uuid.UUID) -> Project:
        result = await self.db.execute(
            _project_detail_query()
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        project = result.scalar_one_or_none()
        if not project:
            raise NotFoundError("Project not found")
        return project

    async def update_project_status(self, project_id: uuid.UUID, status: ProjectStatus) -> None:
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFoundError("Project not found")
        project.status = status
        project.updated_at = _utc_now()
        await self.db.commit()

    # Documents

    async def add_document(self, project_id: uuid.UUID, filename: str) -> Document:
        """Register a data-directory file with the project and index it.

        The project becomes OUTDATED as soon as the document is registered.
        Status and content are written back before the document is re-read.
        Extraction errors are re-raised after the document is marked failed.
        """
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFoundError("Project not found")

        doc = Document(
            project_id=project_id,
            name=filename,
            path=f"data/{filename}",
            status=DocumentStatus.UPLOADED,
        )
        self.db.add(doc)
        project.status = ProjectStatus.OUTDATED
        project.updated_at = _utc_now()
        await self.db.commit()
        doc_id = doc.id

        await self._set_document_state(doc_id, DocumentStatus.INDEXING)
        try:
            text = await self.extractor.extract(filename)
        except ExtractionError:
            logger.exception("Indexing failed for %s", filename)
            await self._set_document_state(doc_id, DocumentStatus.FAILED)
            raise

        await self._set_document_state(doc_id, DocumentStatus.INDEXED, content=text)
        return await self.get_document(doc_id)

    async def _set_document_state(
        self,
        document_id: uuid.UUID,
        status: DocumentStatus,
        content: str | None = None,
    ) -> None:
        doc = await self.db.get(Document, document_id)
        if not doc:
            raise NotFoundError("Document not found")
        doc.status = status
        if content is not None:
            doc.content = content
        await self.db.commit()

    async def get_document(self, document_id: uuid.UUID) -> Document:
        result = await self.db.execute(
            select(Document)
            .where(Document.id == document_id)
            .execution_options(populate_existing=True)
        )
        doc = result.scalar_one_or_none()
        if not doc:
            raise NotFoundError("Document not found")
        return doc

    async def list_documents(self, project_id: uuid.UUID) -> list[Document]:
        result = await self.db.execute(
            select(Document)
            .where(Document.project_id == project_id)
            .order_by(Document.uploaded_at.asc())
        )
        return list(result.scalars().all())

    # Questions

    async def add_questions(self, project_id: uuid.UUID, questions: list[ParsedQuestion]) -> None:
        start = await self.db.scalar(
            select(func.coalesce(func.max(Question.position) + 1, 0))
            .where(Question.project_id == project_id)
        )
        self.db.add_all([
            Question(project_id=project_id, text=q["text"], section=q["section"], position=start + i)
            for i, q in enumerate(questions)
        ])

    async def import_questions(
        self,
        project_id: uuid.UUID,
        questions: list[ParsedQuestion],
        *,
        replace: bool = True,
    ) -> None:
        """Replace (default) or extend the project's questionnaire."""
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFoundError("Project not found")
        if not questions:
            raise ValidationError("No questions found in file")

        if replace:
            # Answers and their citations go with the questions
            existing = await self.db.execute(
                select(Question)
                .options(selectinload(Question.answer).selectinload(Answer.citations))
                .where(Question.project_id == project_id)
                .execution_options(populate_existing=True)
            )
            for question in existing.scalars().all():
                await self.db.delete(question)
            await self.db.flush()

        await self.add_questions(project_id, questions)
        project.updated_at = _utc_now()
        await self.db.commit()
        logger.info(
            "Imported %d questions into project %s (mode=%s)",
            len(questions), project_id, "replace" if replace else "append",
        )

    async def get_question(self, project_id: uuid.UUID, question_id: uuid.UUID) -> Question:
        result = await self.db.execute(
            select(Question)
            .options(selectinload(Question.answer).selectinload(Answer.citations))
            .where(Question.id == question_id, Question.project_id == project_id)
            .execution_options(populate_existing=True)
        )
        question = result.scalar_one_or_none()
        if not question:
            raise NotFoundError("Question not found")
        return question

    # Answers

    async def save_answer(self, project_id: uuid.UUID, question_id: uuid.UUID, generated: GeneratedAnswer) -> Answer:
        """Replace the question's answer and citations in a single transaction.

        The new answer gets a fresh id; nothing from the old one is kept.
        """
        existing = await self.db.execute(
            select(Answer)
            .options(selectinload(Answer.citations))
            .where(Answer.question_id == question_id)
        )
        old = existing.scalar_one_or_none()
        if old is not None:
            await self.db.delete(old)
            # Unique question_id: the delete must reach the database before the insert
            await self.db.flush()

        answer = Answer(
            question_id=question_id,
            text=generated.text,
            confidence=generated.confidence,
            status=generated.status,
            generated_at=generated.generated_at,
            citations=build_citations(generated.citations, CitationOrigin.ANSWER),
        )
        self.db.add(answer)

        project = await self.db.get(Project, project_id)
        if project:
            project.updated_at = _utc_now()
        await self.db.commit()
        return answer

    async def generate_answer(self, project_id: uuid.UUID, question_id: uuid.UUID) -> Answer:
        project = await self.get_project(project_id)
        question = next((q for q in project.questions if q.id == question_id), None)
        if not question:
            raise NotFoundError("Question not found")

        generated = await generate_answer(question.text, project.documents, self.llm, self.extractor)
        answer = await self.save_answer(project_id, question_id, generated)
        return await self._reload_answer(answer.id)

    async def regenerate_all(self, project_id: uuid.UUID) -> list[dict]:
        """Answer every question in turn, then mark the project active again.

        A failure on one question is recorded and does not stop the batch.
        """
        project = await self.get_project(project_id)
        if not project.documents:
            raise ValidationError("No documents available for generation")

        documents = list(project.documents)
        questions = [(q.id, q.text) for q in project.questions]
        results: list[dict] = []

        for question_id, text in questions:
            try:
                generated = await generate_answer(text, documents, self.llm, self.extractor)
                await self.save_answer(project_id, question_id, generated)
                results.append({"question_id": question_id, "success": True})
            except Exception as e:
                logger.exception("Failed to generate answer for %s", question_id)
                await self.db.rollback()
                # rollback expires everything loaded so far
                documents = await self.list_documents(project_id)
                results.append({"question_id": question_id, "success": False, "error": str(e)})

        await self.update_project_status(project_id, ProjectStatus.ACTIVE)
        logger.info("Regenerated %d answers for project %s", len(results), project_id)
        return results

    async def update_answer_status(
        self,
        project_id: uuid.UUID,
        question_id: uuid.UUID,
        status: AnswerStatus,
        manual_text: str | None = None,
    ) -> Answer:
        """Record a human review decision on an existing answer."""
        question = await self.get_question(project_id, question_id)
        answer = question.answer
        if answer is None:
            raise NotFoundError("Answer not found")

        answer.status = status
        if manual_text is not None:
            answer.manual_text = manual_text

        project = await self.db.get(Project, project_id)
        if project:
            project.updated_at = _utc_now()
        await self.db.commit()
        return await self._reload_answer(answer.id)

    async def _reload_answer(self, answer_id: uuid.UUID) -> Answer:
        result = await self.db.execute(
            select(Answer)
            .options(selectinload(Answer.citations))
            .where(Answer.id == answer_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
