import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Protocol, Sequence

from app.core.config import get_settings
from app.core.exceptions import ExtractionError
from app.models import AnswerStatus, Citation, CitationOrigin, Confidence, DocumentStatus
from app.services.llm import LLMMessage
from app.services.retrieval import select_context

logger = logging.getLogger(__name__)

NO_DOCUMENTS_ANSWER = "No documents available to answer this question."
SNIPPET_LENGTH = 200

SYSTEM_PROMPT = """You are a helpful AI assistant analyzing due diligence documents. Your task is to answer questions based ONLY on the provided context. Follow these rules:

1. If the context contains relevant information, provide a clear, concise answer
2. If the context is insufficient, say "Based on the provided documents, I cannot find sufficient information to answer this question."
3. Always cite specific information from the context
4. Be factual and precise
5. Do not make assumptions or add information not in the context"""

RELEVANCE_BY_CONFIDENCE = {
    Confidence.HIGH: 3,
    Confidence.MEDIUM: 2,
    Confidence.LOW: 1,
}


class SourceDocument(Protocol):
    id: object
    name: str
    path: str
    status: str
    content: str | None


class Completer(Protocol):
    async def complete(self, messages: list[LLMMessage], **kwargs) -> str: ...


class Extractor(Protocol):
    async def extract(self, filename: str) -> str: ...


@dataclass
class CitationData:
    document_id: str
    document_name: str
    text_snippet: str
    relevance_score: int
    page_number: int | None = None


@dataclass
class GeneratedAnswer:
    text: str
    confidence: Confidence
    citations: list[CitationData] = field(default_factory=list)
    status: AnswerStatus = AnswerStatus.COMPLETED
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def build_user_prompt(question: str, context: str) -> str:
    return f'''Context from documents:
"""
{context}
"""

Question: {question}

Please provide a detailed answer based on the context above.'''


def derive_confidence(answer: str) -> Confidence:
    lowered = answer.lower()
    if "cannot find" in lowered or "insufficient information" in lowered:
        return Confidence.LOW
    if len(answer) > 200 and "unclear" not in answer:
        return Confidence.HIGH
    return Confidence.MEDIUM


async def build_corpus(documents: Sequence[SourceDocument], extractor: Extractor | None) -> str:
    """Concatenate document text, each block headed by the document name.

    Indexed documents whose content is not loaded are re-extracted from the
    data directory; a document that fails to extract contributes nothing.
    """
    corpus = ""
    for doc in documents:
        text = doc.content
        if not text and doc.status == DocumentStatus.INDEXED and extractor is not None:
            try:
                text = await extractor.extract(PurePosixPath(doc.path).name)
            except ExtractionError as e:
                logger.warning("Failed to read doc %s: %s", doc.name, e)
                continue
        if text:
            corpus += f"\n--- {doc.name} ---\n{text}\n"
    return corpus


async def generate_answer(
    question: str,
    documents: Sequence[SourceDocument],
    llm: Completer,
    extractor: Extractor | None = None,
) -> GeneratedAnswer:
    """Answer one question from the project's documents. Never raises on LLM failure."""
    settings = get_settings()

    corpus = await build_corpus(documents, extractor)
    if not corpus.strip():
        return GeneratedAnswer(text=NO_DOCUMENTS_ANSWER, confidence=Confidence.LOW)

    context = select_context(
        corpus,
        question,
        chunk_size=settings.answer_chunk_size,
        top_k=settings.answer_top_k,
    )

    messages: list[LLMMessage] = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(question, context)},
    ]

    try:
        answer = await llm.complete(messages)
    except Exception as e:
        logger.error("LLM generation error: %s", e)
        return GeneratedAnswer(
            text=f"Error generating answer: {e}. Please check your LLM API key configuration.",
            confidence=Confidence.LOW,
        )

    confidence = derive_confidence(answer)
    first = documents[0] if documents else None
    citation = CitationData(
        document_id=str(first.id) if first else "unknown",
        document_name=first.name if first else "Multiple Documents",
        text_snippet=context[:SNIPPET_LENGTH].strip(),
        relevance_score=RELEVANCE_BY_CONFIDENCE[confidence],
    )
    return GeneratedAnswer(text=answer, confidence=confidence, citations=[citation])


def build_citations(citations: Sequence[CitationData], origin: CitationOrigin) -> list[Citation]:
    """ORM rows for an answer's or a chat message's citations."""
    return [
        Citation(
            origin=origin,
            document_id=c.document_id,
            document_name=c.document_name,
            text_snippet=c.text_snippet,
            page_number=c.page_number,
            relevance_score=c.relevance_score,
        )
        for c in citations
    ]
