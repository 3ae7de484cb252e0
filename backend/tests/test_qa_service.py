import uuid
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock
from app.core.exceptions import GenerationError
from app.models import AnswerStatus, CitationOrigin, Confidence
from app.services.qa_service import (
    NO_DOCUMENTS_ANSWER, CitationData, build_citations, build_corpus, derive_confidence, generate_answer
)


def make_doc(name="policy.txt", content="The fund has a dedicated ESG team.", status="indexed"):
    return SimpleNamespace(id=uuid.uuid4(), name=name, path=f"data/{name}", status=status, content=content)


class TestDeriveConfidence:
    @pytest.mark.parametrize("answer", [
        "I cannot find that in the documents.",
        "Based on the provided documents, I cannot find sufficient information to answer this question.",
        "There is INSUFFICIENT INFORMATION here.",
    ])
    def test_low(self, answer):
        assert derive_confidence(answer) == Confidence.LOW

    def test_high_for_long_answers(self):
        assert derive_confidence("x" * 201) == Confidence.HIGH

    def test_medium(self):
        assert derive_confidence("x" * 200) == Confidence.MEDIUM
        assert derive_confidence("Yes.") == Confidence.MEDIUM
        assert derive_confidence("unclear " + "x" * 250) == Confidence.MEDIUM


class TestBuildCorpus:
    @pytest.mark.asyncio
    async def test_blocks_in_document_order(self):
        docs = [make_doc("a.txt", "Alpha"), make_doc("b.txt", "Beta")]
        corpus = await build_corpus(docs, None)
        assert corpus == "\n--- a.txt ---\nAlpha\n\n--- b.txt ---\nBeta\n"

    @pytest.mark.asyncio
    async def test_reextracts_indexed_documents_without_content(self, extractor, write_file):
        write_file("notes.txt", "Re-read text")
        corpus = await build_corpus([make_doc("notes.txt", content=None)], extractor)
        assert corpus == "\n--- notes.txt ---\nRe-read text\n"

    @pytest.mark.asyncio
    async def test_skips_unreadable_and_unindexed(self, extractor):
        docs = [
            make_doc("missing.txt", content=None),
            make_doc("pending.txt", content=None, status="indexing"),
        ]
        assert await build_corpus(docs, extractor) == ""

    @pytest.mark.asyncio
    async def test_skips_document_replaced_by_directory(self, extractor, storage, write_file):
        (storage.data_dir / "folder.txt").mkdir()
        write_file("notes.txt", "Readable text")
        docs = [make_doc("folder.txt", content=None), make_doc("notes.txt", content=None)]
        assert await build_corpus(docs, extractor) == "\n--- notes.txt ---\nReadable text\n"


class TestGenerateAnswer:
    @pytest.mark.asyncio
    async def test_no_documents(self, llm):
        result = await generate_answer("What is the ESG policy?", [], llm)

        assert result.text == NO_DOCUMENTS_ANSWER
        assert result.confidence == Confidence.LOW
        assert result.citations == []
        assert result.status == AnswerStatus.COMPLETED
        llm.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_answer_with_first_document_citation(self, llm):
        docs = [make_doc("policy.txt"), make_doc("other.txt", "Unrelated text")]

        result = await generate_answer("Does the fund have a dedicated ESG team?", docs, llm)

        assert result.text == llm.complete.return_value
        assert result.confidence == Confidence.HIGH
        assert len(result.citations) == 1
        citation = result.citations[0]
        assert citation.document_id == str(docs[0].id)
        assert citation.document_name == "policy.txt"
        assert citation.relevance_score == 3
        assert citation.text_snippet == "--- policy.txt ---\nThe fund has a dedicated ESG team.\n\n--- other.txt ---\nUnrelated text"
        assert result.generated_at is not None

    @pytest.mark.asyncio
    async def test_prompt_contains_context_and_question(self, llm):
        question = "Does the fund have a dedicated ESG team?"
        await generate_answer(question, [make_doc()], llm)

        messages = llm.complete.call_args.args[0]
        assert messages[0]["role"] == "system"
        assert "ONLY on the provided context" in messages[0]["content"]
        assert messages[1]["role"] == "user"
        assert '"""\n' in messages[1]["content"]
        assert "The fund has a dedicated ESG team." in messages[1]["content"]
        assert f"Question: {question}" in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_low_confidence_relevance(self, llm):
        llm.complete.return_value = "I cannot find this."
        result = await generate_answer("Who is the CFO?", [make_doc()], llm)
        assert result.confidence == Confidence.LOW
        assert result.citations[0].relevance_score == 1

    @pytest.mark.asyncio
    async def test_llm_failure_becomes_answer(self):
        llm = AsyncMock()
        llm.complete.side_effect = GenerationError("LLM generation failed: timeout")

        result = await generate_answer("Who is the CFO?", [make_doc()], llm)

        assert result.text == (
            "Error generating answer: LLM generation failed: timeout. "
            "Please check your LLM API key configuration."
        )
        assert result.confidence == Confidence.LOW
        assert result.citations == []
        assert result.status == AnswerStatus.COMPLETED


def test_build_citations():
    data = [CitationData(document_id="d1", document_name="a.pdf", text_snippet="snip", relevance_score=2)]
    rows = build_citations(data, CitationOrigin.CHAT)
    assert len(rows) == 1
    assert rows[0].origin == CitationOrigin.CHAT
    assert rows[0].document_name == "a.pdf"
    assert rows[0].relevance_score == 2
    assert rows[0].page_number is None
