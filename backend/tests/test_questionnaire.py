import docx
import openpyxl
import pytest
from app.core.exceptions import UnsupportedFileTypeError
from app.services.questionnaire import (
    parse_text_heuristic, parse_spreadsheet_heuristic, parse_from_file
)

DDQ_TEXT = """
1. General Firm Information
1.1 Has the Firm ever been sanctioned by a regulator?
1.2 Describe the ownership structure of the firm

2. Risk Management
Q3. Who is the CRO?
4 Yes
"""


class TestTextHeuristic:
    def test_sections_and_numbered_questions(self):
        questions = parse_text_heuristic(DDQ_TEXT)
        assert questions == [
            {"text": "Has the Firm ever been sanctioned by a regulator?", "section": "General Firm Information"},
            {"text": "Describe the ownership structure of the firm", "section": "General Firm Information"},
            {"text": "Who is the CRO?", "section": "Risk Management"},
        ]

    def test_section_prefix(self):
        text = "Section 7. ESG & Sustainability\n7.1 Do you have an ESG policy?"
        assert parse_text_heuristic(text) == [
            {"text": "Do you have an ESG policy?", "section": "ESG & Sustainability"},
        ]

    def test_questions_before_any_section_are_general(self):
        assert parse_text_heuristic("1. What is the fund's target size?") == [
            {"text": "What is the fund's target size?", "section": "General"},
        ]

    def test_fallback_to_question_marks(self):
        text = "Please answer the following.\nIs the fund regulated by the SEC?\nShort?\n"
        assert parse_text_heuristic(text) == [
            {"text": "Is the fund regulated by the SEC?", "section": "General"},
        ]

    def test_nothing_found(self):
        assert parse_text_heuristic("") == []
        assert parse_text_heuristic("Cover page\nConfidential") == []

    def test_duplicates_are_kept(self):
        text = "1. Is there a compliance manual?\n2. Is there a compliance manual?"
        assert len(parse_text_heuristic(text)) == 2


class TestSpreadsheetHeuristic:
    def test_last_field_is_question_first_is_section(self):
        text = (
            "Section\tQuestion\n"
            "ESG\tDoes the fund have an ESG policy?\n"
            "Team\tref\tDescribe the background of the senior team members\n"
            "Is there a compliance manual in place?\n"
            "\tshort\n"
        )
        assert parse_spreadsheet_heuristic(text) == [
            {"text": "Does the fund have an ESG policy?", "section": "ESG"},
            {"text": "Describe the background of the senior team members", "section": "Team"},
            {"text": "Is there a compliance manual in place?", "section": "General"},
        ]

    def test_middle_fields_are_ignored(self):
        assert parse_spreadsheet_heuristic("x\t \tWho approves new investments?") == [
            {"text": "Who approves new investments?", "section": "x"},
        ]


class TestParseFromFile:
    @pytest.mark.asyncio
    async def test_txt(self, extractor, write_file):
        write_file("ddq.txt", DDQ_TEXT)
        questions = await parse_from_file("ddq.txt", extractor)
        assert len(questions) == 3

    @pytest.mark.asyncio
    async def test_docx(self, extractor, storage):
        document = docx.Document()
        document.add_paragraph("1. Governance")
        document.add_paragraph("1.1 Who sits on the investment committee?")
        document.save(str(storage.data_dir / "ddq.docx"))

        questions = await parse_from_file("ddq.docx", extractor)
        assert questions == [
            {"text": "Who sits on the investment committee?", "section": "Governance"},
        ]

    @pytest.mark.asyncio
    async def test_xlsx(self, extractor, storage):
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.append(["Section", "Question"])
        sheet.append(["ESG", "Does the fund have an ESG policy?"])
        sheet.append(["Team", None])
        workbook.save(str(storage.data_dir / "ddq.xlsx"))

        questions = await parse_from_file("ddq.xlsx", extractor)
        assert questions == [{"text": "Does the fund have an ESG policy?", "section": "ESG"}]

    @pytest.mark.asyncio
    async def test_unsupported_extension(self, extractor, write_file):
        write_file("ddq.csv", "a,b")
        with pytest.raises(UnsupportedFileTypeError):
            await parse_from_file("ddq.csv", extractor)


def test_question_takes_most_recent_section():
    text = "1. General\n2. Risk Management\n1.1 Does the firm have an ESG policy?"
    assert parse_text_heuristic(text) == [
        {"text": "Does the firm have an ESG policy?", "section": "Risk Management"},
    ]
