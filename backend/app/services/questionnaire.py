"""Heuristic question extraction from questionnaire files."""

import re
from pathlib import Path
from typing import TypedDict

from app.services.extraction import TextExtractor

DEFAULT_SECTION = "General"

# "1. General Firm Information", "Section 2. Risk Management"
SECTION_RE = re.compile(r"^(?:Section\s+)?(\d+)\.\s+([A-Z][\w\s/&-]+)$")
# "1.1 Has the Firm ...", "Q3. Describe ..."
QUESTION_RE = re.compile(r"^(?:Q)?(\d+(?:\.\d+)?)\.?\s+(.+)$")

TEXT_FORMATS = {".pdf", ".docx", ".txt"}
SPREADSHEET_FORMATS = {".xlsx"}


class ParsedQuestion(TypedDict):
    text: str
    section: str


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def parse_text_heuristic(text: str) -> list[ParsedQuestion]:
    """Numbered questions grouped under numbered section headers.

    A numbered line counts as a question when it ends with "?" or is longer
    than 20 characters. Without any numbered question, every line ending in
    "?" and longer than 15 characters is taken, all under "General".
    """
    lines = _lines(text)
    questions: list[ParsedQuestion] = []
    current_section = DEFAULT_SECTION

    for line in lines:
        section_match = SECTION_RE.match(line)
        if section_match:
            current_section = section_match.group(2).strip()
            continue

        question_match = QUESTION_RE.match(line)
        if question_match:
            question_text = question_match.group(2).strip()
            if question_text.endswith("?") or len(question_text) > 20:
                questions.append({"text": question_text, "section": current_section})

    if not questions:
        questions = [
            {"text": line, "section": DEFAULT_SECTION}
            for line in lines
            if line.endswith("?") and len(line) > 15
        ]

    return questions


def parse_spreadsheet_heuristic(text: str) -> list[ParsedQuestion]:
    """One candidate per tab-separated row: the last cell is the question, the first the section."""
    questions: list[ParsedQuestion] = []
    for line in _lines(text):
        parts = [part.strip() for part in line.split("\t")]
        candidate = parts[-1]
        if candidate and (candidate.endswith("?") or len(candidate) > 30):
            section = parts[0] if len(parts) > 1 else DEFAULT_SECTION
            questions.append({"text": candidate, "section": section})
    return questions


async def parse_from_file(filename: str, extractor: TextExtractor) -> list[ParsedQuestion]:
    text = await extractor.extract(filename)
    ext = Path(filename).suffix.lower()

    if ext in TEXT_FORMATS:
        return parse_text_heuristic(text)
    if ext in SPREADSHEET_FORMATS:
        return parse_spreadsheet_heuristic(text)
    return []
